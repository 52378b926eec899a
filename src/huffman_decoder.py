# filename: huffman_decoder.py

from loguru import logger

from huffman_config import entry_size

# Produced by current() once every symbol has been read.
END = -1


def read_entry(table, index, offset_width=1):
    """Return ``(symbol, left_offset, right_offset)`` of one decode table entry."""
    start = index * entry_size(offset_width)
    middle = start + 1 + offset_width
    end = middle + offset_width
    return (
        table[start],
        int.from_bytes(table[start + 1:middle], "big"),
        int.from_bytes(table[middle:end], "big"),
    )


class HuffmanDecoder:
    """Lazy cursor that rebuilds the original bytes one symbol at a time.

    The payload and decode table are only read, never copied, so any number of
    decoders can walk the same compressed data independently. Without a table
    the payload is raw data and is passed through byte by byte.

    The first symbol is decoded on construction, so ``current()`` is ready
    before the first ``advance()``.
    """

    def __init__(self, payload, table=None, bit_count=0, offset_width=1):
        self._payload = payload
        self._table = table
        self._offset_width = offset_width
        self._position = 0
        self._mask = 0x80
        self._current = END

        if table is None:
            self._end = (len(payload), 0x80)
        else:
            self._end = (bit_count >> 3, 0x80 >> (bit_count & 7))

        self._step()

    @property
    def exhausted(self):
        return self._current == END

    def current(self):
        return self._current

    def advance(self):
        if self._current == END:
            logger.debug("[HuffmanDecoder] advance() called on an exhausted decoder")
            return self
        self._step()
        return self

    def __iter__(self):
        return self

    def __next__(self):
        if self._current == END:
            raise StopIteration
        value = self._current
        self._step()
        return value

    def _step(self):
        if (self._position, self._mask) == self._end:
            self._current = END
            return

        if self._table is None:
            self._current = self._payload[self._position]
            self._position += 1
            return

        payload, table, width = self._payload, self._table, self._offset_width
        position, mask = self._position, self._mask
        index = 0
        symbol, left, right = read_entry(table, index, width)

        # Both offsets zero marks a leaf
        while left or right:
            index += right if payload[position] & mask else left
            mask >>= 1
            if not mask:
                mask = 0x80
                position += 1
            symbol, left, right = read_entry(table, index, width)

        self._position, self._mask = position, mask
        self._current = symbol
