# filename: huffman_compressed.py
"""
Immutable compressed form of a byte sequence.

Persisted layout (all integers little-endian):
    [4B]  MAGIC  "HCf1"
    [1B]  flags          bit 0 set when the payload is Huffman coded
    [1B]  offset_width   bytes per child offset in a table entry
    [4B]  original_length
    [4B]  bit_count      code bits in the Huffman payload
    [2B]  node_count     entries in the decode table (2L - 1)
    [N B] payload        Huffman bits (MSB-first) or the raw bytes
    [M B] decode table   only when compressed
"""
import struct

from loguru import logger

from huffman_config import SUPPORTED_OFFSET_WIDTHS, entry_size, resolve_offset_width
from huffman_core import HuffmanLogic
from huffman_decoder import HuffmanDecoder, read_entry
from huffman_errors import CorruptStream

MAGIC = b"HCf1"
FLAG_COMPRESSED = 0x01

_HEADER = struct.Struct("<4sBBIIH")


def _corrupt(message):
    logger.warning(f"[HuffmanCompressed] Rejected stream: {message}")
    return CorruptStream(message)


class HuffmanCompressed:
    """Huffman payload plus decode table, or the raw bytes when coding does not pay off.

    The choice is made once here: coding is kept only when payload and table
    together are strictly smaller than the input.
    """

    def __init__(self, data, offset_width=None, logic=None):
        data = bytes(data)
        offset_width = resolve_offset_width(offset_width)
        logic = logic or HuffmanLogic()

        tree = logic.build_tree(data)
        bit_count = logic.total_bits(tree, data)

        self._offset_width = offset_width
        self._length = len(data)
        self._bit_count = bit_count
        self._node_count = len(tree)

        if self.compressed_size() < self._length:
            self._table = logic.build_decode_table(tree, offset_width)
            self._payload = logic.encode(tree, data, bit_count)
            logger.debug(
                f"[HuffmanCompressed] Compressed {self._length} -> "
                f"{self.compressed_size()} bytes ({self._node_count} nodes)"
            )
        else:
            self._table = None
            self._payload = data
            logger.info(
                f"[HuffmanCompressed] Storing {self._length} bytes uncompressed, "
                f"coding would need {self.compressed_size()}"
            )

    @classmethod
    def _restore(cls, payload, table, length, bit_count, node_count, offset_width):
        obj = cls.__new__(cls)
        obj._payload = payload
        obj._table = table
        obj._length = length
        obj._bit_count = bit_count
        obj._node_count = node_count
        obj._offset_width = offset_width
        return obj

    @property
    def is_compressed(self):
        return self._table is not None

    @property
    def bit_count(self):
        return self._bit_count

    @property
    def node_count(self):
        return self._node_count

    @property
    def offset_width(self):
        return self._offset_width

    def size(self):
        if self.is_compressed:
            return self.compressed_size()
        return self._length

    def data(self):
        return self._payload

    def table(self):
        return self._table or b""

    def compressed_size(self):
        """Payload plus decode table, whether or not coding was chosen."""
        payload_size = (self._bit_count + 7) // 8
        return payload_size + entry_size(self._offset_width) * self._node_count

    def uncompressed_size(self):
        return self._length

    def bytes_saved(self):
        return max(self._length - self.compressed_size(), 0)

    def decoder(self):
        return HuffmanDecoder(
            self._payload, self._table, self._bit_count, self._offset_width
        )

    def __iter__(self):
        return self.decoder()

    def decompress(self):
        return bytes(self.decoder())

    def __repr__(self):
        mode = "huffman" if self.is_compressed else "raw"
        return (
            f"HuffmanCompressed({mode}, size={self.size()}, "
            f"uncompressed={self._length}, nodes={self._node_count})"
        )

    def to_bytes(self):
        header = _HEADER.pack(
            MAGIC,
            FLAG_COMPRESSED if self.is_compressed else 0,
            self._offset_width,
            self._length,
            self._bit_count,
            self._node_count,
        )
        return header + self._payload + self.table()

    @classmethod
    def from_bytes(cls, blob):
        blob = bytes(blob)
        if len(blob) < _HEADER.size:
            raise _corrupt(f"{len(blob)} bytes is shorter than the {_HEADER.size}-byte header")

        magic, flags, offset_width, length, bit_count, node_count = _HEADER.unpack_from(blob)
        if magic != MAGIC:
            raise _corrupt(f"invalid magic {magic!r}")
        if flags & ~FLAG_COMPRESSED:
            raise _corrupt(f"unknown flags {flags:#04x}")
        if offset_width not in SUPPORTED_OFFSET_WIDTHS:
            raise _corrupt(f"unsupported offset width {offset_width}")
        if length == 0:
            raise _corrupt("original length is zero")
        if node_count < 3 or node_count % 2 == 0 or node_count > 511:
            raise _corrupt(f"impossible node count {node_count}")

        obj = cls._restore(None, None, length, bit_count, node_count, offset_width)
        compressed = bool(flags & FLAG_COMPRESSED)
        if compressed != (obj.compressed_size() < length):
            raise _corrupt("compression flag contradicts the recorded sizes")

        body = blob[_HEADER.size:]
        expected = obj.compressed_size() if compressed else length
        if len(body) != expected:
            raise _corrupt(f"expected {expected} body bytes, found {len(body)}")

        if not compressed:
            obj._payload = body
            return obj

        payload_size = (bit_count + 7) // 8
        obj._payload = body[:payload_size]
        obj._table = body[payload_size:]
        obj._check_table()
        obj._check_codes()
        return obj

    def _check_table(self):
        for index in range(self._node_count):
            _, left, right = read_entry(self._table, index, self._offset_width)
            if bool(left) != bool(right):
                raise _corrupt(f"table entry {index} has a single child")
            if index + max(left, right) >= self._node_count:
                raise _corrupt(f"table entry {index} points past the table")
        _, left, _ = read_entry(self._table, 0, self._offset_width)
        if not left:
            raise _corrupt("table root is a leaf")

    def _check_codes(self):
        # Every code must end exactly on the recorded bit count
        index = 0
        symbols = 0
        for bit_index in range(self._bit_count):
            _, left, right = read_entry(self._table, index, self._offset_width)
            bit = self._payload[bit_index >> 3] & (0x80 >> (bit_index & 7))
            index += right if bit else left
            _, left, right = read_entry(self._table, index, self._offset_width)
            if not (left or right):
                symbols += 1
                index = 0
        if index != 0 or symbols != self._length:
            raise _corrupt(
                f"payload holds {symbols} whole symbols, header says {self._length}"
            )
