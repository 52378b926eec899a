# filename: huffman_errors.py


class HuffmanError(Exception):
    """Base class for every error raised by the codec."""


class EmptyInput(HuffmanError, ValueError):
    def __init__(self):
        super().__init__("cannot compress an empty byte sequence")


class TableOverflow(HuffmanError):
    def __init__(self, node_count, offset, offset_width):
        self.node_count = node_count
        self.offset = offset
        self.offset_width = offset_width
        super().__init__(
            f"decode table of {node_count} nodes needs offset {offset}, "
            f"which does not fit in {offset_width} byte(s)"
        )


class CorruptStream(HuffmanError, ValueError):
    pass
