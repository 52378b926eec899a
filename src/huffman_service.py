# // filename: huffman_service.py

from loguru import logger

from huffman_compressed import HuffmanCompressed
from huffman_core import HuffmanLogic


class HuffmanService:
    def __init__(self, offset_width=None):
        self.logic = HuffmanLogic()
        self.offset_width = offset_width

    def build(self, data):
        return HuffmanCompressed(data, offset_width=self.offset_width, logic=self.logic)

    def compress(self, data):
        compressed = self.build(data)
        logger.debug(f"[HuffmanService] {compressed!r}")
        return compressed.to_bytes()

    def open(self, blob):
        return HuffmanCompressed.from_bytes(blob)

    def decompress(self, blob):
        return self.open(blob).decompress()
