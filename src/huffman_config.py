# filename: huffman_config.py

import os
import sys

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

# Bytes per child offset in a decode table entry.
OFFSET_WIDTH = int(os.getenv("HUFFMAN_OFFSET_WIDTH", "1"))
LOG_LEVEL = os.getenv("HUFFMAN_LOG_LEVEL", "WARNING")

SUPPORTED_OFFSET_WIDTHS = (1, 2)


def resolve_offset_width(offset_width=None):
    width = OFFSET_WIDTH if offset_width is None else offset_width
    if width not in SUPPORTED_OFFSET_WIDTHS:
        raise ValueError(
            f"offset width must be one of {SUPPORTED_OFFSET_WIDTHS}, got {width!r}"
        )
    return width


def entry_size(offset_width):
    """Size in bytes of one decode table entry: symbol plus two offsets."""
    return 1 + 2 * offset_width


def configure_logging(level=None):
    logger.remove()
    logger.add(sys.stderr, level=level or LOG_LEVEL)
