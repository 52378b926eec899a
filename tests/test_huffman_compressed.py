import os
import sys
import random
import struct
import pytest

SRC = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if SRC not in sys.path:
	sys.path.insert(0, SRC)

from huffman_compressed import MAGIC, HuffmanCompressed
from huffman_decoder import END
from huffman_errors import CorruptStream, EmptyInput, TableOverflow


SKEWED_ABC = b'a' * 100 + b'b' * 20 + b'c' * 5
HEADER_SIZE = 16


def _drain(decoder):
	out = bytearray()
	while decoder.current() != END:
		out.append(decoder.current())
		decoder.advance()
	return bytes(out)


def test_compressible_input():
	obj = HuffmanCompressed(SKEWED_ABC)
	assert obj.is_compressed
	assert obj.node_count == 5
	assert obj.bit_count == 150
	assert len(obj.data()) == 19
	assert len(obj.table()) == 15
	assert obj.size() == obj.compressed_size() == 34
	assert obj.uncompressed_size() == 125
	assert obj.bytes_saved() == 91
	assert _drain(obj.decoder()) == SKEWED_ABC
	assert obj.decompress() == SKEWED_ABC


def test_aaaa_falls_back():
	obj = HuffmanCompressed(b'aaaa')
	assert not obj.is_compressed
	assert obj.node_count == 3
	assert obj.size() == 4
	assert obj.data() == b'aaaa'
	assert obj.table() == b''
	assert obj.bytes_saved() == 0
	assert _drain(obj.decoder()) == b'aaaa'


def test_abracadabra():
	obj = HuffmanCompressed(b'abracadabra')
	assert obj.node_count == 9
	assert obj.compressed_size() == 3 + 27
	assert not obj.is_compressed
	assert obj.decompress() == b'abracadabra'


def test_all_byte_values():
	data = bytes(range(256))
	obj = HuffmanCompressed(data)
	assert obj.node_count == 511
	assert obj.size() == 256
	assert obj.decompress() == data


def test_single_byte():
	obj = HuffmanCompressed(b'x')
	assert obj.size() == 1
	decoder = obj.decoder()
	assert decoder.current() == ord('x')
	assert decoder.advance().current() == END


def test_skewed_payload_smaller_than_input():
	data = b'a' * 10 + b'b'
	obj = HuffmanCompressed(data)
	# 11 code bits fit in 2 bytes, but the 9-byte table eats the gain
	assert (obj.bit_count + 7) // 8 == 2
	assert obj.compressed_size() == 11
	assert not obj.is_compressed
	assert obj.size() == 11
	assert obj.decompress() == data


def test_compression_when_table_pays_off():
	data = b'a' * 1000 + b'b'
	obj = HuffmanCompressed(data)
	assert obj.is_compressed
	assert obj.size() < len(data)
	assert obj.decompress() == data


def test_exhaustion_after_input_length():
	obj = HuffmanCompressed(SKEWED_ABC)
	decoder = obj.decoder()
	for _ in range(len(SKEWED_ABC)):
		assert decoder.current() != END
		decoder.advance()
	for _ in range(3):
		assert decoder.current() == END
		decoder.advance()


def test_determinism():
	data = b'compress me, compress me again' * 20
	first, second = HuffmanCompressed(data), HuffmanCompressed(data)
	assert first.data() == second.data()
	assert first.table() == second.table()
	assert first.to_bytes() == second.to_bytes()


def test_accepts_bytearray_and_memoryview():
	assert HuffmanCompressed(bytearray(SKEWED_ABC)).decompress() == SKEWED_ABC
	assert HuffmanCompressed(memoryview(SKEWED_ABC)).decompress() == SKEWED_ABC


def test_iter_gives_fresh_decoders():
	obj = HuffmanCompressed(SKEWED_ABC)
	assert bytes(obj) == SKEWED_ABC
	assert bytes(obj) == SKEWED_ABC


def test_roundtrip_random_alphabets():
	rng = random.Random(2024)
	for size in (1, 7, 100, 2000):
		for alphabet in (b'z', b'01', b'ACGT', bytes(range(32, 127))):
			data = bytes(rng.choice(alphabet) for _ in range(size))
			assert HuffmanCompressed(data).decompress() == data


def test_empty_input():
	with pytest.raises(EmptyInput):
		HuffmanCompressed(b'')
	with pytest.raises(ValueError):
		HuffmanCompressed(bytearray())


def test_invalid_offset_width():
	with pytest.raises(ValueError):
		HuffmanCompressed(SKEWED_ABC, offset_width=3)


def test_table_overflow_surfaces_at_construction():
	data = bytes(range(256)) + b'\x00' * 100000
	with pytest.raises(TableOverflow):
		HuffmanCompressed(data, offset_width=1)


def test_wide_offsets_hold_large_tables():
	data = bytes(range(256)) + b'\x00' * 100000
	obj = HuffmanCompressed(data, offset_width=2)
	assert obj.is_compressed
	assert obj.node_count == 511
	assert len(obj.table()) == 5 * 511
	assert obj.decompress() == data


def test_persisted_roundtrip_compressed():
	obj = HuffmanCompressed(SKEWED_ABC)
	blob = obj.to_bytes()
	assert blob[:4] == MAGIC
	assert len(blob) == HEADER_SIZE + obj.size()
	assert blob[HEADER_SIZE:] == obj.data() + obj.table()

	loaded = HuffmanCompressed.from_bytes(blob)
	assert loaded.is_compressed
	assert loaded.data() == obj.data()
	assert loaded.table() == obj.table()
	assert loaded.size() == obj.size()
	assert loaded.decompress() == SKEWED_ABC


def test_persisted_roundtrip_raw():
	obj = HuffmanCompressed(b'abracadabra')
	loaded = HuffmanCompressed.from_bytes(obj.to_bytes())
	assert not loaded.is_compressed
	assert loaded.compressed_size() == obj.compressed_size()
	assert loaded.decompress() == b'abracadabra'


def test_from_bytes_rejects_short_header():
	with pytest.raises(CorruptStream):
		HuffmanCompressed.from_bytes(b'HCf1')


def test_from_bytes_rejects_bad_magic():
	blob = bytearray(HuffmanCompressed(SKEWED_ABC).to_bytes())
	blob[:4] = b'XXXX'
	with pytest.raises(CorruptStream):
		HuffmanCompressed.from_bytes(bytes(blob))


def test_from_bytes_rejects_flipped_flag():
	blob = bytearray(HuffmanCompressed(SKEWED_ABC).to_bytes())
	blob[4] = 0
	with pytest.raises(CorruptStream):
		HuffmanCompressed.from_bytes(bytes(blob))


def test_from_bytes_rejects_trailing_bytes():
	blob = HuffmanCompressed(SKEWED_ABC).to_bytes() + b'\x00'
	with pytest.raises(CorruptStream):
		HuffmanCompressed.from_bytes(blob)


def test_from_bytes_rejects_bad_table():
	obj = HuffmanCompressed(SKEWED_ABC)
	blob = bytearray(obj.to_bytes())
	# root left offset pointing past the table
	blob[HEADER_SIZE + len(obj.data()) + 1] = 200
	with pytest.raises(CorruptStream):
		HuffmanCompressed.from_bytes(bytes(blob))


def test_from_bytes_rejects_wrong_symbol_count():
	obj = HuffmanCompressed(SKEWED_ABC)
	header = struct.pack('<4sBBIIH', MAGIC, 1, 1, len(SKEWED_ABC) - 1, obj.bit_count, obj.node_count)
	with pytest.raises(CorruptStream):
		HuffmanCompressed.from_bytes(header + obj.data() + obj.table())
