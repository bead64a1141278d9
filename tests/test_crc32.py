import zlib

from hypothesis import given, strategies as st

from fvecrypt.crc32 import crc32


def test_empty_input():
    assert crc32(b"") == 0


def test_standard_check_value():
    assert crc32(b"123456789") == 0xCBF43926


def test_accepts_bytearray_and_memoryview():
    data = b"fve metadata block"
    assert crc32(bytearray(data)) == crc32(data)
    assert crc32(memoryview(data)) == crc32(data)


@given(st.binary(max_size=512))
def test_matches_reference_implementation(data):
    assert crc32(data) == zlib.crc32(data)


@given(st.binary(max_size=256))
def test_result_fits_in_32_bits(data):
    assert 0 <= crc32(data) <= 0xFFFFFFFF


@given(st.binary(min_size=1, max_size=128), st.integers(min_value=0, max_value=7))
def test_single_bit_flip_changes_crc(data, bit):
    flipped = bytearray(data)
    flipped[0] ^= 1 << bit
    assert crc32(bytes(flipped)) != crc32(data)