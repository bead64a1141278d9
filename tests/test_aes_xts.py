import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from hypothesis import given, settings
from hypothesis import strategies as st

from fvecrypt.aes_xts import aes_crypt_xex, aes_crypt_xts, gf128_mul_x

DATA_KEY_128 = bytes(range(16))
TWEAK_KEY_128 = bytes(range(100, 116))
DATA_KEY_256 = bytes(range(32))
TWEAK_KEY_256 = bytes(range(64, 96))
IV = (42).to_bytes(16, "little")


def _reference_xts(data_key, tweak_key, iv, data, encrypt):
    cipher = Cipher(algorithms.AES(data_key + tweak_key), modes.XTS(iv))
    context = cipher.encryptor() if encrypt else cipher.decryptor()
    return context.update(data) + context.finalize()


def test_gf128_mul_x_shifts_low_bit():
    assert gf128_mul_x(b"\x01" + bytes(15)) == b"\x02" + bytes(15)


def test_gf128_mul_x_reduces_top_bit():
    assert gf128_mul_x(bytes(15) + b"\x80") == b"\x87" + bytes(15)


def test_gf128_mul_x_carries_between_halves():
    assert gf128_mul_x(bytes(7) + b"\x80" + bytes(8)) == bytes(8) + b"\x01" + bytes(7)


def test_gf128_mul_x_zero_stays_zero():
    assert gf128_mul_x(bytes(16)) == bytes(16)


def test_gf128_mul_x_rejects_wrong_size():
    with pytest.raises(ValueError):
        gf128_mul_x(bytes(8))


@pytest.mark.parametrize("length", [16, 32, 512, 4096])
@pytest.mark.parametrize(
    "data_key,tweak_key",
    [(DATA_KEY_128, TWEAK_KEY_128), (DATA_KEY_256, TWEAK_KEY_256)],
)
def test_xts_matches_reference_full_blocks(length, data_key, tweak_key):
    data = bytes(i % 251 for i in range(length))
    expected = _reference_xts(data_key, tweak_key, IV, data, True)
    assert aes_crypt_xts(data_key, tweak_key, IV, data, True) == expected
    assert aes_crypt_xts(data_key, tweak_key, IV, expected, False) == data


@pytest.mark.parametrize("length", [17, 31, 33, 100, 511])
def test_xts_matches_reference_with_ciphertext_stealing(length):
    data = bytes((i * 7) % 256 for i in range(length))
    expected = _reference_xts(DATA_KEY_128, TWEAK_KEY_128, IV, data, True)
    assert aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, IV, data, True) == expected
    assert aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, IV, expected, False) == data


def test_xts_rejects_short_input():
    with pytest.raises(ValueError):
        aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, IV, bytes(15), True)


def test_xts_rejects_bad_iv():
    with pytest.raises(ValueError):
        aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, bytes(8), bytes(32), True)


def test_xex_equals_xts_on_full_blocks():
    data = bytes(range(256)) * 2
    assert aes_crypt_xex(DATA_KEY_256, TWEAK_KEY_256, IV, data, True) == aes_crypt_xts(
        DATA_KEY_256, TWEAK_KEY_256, IV, data, True
    )


def test_xex_rejects_partial_block():
    with pytest.raises(ValueError):
        aes_crypt_xex(DATA_KEY_128, TWEAK_KEY_128, IV, bytes(20), True)


def test_xex_round_trip():
    data = bytes(range(64))
    encrypted = aes_crypt_xex(DATA_KEY_128, TWEAK_KEY_128, IV, data, True)
    assert encrypted != data
    assert aes_crypt_xex(DATA_KEY_128, TWEAK_KEY_128, IV, encrypted, False) == data


def test_different_iv_changes_output():
    data = bytes(32)
    first = aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, IV, data, True)
    second = aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, bytes(16), data, True)
    assert first != second


@settings(max_examples=50, deadline=None)
@given(st.binary(min_size=16, max_size=200), st.binary(min_size=16, max_size=16))
def test_xts_round_trip_property(data, iv):
    encrypted = aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, iv, data, True)
    assert len(encrypted) == len(data)
    assert aes_crypt_xts(DATA_KEY_128, TWEAK_KEY_128, iv, encrypted, False) == data


@settings(max_examples=30, deadline=None)
@given(st.binary(min_size=16, max_size=200))
def test_xts_reference_property(data):
    expected = _reference_xts(DATA_KEY_256, TWEAK_KEY_256, IV, data, True)
    assert aes_crypt_xts(DATA_KEY_256, TWEAK_KEY_256, IV, data, True) == expected