"""AES-CCM routines used to unwrap protected keys (VMK, FVEK)."""

from __future__ import annotations

import hmac
from typing import Callable

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

AUTHENTICATOR_LENGTH = 16
NONCE_LENGTH = 12
_BLOCK_SIZE = 16
_MAX_NONCE_LENGTH = 14
_MASK_128 = (1 << 128) - 1


class MacMismatchError(ValueError):
    """Raised when the authentication tag of a decrypted key does not match."""


def _encryptor(key) -> Callable[[bytes], bytes]:
    return Cipher(algorithms.AES(bytes(key)), modes.ECB()).encryptor().update


def _xor_prefix(state: bytes, chunk: bytes) -> bytes:
    mixed = bytes(a ^ b for a, b in zip(state, chunk))
    return mixed + state[len(mixed):]


def _check_nonce(nonce) -> bytes:
    raw = bytes(nonce)
    if len(raw) > _MAX_NONCE_LENGTH:
        raise ValueError(f"nonce must be at most {_MAX_NONCE_LENGTH} bytes, got {len(raw)}")
    return raw


def ccm_crypt(key, nonce, data, mac) -> tuple[bytes, bytes]:
    """Apply the CCM counter keystream to data and mac; return both results."""
    raw_nonce = _check_nonce(nonce)
    raw_mac = bytes(mac)
    if len(raw_mac) > AUTHENTICATOR_LENGTH:
        raise ValueError(f"mac must be at most {AUTHENTICATOR_LENGTH} bytes")
    encrypt = _encryptor(key)

    counter = bytearray(_BLOCK_SIZE)
    counter[0] = _MAX_NONCE_LENGTH - len(raw_nonce)
    counter[1:1 + len(raw_nonce)] = raw_nonce
    base = int.from_bytes(counter, "big")

    out_mac = _xor_prefix(encrypt(bytes(counter)), raw_mac)[:len(raw_mac)]

    raw = bytes(data)
    output = bytearray()
    for index, offset in enumerate(range(0, len(raw), _BLOCK_SIZE), start=1):
        block = ((base + index) & _MASK_128).to_bytes(_BLOCK_SIZE, "big")
        chunk = raw[offset:offset + _BLOCK_SIZE]
        output += _xor_prefix(encrypt(block), chunk)[:len(chunk)]
    return bytes(output), out_mac


def compute_tag(key, nonce, data) -> bytes:
    """Compute the unencrypted CCM authentication tag of plaintext data."""
    raw_nonce = _check_nonce(nonce)
    raw = bytes(data)
    encrypt = _encryptor(key)

    first = bytearray(_BLOCK_SIZE)
    first[0] = (_MAX_NONCE_LENGTH - len(raw_nonce)) | (((AUTHENTICATOR_LENGTH - 2) & 0xFE) << 2)
    first[1:1 + len(raw_nonce)] = raw_nonce
    remaining = len(raw)
    for position in range(_BLOCK_SIZE - 1, len(raw_nonce), -1):
        first[position] = remaining & 0xFF
        remaining >>= 8

    state = encrypt(bytes(first))
    for offset in range(0, len(raw), _BLOCK_SIZE):
        state = encrypt(_xor_prefix(state, raw[offset:offset + _BLOCK_SIZE]))
    return state


def decrypt_key(data, mac, nonce, key) -> bytes:
    """Decrypt a CCM-protected key and verify its tag; raise MacMismatchError on failure."""
    raw_nonce = bytes(nonce)[:NONCE_LENGTH]
    if len(raw_nonce) < NONCE_LENGTH:
        raise ValueError(f"nonce must be {NONCE_LENGTH} bytes")
    raw_mac = bytes(mac)[:AUTHENTICATOR_LENGTH]
    if len(raw_mac) < AUTHENTICATOR_LENGTH:
        raise ValueError(f"mac must be {AUTHENTICATOR_LENGTH} bytes")

    output, expected_tag = ccm_crypt(key, raw_nonce, data, raw_mac)
    actual_tag = compute_tag(key, raw_nonce, output)
    if not hmac.compare_digest(expected_tag, actual_tag):
        raise MacMismatchError("The MACs don't match.")
    return output