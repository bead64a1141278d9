"""AES-XEX and AES-XTS (with ciphertext stealing) over arbitrary buffers."""

from __future__ import annotations

from typing import Callable

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

BLOCK_SIZE = 16
_MASK_128 = (1 << 128) - 1
_REDUCTION = 0x87


def gf128_mul_x(block) -> bytes:
    """Multiply a 128-bit little-endian tweak by x in GF(2^128)."""
    raw = bytes(block)
    if len(raw) != BLOCK_SIZE:
        raise ValueError(f"tweak block must be {BLOCK_SIZE} bytes, got {len(raw)}")
    value = int.from_bytes(raw, "little")
    carry = value >> 127
    value = (value << 1) & _MASK_128
    if carry:
        value ^= _REDUCTION
    return value.to_bytes(BLOCK_SIZE, "little")


def _xor(left: bytes, right: bytes) -> bytes:
    return bytes(a ^ b for a, b in zip(left, right))


def _block_cipher(key, encrypt: bool) -> Callable[[bytes], bytes]:
    cipher = Cipher(algorithms.AES(bytes(key)), modes.ECB())
    context = cipher.encryptor() if encrypt else cipher.decryptor()
    return context.update


def _initial_tweak(tweak_key, iv) -> bytes:
    raw_iv = bytes(iv)
    if len(raw_iv) != BLOCK_SIZE:
        raise ValueError(f"iv must be {BLOCK_SIZE} bytes, got {len(raw_iv)}")
    return _block_cipher(tweak_key, True)(raw_iv)


def _xex_block(cipher: Callable[[bytes], bytes], block: bytes, tweak: bytes) -> bytes:
    return _xor(cipher(_xor(block, tweak)), tweak)


def aes_crypt_xex(data_key, tweak_key, iv, data, encrypt) -> bytes:
    """Encrypt or decrypt a buffer whose length is a multiple of 16 with AES-XEX."""
    raw = bytes(data)
    if len(raw) % BLOCK_SIZE:
        raise ValueError("XEX data length must be a multiple of 16 bytes")
    cipher = _block_cipher(data_key, bool(encrypt))
    tweak = _initial_tweak(tweak_key, iv)
    output = bytearray()
    for offset in range(0, len(raw), BLOCK_SIZE):
        output += _xex_block(cipher, raw[offset:offset + BLOCK_SIZE], tweak)
        tweak = gf128_mul_x(tweak)
    return bytes(output)


def aes_crypt_xts(data_key, tweak_key, iv, data, encrypt) -> bytes:
    """Encrypt or decrypt a buffer of at least 16 bytes with AES-XTS."""
    raw = bytes(data)
    if len(raw) < BLOCK_SIZE:
        raise ValueError("XTS needs at least one complete 16-byte block")
    encrypt = bool(encrypt)
    cipher = _block_cipher(data_key, encrypt)
    tweak = _initial_tweak(tweak_key, iv)

    full_blocks, remaining = divmod(len(raw), BLOCK_SIZE)
    straight_blocks = full_blocks if remaining == 0 or encrypt else full_blocks - 1

    output = bytearray()
    for index in range(straight_blocks):
        offset = index * BLOCK_SIZE
        output += _xex_block(cipher, raw[offset:offset + BLOCK_SIZE], tweak)
        tweak = gf128_mul_x(tweak)

    if remaining == 0:
        return bytes(output)

    tail = raw[full_blocks * BLOCK_SIZE:]
    if encrypt:
        stolen = bytes(output[-BLOCK_SIZE:])
        merged = tail + stolen[remaining:]
        output[-BLOCK_SIZE:] = _xex_block(cipher, merged, tweak)
        output += stolen[:remaining]
    else:
        next_tweak = gf128_mul_x(tweak)
        last_full = raw[(full_blocks - 1) * BLOCK_SIZE:full_blocks * BLOCK_SIZE]
        merged = _xex_block(cipher, last_full, next_tweak)
        stolen = tail + merged[remaining:]
        output += _xex_block(cipher, stolen, tweak)
        output += merged[:remaining]
    return bytes(output)