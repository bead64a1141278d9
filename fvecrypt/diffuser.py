"""Elephant diffuser A and B used by AES-CBC with diffuser sector encryption."""

from __future__ import annotations

import struct

_MASK = 0xFFFFFFFF
_A_CYCLES = 5
_A_ROTATIONS = (9, 0, 13, 0)
_B_CYCLES = 3
_B_ROTATIONS = (0, 10, 0, 25)


def _rotl(value: int, amount: int) -> int:
    amount %= 32
    if amount == 0:
        return value
    return ((value << amount) | (value >> (32 - amount))) & _MASK


def _split(sector) -> tuple[list[int], bytes]:
    raw = bytes(sector)
    count = len(raw) // 4
    words = list(struct.unpack_from(f"<{count}I", raw))
    return words, raw[count * 4:]


def _join(words: list[int], tail: bytes) -> bytes:
    return struct.pack(f"<{len(words)}I", *words) + tail


def _diffuse(sector, cycles, rotations, near, far, encrypt) -> bytes:
    words, tail = _split(sector)
    n = len(words)
    if n == 0:
        return bytes(sector)
    order = range(n - 1, -1, -1) if encrypt else range(n)
    for _ in range(cycles):
        for i in order:
            mix = words[(i + near) % n] ^ _rotl(words[(i + far) % n], rotations[i % 4])
            if encrypt:
                words[i] = (words[i] - mix) & _MASK
            else:
                words[i] = (words[i] + mix) & _MASK
    return _join(words, tail)


def diffuser_a_decrypt(sector) -> bytes:
    """Undo diffuser A over a sector of little-endian 32-bit words."""
    return _diffuse(sector, _A_CYCLES, _A_ROTATIONS, -2, -5, encrypt=False)


def diffuser_b_decrypt(sector) -> bytes:
    """Undo diffuser B over a sector of little-endian 32-bit words."""
    return _diffuse(sector, _B_CYCLES, _B_ROTATIONS, 2, 5, encrypt=False)


def diffuser_a_encrypt(sector) -> bytes:
    """Apply diffuser A over a sector of little-endian 32-bit words."""
    return _diffuse(sector, _A_CYCLES, _A_ROTATIONS, -2, -5, encrypt=True)


def diffuser_b_encrypt(sector) -> bytes:
    """Apply diffuser B over a sector of little-endian 32-bit words."""
    return _diffuse(sector, _B_CYCLES, _B_ROTATIONS, 2, 5, encrypt=True)