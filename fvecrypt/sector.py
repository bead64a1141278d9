"""Sector-level encryption and decryption with the full volume encryption key."""

from __future__ import annotations

from enum import Enum, IntEnum, IntFlag

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .aes_xts import aes_crypt_xts
from .diffuser import (
    diffuser_a_decrypt,
    diffuser_a_encrypt,
    diffuser_b_decrypt,
    diffuser_b_encrypt,
)
from .errors import DislockerError, ReturnCode, UnsupportedAlgorithmError

_BLOCK_SIZE = 16
_SECTOR_KEY_SIZE = 32


class CipherType(IntEnum):
    """Cipher identifiers found in volume metadata."""

    STRETCH_KEY = 0x1000
    AES_CCM_256_0 = 0x2000
    AES_CCM_256_1 = 0x2001
    EXTERN_KEY = 0x2002
    VMK = 0x2003
    AES_CCM_256_2 = 0x2004
    HASH_256 = 0x2005

    AES_128_DIFFUSER = 0x8000
    AES_256_DIFFUSER = 0x8001
    AES_128_NO_DIFFUSER = 0x8002
    AES_256_NO_DIFFUSER = 0x8003
    AES_XTS_128 = 0x8004
    AES_XTS_256 = 0x8005

    LOWEST_SUPPORTED = 0x8000
    HIGHEST_SUPPORTED = 0x8005


class _Flags(IntFlag):
    NONE = 0
    USE_DIFFUSER = 1 << 0


class _Mode(Enum):
    CBC = "cbc"
    CBC_DIFFUSER = "cbc-diffuser"
    XTS = "xts"


# algorithm -> (data key slice, tweak key slice or None)
_KEY_LAYOUT = {
    CipherType.AES_128_DIFFUSER: (slice(0, 16), slice(0x20, 0x30)),
    CipherType.AES_128_NO_DIFFUSER: (slice(0, 16), None),
    CipherType.AES_256_DIFFUSER: (slice(0, 32), slice(0x20, 0x40)),
    CipherType.AES_256_NO_DIFFUSER: (slice(0, 32), None),
    CipherType.AES_XTS_128: (slice(0, 16), slice(0x10, 0x20)),
    CipherType.AES_XTS_256: (slice(0, 32), slice(0x20, 0x40)),
}


def _address_block(value: int) -> bytes:
    return int(value).to_bytes(8, "little", signed=True) + bytes(8)


def _truncating_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _ecb_encrypt(key: bytes, data: bytes) -> bytes:
    return Cipher(algorithms.AES(key), modes.ECB()).encryptor().update(data)


class SectorCipher:
    """Encrypts and decrypts volume sectors with the scheme of a given disk cipher."""

    def __init__(self, sector_size, disk_cipher):
        self.sector_size = int(sector_size)
        self.disk_cipher = int(disk_cipher)
        self._flags = _Flags.NONE
        if self.disk_cipher in (CipherType.AES_128_DIFFUSER, CipherType.AES_256_DIFFUSER):
            self._flags |= _Flags.USE_DIFFUSER
            self._mode = _Mode.CBC_DIFFUSER
        elif self.disk_cipher in (CipherType.AES_XTS_128, CipherType.AES_XTS_256):
            self._mode = _Mode.XTS
        else:
            self._mode = _Mode.CBC
        self._fvek_key: bytes | None = None
        self._tweak_key: bytes | None = None

    def uses_diffuser(self) -> bool:
        """Tell whether sectors go through the Elephant diffuser."""
        return bool(self._flags & _Flags.USE_DIFFUSER)

    def set_fvek(self, algorithm, fvek) -> None:
        """Install the data and tweak keys taken from a raw FVEK for an algorithm."""
        if fvek is None:
            raise DislockerError(ReturnCode.ERROR_DISLOCKER_INVAL, "No FVEK given")
        try:
            layout = _KEY_LAYOUT[CipherType(int(algorithm))]
        except (ValueError, KeyError):
            raise UnsupportedAlgorithmError(int(algorithm)) from None
        raw = bytes(fvek)
        data_slice, tweak_slice = layout
        needed = max(data_slice.stop, tweak_slice.stop if tweak_slice else 0)
        if len(raw) < needed:
            raise DislockerError(
                ReturnCode.ERROR_DISLOCKER_INVAL,
                f"FVEK too short: {len(raw)} bytes, {needed} needed",
            )
        self._fvek_key = raw[data_slice]
        if tweak_slice is not None:
            self._tweak_key = raw[tweak_slice]

    def encrypt_sector(self, sector, sector_address) -> bytes:
        """Encrypt one sector located at the given byte address."""
        data = self._check_sector(sector)
        if self._mode is _Mode.XTS:
            return self._xts(data, sector_address, encrypt=True)
        if self._mode is _Mode.CBC_DIFFUSER:
            keyed = self._apply_sector_key(data, sector_address)
            diffused = diffuser_b_encrypt(diffuser_a_encrypt(keyed))
            return self._cbc(diffused, sector_address, encrypt=True)
        return self._cbc(data, sector_address, encrypt=True)

    def decrypt_sector(self, sector, sector_address) -> bytes:
        """Decrypt one sector located at the given byte address."""
        data = self._check_sector(sector)
        if self._mode is _Mode.XTS:
            return self._xts(data, sector_address, encrypt=False)
        if self._mode is _Mode.CBC_DIFFUSER:
            plain = self._cbc(data, sector_address, encrypt=False)
            undiffused = diffuser_a_decrypt(diffuser_b_decrypt(plain))
            return self._apply_sector_key(undiffused, sector_address)
        return self._cbc(data, sector_address, encrypt=False)

    def _check_sector(self, sector) -> bytes:
        if sector is None:
            raise DislockerError(ReturnCode.ERROR_DISLOCKER_INVAL, "No sector given")
        data = bytes(sector)
        if len(data) != self.sector_size:
            raise ValueError(
                f"sector must be {self.sector_size} bytes, got {len(data)}"
            )
        return data

    def _require(self, key: bytes | None, name: str) -> bytes:
        if key is None:
            raise DislockerError(
                ReturnCode.ERROR_DISLOCKER_NOT_INITIALIZED, f"{name} key not set"
            )
        return key

    def _cbc(self, data: bytes, sector_address, encrypt: bool) -> bytes:
        key = self._require(self._fvek_key, "FVEK")
        if len(data) % _BLOCK_SIZE:
            raise ValueError("CBC sector size must be a multiple of 16 bytes")
        iv = _ecb_encrypt(key, _address_block(sector_address))
        cipher = Cipher(algorithms.AES(key), modes.CBC(iv))
        context = cipher.encryptor() if encrypt else cipher.decryptor()
        return context.update(data) + context.finalize()

    def _apply_sector_key(self, data: bytes, sector_address) -> bytes:
        tweak = self._require(self._tweak_key, "tweak")
        block = _address_block(sector_address)
        sector_key = _ecb_encrypt(tweak, block + block[:15] + b"\x80")
        return bytes(
            byte ^ sector_key[index % _SECTOR_KEY_SIZE] for index, byte in enumerate(data)
        )

    def _xts(self, data: bytes, sector_address, encrypt: bool) -> bytes:
        key = self._require(self._fvek_key, "FVEK")
        tweak = self._require(self._tweak_key, "tweak")
        iv = _address_block(_truncating_div(int(sector_address), self.sector_size))
        return aes_crypt_xts(key, tweak, iv, data, encrypt)