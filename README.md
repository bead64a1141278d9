# fvecrypt

Cryptographic building blocks for BitLocker-encrypted volumes: per-sector
encryption and decryption for every BitLocker disk cipher, AES-CCM key
unwrapping for protected keys such as the VMK and FVEK, and the helpers
these rely on.

## What it provides

- `fvecrypt.sector.SectorCipher` encrypts and decrypts one sector at a time.
  It covers AES-CBC with and without the Elephant diffuser, in 128 and 256
  bits, and AES-XTS in 128 and 256 bits. `fvecrypt.sector.CipherType` lists
  the cipher identifiers found in volume metadata.
- `fvecrypt.ccm` holds the AES-CCM variant used to protect keys:
  `ccm_crypt` applies the counter keystream to data and a MAC,
  `compute_tag` computes the authentication tag of plaintext, and
  `decrypt_key` does both and checks the tag, raising `MacMismatchError`
  when it does not match.
- `fvecrypt.aes_xts` provides `aes_crypt_xts` (with ciphertext stealing for
  lengths that are not a multiple of 16), `aes_crypt_xex` and the GF(2^128)
  doubling `gf128_mul_x`.
- `fvecrypt.diffuser` holds the Elephant diffuser A and B in both
  directions: `diffuser_a_encrypt`, `diffuser_a_decrypt`,
  `diffuser_b_encrypt` and `diffuser_b_decrypt`.
- `fvecrypt.crc32.crc32` computes the standard reflected CRC-32
  (polynomial 0xEDB88320).
- `fvecrypt.errors` defines `ReturnCode`, `DislockerError` (which carries a
  `ReturnCode` in its `code` attribute) and `UnsupportedAlgorithmError`.

## Installing

```
pip install fvecrypt
```

## Encrypting and decrypting a sector

Build a `SectorCipher` from the volume's sector size and the disk cipher,
give it the raw FVEK with `set_fvek`, then pass each sector's contents
together with its byte address on the volume.

```python
from fvecrypt.sector import CipherType, SectorCipher

fvek = bytes(64)  # placeholder key material
cipher = SectorCipher(512, CipherType.AES_XTS_128)
cipher.set_fvek(CipherType.AES_XTS_128, fvek)

encrypted = cipher.encrypt_sector(bytes(512), 0x10000)
assert cipher.decrypt_sector(encrypted, 0x10000) == bytes(512)
```

`set_fvek` raises `UnsupportedAlgorithmError` for an algorithm that is not a
disk cipher, and `DislockerError` when the FVEK is too short for it. Using a
cipher before its keys are set raises `DislockerError` with
`ReturnCode.ERROR_DISLOCKER_NOT_INITIALIZED`; a sector whose length is not
the configured sector size raises `ValueError`.

## Unwrapping a key

`decrypt_key` takes the encrypted payload, the 16-byte MAC, the 12-byte
nonce and the AES key that protects it.

```python
from fvecrypt.ccm import MacMismatchError, decrypt_key

try:
    clear = decrypt_key(encrypted_payload, mac, nonce, key)
except MacMismatchError:
    ...  # wrong key
```

## What it does not do

This package works on bytes you hand it. It does not open volumes, parse
volume headers or metadata datums, derive keys from recovery or user
passwords, read key files, or present a decrypted volume as a device or
file. It has no command-line tool.

## Running the tests

```
pip install -e .[test]
pytest
```