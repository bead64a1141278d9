"""Sector ciphers, AES-CCM key unwrapping, XTS, diffuser and CRC-32 for BitLocker volumes."""

__version__ = "0.7.2"
__all__ = ["aes_xts", "ccm", "crc32", "diffuser", "errors", "sector"]