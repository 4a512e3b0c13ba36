import struct
import hashlib

KEY_DERIVATION_BLOCK = struct.pack('>I', 1)
DERIVED_KEY_LENGTH = 16


def sha1(x):
    """ Simple wrapper of hashlib sha1. """
    return hashlib.sha1(x).digest()


def derive_key(master_key: bytes, salt) -> bytes:
    """ 128-bit key for one salt: first 16 bytes of SHA1(master key + uint32be(1) + salt). """
    if isinstance(salt, str):
        salt = salt.encode()
    return sha1(master_key + KEY_DERIVATION_BLOCK + salt)[:DERIVED_KEY_LENGTH]
