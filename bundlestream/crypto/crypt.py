from cryptography.hazmat.primitives.ciphers import Cipher, modes
from cryptography.hazmat.primitives.ciphers.algorithms import AES
from cryptography.hazmat.primitives.padding import PKCS7
from cryptography.hazmat.backends import default_backend

from bundlestream.error import CipherError

BACKEND = default_backend()


def _ecb_cipher(key: bytes) -> Cipher:
    try:
        return Cipher(AES(key), modes.ECB(), backend=BACKEND)
    except ValueError as e:
        raise CipherError("create cipher", str(e))


def aes_ecb_encrypt(key: bytes, value: bytes) -> bytes:
    encryptor = _ecb_cipher(key).encryptor()
    padder = PKCS7(AES.block_size).padder()
    padded_data = padder.update(value) + padder.finalize()
    return encryptor.update(padded_data) + encryptor.finalize()


def aes_ecb_decrypt(key: bytes, value: bytes) -> bytes:
    try:
        decryptor = _ecb_cipher(key).decryptor()
        unpadder = PKCS7(AES.block_size).unpadder()
        return unpadder.update(decryptor.update(value) + decryptor.finalize()) + unpadder.finalize()
    except ValueError as e:
        raise CipherError("decrypt", str(e))


class StreamCipher:
    """
    Incremental AES-ECB with PKCS7 padding, fed with arbitrarily sized chunks.
    """

    __slots__ = [
        'encrypting',
        '_context',
        '_padding',
    ]

    def __init__(self, key: bytes, encrypting: bool):
        self.encrypting = encrypting
        cipher = _ecb_cipher(key)
        if encrypting:
            self._context = cipher.encryptor()
            self._padding = PKCS7(AES.block_size).padder()
        else:
            self._context = cipher.decryptor()
            self._padding = PKCS7(AES.block_size).unpadder()

    @property
    def operation(self) -> str:
        return "encrypt" if self.encrypting else "decrypt"

    def update(self, data: bytes) -> bytes:
        try:
            if self.encrypting:
                return self._context.update(self._padding.update(data))
            return self._padding.update(self._context.update(data))
        except ValueError as e:
            raise CipherError(self.operation, str(e))

    def finalize(self) -> bytes:
        try:
            if self.encrypting:
                return self._context.update(self._padding.finalize()) + self._context.finalize()
            return self._padding.update(self._context.finalize()) + self._padding.finalize()
        except ValueError as e:
            raise CipherError(self.operation, str(e))
