import unittest
from binascii import unhexlify

from bundlestream.error import CipherError
from bundlestream.crypto.hash import sha1, derive_key, KEY_DERIVATION_BLOCK
from bundlestream.crypto.crypt import aes_ecb_encrypt, aes_ecb_decrypt, StreamCipher


class TestKeyDerivation(unittest.TestCase):
    master_key = bytes(range(32))

    def test_layout(self):
        self.assertEqual(KEY_DERIVATION_BLOCK, b'\x00\x00\x00\x01')
        self.assertEqual(
            derive_key(self.master_key, 'index.html'),
            sha1(self.master_key + b'\x00\x00\x00\x01' + b'index.html')[:16]
        )

    def test_deterministic(self):
        key = derive_key(self.master_key, 'AES')
        self.assertEqual(len(key), 16)
        self.assertEqual(key, derive_key(self.master_key, 'AES'))
        self.assertEqual(key, derive_key(self.master_key, b'AES'))

    def test_salts_and_master_keys_give_different_keys(self):
        self.assertNotEqual(derive_key(self.master_key, 'a.html'), derive_key(self.master_key, 'b.html'))
        self.assertNotEqual(derive_key(self.master_key, 'a.html'), derive_key(bytes(32), 'a.html'))

    def test_unicode_salt_is_utf8(self):
        self.assertEqual(derive_key(self.master_key, 'é.html'), derive_key(self.master_key, 'é.html'.encode()))


class TestAESECB(unittest.TestCase):
    # FIPS-197 appendix C.1
    key = unhexlify('000102030405060708090a0b0c0d0e0f')
    plaintext = unhexlify('00112233445566778899aabbccddeeff')
    ciphertext = unhexlify('69c4e0d86a7b0430d8cdb78070b4c55a')

    def test_known_answer(self):
        encrypted = aes_ecb_encrypt(self.key, self.plaintext)
        self.assertEqual(len(encrypted), 32)  # full padding block
        self.assertEqual(encrypted[:16], self.ciphertext)
        self.assertEqual(aes_ecb_decrypt(self.key, encrypted), self.plaintext)

    def test_identical_blocks_cipher_identically(self):
        encrypted = aes_ecb_encrypt(self.key, self.plaintext * 3)
        self.assertEqual(encrypted[:16], encrypted[16:32])
        self.assertEqual(encrypted[16:32], encrypted[32:48])

    def test_padding(self):
        for size in (0, 1, 15, 16, 17, 100):
            encrypted = aes_ecb_encrypt(self.key, b'x' * size)
            self.assertEqual(len(encrypted), (size // 16 + 1) * 16)
            self.assertEqual(aes_ecb_decrypt(self.key, encrypted), b'x' * size)

    def test_bad_input(self):
        with self.assertRaises(CipherError):
            aes_ecb_decrypt(self.key, b'short')
        with self.assertRaises(CipherError):
            aes_ecb_encrypt(b'bad key', b'data')

    def test_wrong_key_fails_or_garbles(self):
        encrypted = aes_ecb_encrypt(self.key, b'some properties text')
        try:
            decrypted = aes_ecb_decrypt(bytes(16), encrypted)
        except CipherError:
            return
        self.assertNotEqual(decrypted, b'some properties text')


class TestStreamCipher(unittest.TestCase):
    key = bytes(range(16))

    def run_cipher(self, cipher, chunks):
        return b''.join(cipher.update(chunk) for chunk in chunks) + cipher.finalize()

    def test_matches_one_shot(self):
        data = bytes(range(256)) * 5
        for chunk_size in (1, 7, 16, 33, 4096):
            chunks = [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)]
            encrypted = self.run_cipher(StreamCipher(self.key, True), chunks)
            self.assertEqual(encrypted, aes_ecb_encrypt(self.key, data))
            self.assertEqual(self.run_cipher(StreamCipher(self.key, False), [encrypted]), data)

    def test_operation(self):
        self.assertEqual(StreamCipher(self.key, True).operation, 'encrypt')
        self.assertEqual(StreamCipher(self.key, False).operation, 'decrypt')

    def test_truncated_ciphertext(self):
        encrypted = aes_ecb_encrypt(self.key, b'x' * 40)
        with self.assertRaises(CipherError):
            self.run_cipher(StreamCipher(self.key, False), [encrypted[:-5]])
