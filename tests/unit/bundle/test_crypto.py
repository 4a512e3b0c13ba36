import os

from bundlestream.testcase import AsyncioTestCase
from bundlestream.error import InvalidKeyError, CipherError
from bundlestream.crypto.hash import derive_key
from bundlestream.crypto.crypt import aes_ecb_encrypt
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BytesContent
from bundlestream.bundle.entry import BundleInfoEntry, BundlePropsEntry, FileEntry, END
from bundlestream.bundle.crypto import CryptoTransform, CipherMode, PROPS_SALT


class TestCryptoTransform(AsyncioTestCase):
    key = bytes(range(32))

    def test_key_must_be_256_bits(self):
        for key in (b'', os.urandom(16), os.urandom(31), os.urandom(33), os.urandom(64)):
            with self.assertRaises(InvalidKeyError) as error:
                CryptoTransform.encryptor(key)
            self.assertEqual(error.exception.length, len(key) * 8)
        with self.assertRaises(InvalidKeyError):
            CryptoTransform('0' * 64, CipherMode.DECRYPT)
        self.assertTrue(CryptoTransform.encryptor(self.key).encrypting)
        self.assertFalse(CryptoTransform.decryptor(self.key).encrypting)

    def test_info_and_end_pass_through(self):
        info = BundleInfoEntry(BundleProps({'title': 'Book'}))
        for transform in (CryptoTransform.encryptor(self.key), CryptoTransform.decryptor(self.key)):
            self.assertIs(transform(info), info)
            self.assertIs(transform(END), END)

    def test_bundle_props_use_fixed_salt(self):
        props = BundleProps({'main_file': 'index.html'})
        encrypted = CryptoTransform.encryptor(self.key)(BundlePropsEntry(props))
        self.assertIsInstance(encrypted.value, bytes)
        self.assertEqual(encrypted.value, aes_ecb_encrypt(derive_key(self.key, PROPS_SALT), props.to_bytes()))
        decrypted = CryptoTransform.decryptor(self.key)(encrypted)
        self.assertEqual(decrypted.value, props)

    def test_decrypting_structured_props_passes_them_through(self):
        props = BundlePropsEntry(BundleProps({'main_file': 'index.html'}))
        self.assertEqual(CryptoTransform.decryptor(self.key)(props).value, props.value)

    def test_wrong_key_fails_to_decrypt_props(self):
        encrypted = CryptoTransform.encryptor(self.key)(BundlePropsEntry(BundleProps({'main_file': 'index.html'})))
        with self.assertRaises(CipherError):
            CryptoTransform.decryptor(os.urandom(32))(encrypted)

    async def test_file_round_trip(self):
        data = os.urandom(100 * 1024 + 3)
        entry = FileEntry('OEBPS/chapter1.xhtml', BytesContent(self.loop, data, 4096), BundleProps({'size': len(data)}))
        encrypted = CryptoTransform.encryptor(self.key)(entry)
        self.assertEqual(encrypted.bundle_path, entry.bundle_path)
        self.assertIsInstance(encrypted.props, bytes)
        ciphertext = await encrypted.content.read()
        self.assertEqual(len(ciphertext), (len(data) // 16 + 1) * 16)
        self.assertEqual(ciphertext, aes_ecb_encrypt(derive_key(self.key, entry.bundle_path), data))
        self.assertTrue(entry.content.is_closed)

        decrypted = CryptoTransform.decryptor(self.key)(
            FileEntry(entry.bundle_path, BytesContent(self.loop, ciphertext, 1000), encrypted.props)
        )
        self.assertEqual(await decrypted.content.read(), data)
        self.assertEqual(decrypted.props, BundleProps({'size': len(data)}))

    async def test_file_key_depends_on_path(self):
        data = b'same content' * 10
        encryptor = CryptoTransform.encryptor(self.key)
        first = encryptor(FileEntry('a.html', BytesContent(self.loop, data)))
        second = encryptor(FileEntry('b.html', BytesContent(self.loop, data)))
        self.assertIsNone(first.props)
        self.assertNotEqual(await first.content.read(), await second.content.read())

    async def test_wrong_key_does_not_reproduce_content(self):
        data = b'secret chapter' * 50
        encrypted = CryptoTransform.encryptor(self.key)(FileEntry('a.html', BytesContent(self.loop, data)))
        ciphertext = await encrypted.content.read()
        decrypted = CryptoTransform.decryptor(os.urandom(32))(FileEntry('a.html', BytesContent(self.loop, ciphertext)))
        try:
            self.assertNotEqual(await decrypted.content.read(), data)
        except CipherError:
            pass

    async def test_apply(self):
        async def entries():
            yield BundleInfoEntry(BundleProps())
            yield BundlePropsEntry(BundleProps({'main_file': 'a'}))
            yield END

        transformed = [entry async for entry in CryptoTransform.encryptor(self.key).apply(entries())]
        self.assertEqual(transformed[0].value, BundleProps())
        self.assertIsInstance(transformed[1].value, bytes)
        self.assertIs(transformed[2], END)
