import enum
import typing

from bundlestream.error import InvalidKeyError, CipherError, ParseError
from bundlestream.crypto.hash import derive_key
from bundlestream.crypto.crypt import aes_ecb_encrypt, aes_ecb_decrypt, StreamCipher
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import Entry, EntryType, PropsValue

MASTER_KEY_LENGTH = 32
PROPS_SALT = 'AES'


class CipherMode(str, enum.Enum):
    ENCRYPT = 'encrypt'
    DECRYPT = 'decrypt'


class CipherContent(BundleContent):
    """ Encrypts or decrypts another content handle while it is being read. """

    def __init__(self, inner: BundleContent, cipher: StreamCipher):
        super().__init__(inner.loop, inner.chunk_size)
        self.inner = inner
        self.cipher = cipher
        self._finalized = False

    async def _read_chunk(self, size: int) -> bytes:
        while not self._finalized:
            chunk = await self.inner.read_chunk()
            if chunk:
                transformed = self.cipher.update(chunk)
            else:
                self._finalized = True
                transformed = self.cipher.finalize()
            if transformed:
                return transformed
        return b''

    def _close(self):
        self.inner.close()

    def __repr__(self):
        return f"CipherContent({self.cipher.operation}, {self.inner!r})"


class CryptoTransform:
    """
    Encrypts or decrypts a stream of bundle entries with keys derived from one
    256-bit master key.

    File content and file properties are keyed by the file's bundle path,
    bundle properties by a fixed salt. Bundle info and the end entry pass
    through untouched. AES-128 in ECB mode without IV is used so that output
    stays compatible with bundles produced by earlier tools.
    """

    def __init__(self, key: bytes, mode: CipherMode):
        if not isinstance(key, (bytes, bytearray)):
            raise InvalidKeyError(0)
        if len(key) != MASTER_KEY_LENGTH:
            raise InvalidKeyError(len(key) * 8)
        self._key = bytes(key)
        self.mode = CipherMode(mode)

    @classmethod
    def encryptor(cls, key: bytes) -> 'CryptoTransform':
        return cls(key, CipherMode.ENCRYPT)

    @classmethod
    def decryptor(cls, key: bytes) -> 'CryptoTransform':
        return cls(key, CipherMode.DECRYPT)

    @property
    def encrypting(self) -> bool:
        return self.mode is CipherMode.ENCRYPT

    def derive_key(self, salt: typing.Union[str, bytes]) -> bytes:
        return derive_key(self._key, salt)

    def transform(self, entry: Entry) -> Entry:
        if entry.type is EntryType.FILE:
            content = CipherContent(entry.content, StreamCipher(self.derive_key(entry.bundle_path), self.encrypting))
            props = entry.props
            if props is not None:
                props = self.transform_props(entry.bundle_path, props)
            return entry._replace(content=content, props=props)
        if entry.type is EntryType.BUNDLE_PROPS:
            return entry._replace(value=self.transform_props(PROPS_SALT, entry.value))
        return entry

    __call__ = transform

    def transform_props(self, salt: str, props: PropsValue) -> PropsValue:
        if isinstance(props, BundleProps):
            if not self.encrypting:
                # nothing to decrypt, the source did not treat the bundle as encrypted
                return props
            data = props.to_bytes()
        else:
            data = bytes(props)
        key = self.derive_key(salt)
        if self.encrypting:
            return aes_ecb_encrypt(key, data)
        decrypted = aes_ecb_decrypt(key, data)
        try:
            return BundleProps.from_json(decrypted)
        except ParseError as e:
            raise CipherError("decrypt", f"decrypted properties for '{salt}' are not valid ({e.reason})")

    async def apply(self, entries: typing.AsyncIterator[Entry]) -> typing.AsyncIterator[Entry]:
        async for entry in entries:
            yield self.transform(entry)
