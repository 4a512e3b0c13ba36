import os
import asyncio
import logging
import typing

from bundlestream.conf import Config
from bundlestream.error import UnknownBundleTypeError, UnsupportedOperationError
from bundlestream.bundle.source import BundleSource
from bundlestream.bundle.sink import BundleSink
from bundlestream.bundle.crypto import CryptoTransform
from bundlestream.bundle.pipeline import pipe
from bundlestream.formats.agb import BinaryContainerSource, BinaryContainerSink
from bundlestream.formats.aggregion import AggregionZipSource, AggregionZipSink
from bundlestream.formats.zip import ZipSource, ZipSink
from bundlestream.formats.epub import EpubSource
from bundlestream.formats.directory import DirectorySource
from bundlestream.formats.single_file import SingleFileSource
from bundlestream.formats.web import WebSink

log = logging.getLogger(__name__)


class BundleFormat(typing.NamedTuple):
    name: str
    source: typing.Optional[typing.Type[BundleSource]]
    sink: typing.Optional[typing.Type[BundleSink]]
    extension: typing.Optional[str] = None


FORMATS: typing.Dict[str, BundleFormat] = {}

# formats tried in order when no explicit type is given, the single file
# format catches everything the others did not claim
SNIFF_ORDER = ['directory', 'epub', 'aggregion', 'agb', 'zip', 'singleFile']


def register_format(bundle_format: BundleFormat):
    FORMATS[bundle_format.name] = bundle_format


register_format(BundleFormat('directory', DirectorySource, None))
register_format(BundleFormat('epub', EpubSource, None, '.epub'))
register_format(BundleFormat('aggregion', AggregionZipSource, AggregionZipSink, '.aggregion'))
register_format(BundleFormat('agb', BinaryContainerSource, BinaryContainerSink, '.agb'))
register_format(BundleFormat('zip', ZipSource, ZipSink, '.zip'))
register_format(BundleFormat('singleFile', SingleFileSource, None))
register_format(BundleFormat('web', None, WebSink))


def _matches(bundle_format: BundleFormat, path: str) -> bool:
    if bundle_format.name == 'directory':
        return os.path.isdir(path)
    if bundle_format.name == 'singleFile':
        return True
    _, ext = os.path.splitext(path)
    return bundle_format.extension is not None and ext.lower() == bundle_format.extension


def resolve(path: str, type_name: typing.Optional[str] = None) -> BundleFormat:
    """ Format for an explicit type name, or the first format in `SNIFF_ORDER` claiming `path`. """
    if type_name:
        if type_name not in FORMATS:
            raise UnknownBundleTypeError(type_name)
        return FORMATS[type_name]
    for name in SNIFF_ORDER:
        bundle_format = FORMATS[name]
        if _matches(bundle_format, path):
            log.debug("resolved %s as %s", path, name)
            return bundle_format
    raise UnknownBundleTypeError(path)


class BundleService:
    """ Creates sources, sinks and crypto transforms, and runs conversions between them. """

    def __init__(self, loop: typing.Optional[asyncio.AbstractEventLoop] = None,
                 conf: typing.Optional[Config] = None):
        self.loop = loop or asyncio.get_running_loop()
        self.conf = conf or Config()

    def create_source(self, path: str, type_name: typing.Optional[str] = None, **options) -> BundleSource:
        bundle_format = resolve(path, type_name)
        if bundle_format.source is None:
            raise UnsupportedOperationError(bundle_format.name, "reading")
        return bundle_format.source(self.loop, path, conf=self.conf, **options)

    def create_sink(self, path: str, type_name: typing.Optional[str] = None, **options) -> BundleSink:
        bundle_format = resolve(path, type_name)
        if bundle_format.sink is None:
            raise UnsupportedOperationError(bundle_format.name, "writing")
        return bundle_format.sink(self.loop, path, conf=self.conf, **options)

    @staticmethod
    def create_encryptor(key: bytes) -> CryptoTransform:
        return CryptoTransform.encryptor(key)

    @staticmethod
    def create_decryptor(key: bytes) -> CryptoTransform:
        return CryptoTransform.decryptor(key)

    async def convert(self, source: BundleSource, sink: BundleSink,
                      decrypt_key: typing.Optional[bytes] = None, encrypt_key: typing.Optional[bytes] = None) -> int:
        transforms = []
        if decrypt_key:
            transforms.append(self.create_decryptor(decrypt_key))
        if encrypt_key:
            transforms.append(self.create_encryptor(encrypt_key))
        return await pipe(source, sink, *transforms)
