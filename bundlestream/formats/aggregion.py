import asyncio
import logging
import typing

from bundlestream.conf import Config
from bundlestream.error import ParseError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import PropsValue
from bundlestream.bundle.source import BundleSource, SourceFile
from bundlestream.bundle.sink import BundleSink
from bundlestream.formats.archive import ZipArchiveReader, ZipArchiveWriter

log = logging.getLogger(__name__)

INFO_MEMBER = 'meta/.bundleinfo'
PROPS_MEMBER = 'meta/.bundleprops'
DATA_PREFIX = 'data/'


def _props_data(props: PropsValue) -> bytes:
    if isinstance(props, BundleProps):
        return props.to_bytes()
    return bytes(props)


class AggregionZipSource(BundleSource):
    """
    Reads a ZIP based (.aggregion) bundle.

    Bundle info and properties live in the `meta/` members, files under
    `data/`. Per-file properties are kept in the member comment; members
    without one get their uncompressed size. With `encrypted` set, bundle
    properties and stored file properties are handed on as opaque bytes.
    """

    type_name = 'aggregion'

    def _prepare(self):
        self._reader = ZipArchiveReader(self.loop, self.path)

    async def _read_meta(self, name: str) -> bytes:
        if not self._reader.has_member(name):
            raise ParseError(f"bundle {self.path}", f"missing {name}")
        return await self._reader.read_member(name)

    def _decode_file_props(self, member) -> PropsValue:
        if not member.comment:
            return BundleProps({'size': member.file_size})
        if self.encrypted:
            return bytes(member.comment)
        return BundleProps.from_json(member.comment)

    async def _initialize(self):
        await self._reader.open()
        self._info = BundleProps.from_json(await self._read_meta(INFO_MEMBER))
        props_data = await self._read_meta(PROPS_MEMBER)
        self._props = props_data if self.encrypted else BundleProps.from_json(props_data)
        for member in self._reader.members():
            if member.filename.startswith(DATA_PREFIX):
                bundle_path = member.filename[len(DATA_PREFIX):]
                self._files.append(SourceFile(bundle_path, self._decode_file_props(member), member))

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        return self._reader.open_content(source_file.locator, self.conf.chunk_size)

    async def _close(self):
        self._reader.close()


class AggregionZipSink(BundleSink):
    """ Writes a ZIP based (.aggregion) bundle. """

    type_name = 'aggregion'

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str,
                 info: typing.Optional[typing.Mapping] = None, conf: typing.Optional[Config] = None):
        super().__init__(loop, path, info, conf)
        self._writer = ZipArchiveWriter(loop, path, self.conf.zip_compression)

    async def _write_info(self, info: BundleProps):
        if isinstance(info, BundleProps):
            info = info.merge(self.extra_info)
        await self._writer.write_bytes(INFO_MEMBER, _props_data(info))

    async def _write_props(self, props: PropsValue):
        await self._writer.write_bytes(PROPS_MEMBER, _props_data(props))

    async def _write_file(self, bundle_path: str, content: BundleContent, props: typing.Optional[PropsValue]):
        comment = _props_data(props) if props is not None else None
        await self._writer.write_content(DATA_PREFIX + bundle_path, content, comment)

    async def _finalize(self):
        await self._writer.finalize()

    async def _abort(self):
        self._writer.close()
