import asyncio
import logging
import typing

from bundlestream.conf import Config
from bundlestream.error import IndexResolutionError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import PropsValue
from bundlestream.bundle.source import BundleSource, SourceFile
from bundlestream.bundle.sink import BundleSink
from bundlestream.formats.archive import ZipArchiveReader, ZipArchiveWriter

log = logging.getLogger(__name__)

INDEX_FILES = ('index.pdf', 'index.html')


class ZipSource(BundleSource):
    """
    Reads a plain ZIP archive as a bundle.

    Bundle info and properties are taken from the caller. Without caller
    properties the main file is looked up among the archive's index files.
    """

    type_name = 'zip'

    def _prepare(self):
        self._reader = ZipArchiveReader(self.loop, self.path)

    def _resolve_props(self) -> BundleProps:
        if self.extra_props is not None:
            return BundleProps.from_mapping(self.extra_props)
        for index_file in INDEX_FILES:
            if self._reader.has_member(index_file):
                log.debug("resolved main file of %s to %s", self.path, index_file)
                return BundleProps({'main_file': index_file})
        raise IndexResolutionError(self.path)

    async def _initialize(self):
        await self._reader.open()
        self._info = BundleProps.from_mapping(self.extra_info or {})
        self._props = self._resolve_props()
        for member in self._reader.members():
            self._files.append(SourceFile(member.filename, BundleProps({'size': member.file_size}), member))

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        return self._reader.open_content(source_file.locator, self.conf.chunk_size)

    async def _close(self):
        self._reader.close()


class ZipSink(BundleSink):
    """ Writes bundle files into a plain ZIP archive, bundle info and properties are dropped. """

    type_name = 'zip'

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str,
                 info: typing.Optional[typing.Mapping] = None, conf: typing.Optional[Config] = None):
        super().__init__(loop, path, info, conf)
        self._writer = ZipArchiveWriter(loop, path, self.conf.zip_compression)

    async def _write_file(self, bundle_path: str, content: BundleContent, props: typing.Optional[PropsValue]):
        await self._writer.write_content(bundle_path, content)

    async def _finalize(self):
        await self._writer.finalize()

    async def _abort(self):
        self._writer.close()
