import logging

from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.source import BundleSource, SourceFile
from bundlestream.formats.archive import ZipArchiveReader

log = logging.getLogger(__name__)

PACKAGE_DOCUMENT_SUFFIX = 'content.opf'


class EpubSource(BundleSource):
    """
    Reads an EPUB publication as a bundle whose main file is its package
    document. Empty members are left out, and a publication without a
    `content.opf` is streamed with empty properties.
    """

    type_name = 'epub'

    def _prepare(self):
        self._reader = ZipArchiveReader(self.loop, self.path)

    async def _initialize(self):
        await self._reader.open()
        main_file = None
        for member in self._reader.members():
            if member.file_size <= 0:
                continue
            self._files.append(SourceFile(member.filename, BundleProps({'size': member.file_size}), member))
            if member.filename.lower().endswith(PACKAGE_DOCUMENT_SUFFIX):
                main_file = member.filename
        self._info = BundleProps()
        if main_file is None:
            log.warning("no package document found in %s", self.path)
            self._props = BundleProps()
        else:
            log.debug("package document of %s is %s", self.path, main_file)
            self._props = BundleProps({'main_file': main_file})

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        return self._reader.open_content(source_file.locator, self.conf.chunk_size)

    async def _close(self):
        self._reader.close()
