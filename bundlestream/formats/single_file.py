import os

from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent, FileSystemContent
from bundlestream.bundle.source import BundleSource, SourceFile


def index_name(path: str) -> str:
    _, ext = os.path.splitext(path)
    return 'index' + ext.lower()


class SingleFileSource(BundleSource):
    """ A single loose file, bundled as `index<ext>` and declared as the main file. """

    type_name = 'singleFile'

    async def _initialize(self):
        bundle_path = index_name(self.path)
        size = (await self.loop.run_in_executor(None, os.stat, self.path)).st_size
        self._info = BundleProps()
        self._props = BundleProps({'main_file': bundle_path})
        self._files.append(SourceFile(bundle_path, BundleProps({'size': size}), self.path))

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        return FileSystemContent(self.loop, source_file.locator, self.conf.chunk_size)
