import os
import logging
import typing

from bundlestream.error import NotFoundError
from bundlestream.utils import to_bundle_path
from bundlestream.schema.mime_types import guess_media_type
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent, FileSystemContent
from bundlestream.bundle.source import BundleSource, SourceFile

log = logging.getLogger(__name__)


def walk_files(root: str) -> typing.List[typing.Tuple[str, str, int]]:
    """ (bundle path, file path, size) of every file below `root`, sorted by bundle path. """
    found = []
    for dir_path, dir_names, file_names in os.walk(root):
        dir_names.sort()
        for file_name in file_names:
            file_path = os.path.join(dir_path, file_name)
            bundle_path = to_bundle_path(file_path, root)
            found.append((bundle_path, file_path, os.stat(file_path).st_size))
    found.sort(key=lambda item: item[0])
    return found


class DirectorySource(BundleSource):
    """
    Reads a directory tree as a bundle. Info and properties come from the
    caller; the info gains a `content_type` guessed from the main file.
    """

    type_name = 'directory'

    def _prepare(self):
        if not os.path.isdir(self.path):
            raise NotFoundError(self.path)

    def _resolve_info(self, props: BundleProps) -> BundleProps:
        info = BundleProps.from_mapping(self.extra_info or {})
        main_file = props.get('main_file')
        if main_file:
            return info.merge({'content_type': guess_media_type(main_file)})
        return info

    async def _initialize(self):
        self._props = BundleProps.from_mapping(self.extra_props or {})
        self._info = self._resolve_info(self._props)
        for bundle_path, file_path, size in await self.loop.run_in_executor(None, walk_files, self.path):
            self._files.append(SourceFile(bundle_path, BundleProps({'size': size}), file_path))

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        return FileSystemContent(self.loop, source_file.locator, self.conf.chunk_size)
