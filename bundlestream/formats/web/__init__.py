import os
import html
import json
import shutil
import asyncio
import logging
import typing
from string import Template

from bundlestream.conf import Config
from bundlestream.error import IndexResolutionError, UnsupportedContentError, ParseError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import PropsValue
from bundlestream.bundle.sink import BundleSink

log = logging.getLogger(__name__)

DATA_DIR = '_data'
TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), 'data')

TEMPLATES = {
    '.opf': 'epub',
    '.html': 'html',
    '.htm': 'html',
    '.xhtml': 'html',
    '.pdf': 'pdf',
}


def get_template(main_file: str) -> str:
    _, ext = os.path.splitext(main_file)
    try:
        return TEMPLATES[ext.lower()]
    except KeyError:
        raise UnsupportedContentError(main_file)


def script_string(value: str) -> str:
    # JSON string literal that cannot close the surrounding <script> element
    return json.dumps(value).replace('<', '\\u003c').replace('>', '\\u003e').replace('&', '\\u0026')


def render_template(template: str, main_file: str, dest_dir: str):
    shutil.copytree(os.path.join(TEMPLATES_DIR, template), dest_dir, dirs_exist_ok=True)
    index_file = os.path.join(dest_dir, 'index.html')
    with open(index_file, 'r', encoding='utf-8') as f:
        page = Template(f.read()).safe_substitute(
            main_file=html.escape(main_file, quote=True),
            main_file_url=script_string(f"{DATA_DIR}/{main_file}")
        )
    with open(index_file, 'w', encoding='utf-8') as f:
        f.write(page)


class WebSink(BundleSink):
    """
    Exports a bundle as a directory that can be opened in a browser: files go
    to `_data/` and an `index.html` matching the main file type is rendered
    next to it.
    """

    type_name = 'web'

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str,
                 info: typing.Optional[typing.Mapping] = None, conf: typing.Optional[Config] = None):
        super().__init__(loop, path, info, conf)
        self.data_path = os.path.join(path, DATA_DIR)
        os.makedirs(self.data_path, exist_ok=True)
        self.main_file: typing.Optional[str] = None

    def _file_path(self, bundle_path: str) -> str:
        file_path = os.path.normpath(os.path.join(self.data_path, bundle_path))
        if os.path.commonpath([file_path, os.path.normpath(self.data_path)]) != os.path.normpath(self.data_path):
            raise ParseError(f"bundle path {bundle_path}", "points outside of the bundle")
        return file_path

    async def _write_props(self, props: PropsValue):
        if isinstance(props, BundleProps):
            self.main_file = props.get('main_file')

    async def _write_file(self, bundle_path: str, content: BundleContent, props: typing.Optional[PropsValue]):
        file_path = self._file_path(bundle_path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        handle = await self.loop.run_in_executor(None, open, file_path, 'wb')
        try:
            async for chunk in content:
                await self.loop.run_in_executor(None, handle.write, chunk)
        finally:
            handle.close()

    async def _finalize(self):
        if not self.main_file:
            raise IndexResolutionError(self.path)
        template = get_template(self.main_file)
        log.debug("rendering %s template for %s into %s", template, self.main_file, self.path)
        await self.loop.run_in_executor(None, render_template, template, self.main_file, self.path)
