import os
import sys
import shutil
import inspect
import logging
import tempfile
import asyncio
import unittest
import typing

from bundlestream.conf import Config
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.entry import Entry, EntryType
from bundlestream.bundle.source import BundleSource


class ColorHandler(logging.StreamHandler):

    level_color = {
        logging.DEBUG: "black",
        logging.INFO: "light_gray",
        logging.WARNING: "yellow",
        logging.ERROR: "red"
    }

    color_code = dict(
        black=30,
        red=31,
        green=32,
        yellow=33,
        blue=34,
        magenta=35,
        cyan=36,
        white=37,
        light_gray='0;37',
        dark_gray='1;30'
    )

    def emit(self, record):
        try:
            msg = self.format(record)
            color_name = self.level_color.get(record.levelno, "black")
            color_code = self.color_code[color_name]
            stream = self.stream
            stream.write(f'\x1b[{color_code}m{msg}\x1b[0m')
            stream.write(self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


HANDLER = ColorHandler(sys.stdout)
HANDLER.setFormatter(
    logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
)
logging.getLogger().addHandler(HANDLER)


class AsyncioTestCase(unittest.IsolatedAsyncioTestCase):

    LOOP_SLOW_CALLBACK_DURATION = 0.2
    TIMEOUT = 120.0

    maxDiff = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return asyncio.get_running_loop()

    async def asyncSetUp(self):  # pylint: disable=C0103
        self.loop.set_debug(True)
        self.loop.slow_callback_duration = self.LOOP_SLOW_CALLBACK_DURATION
        self.conf = Config(config='')  # pylint: disable=W0201

    def _callTestMethod(self, method):  # pylint: disable=C0103
        if inspect.iscoroutinefunction(method) and self.TIMEOUT:
            test_method = method

            async def with_timeout():
                await asyncio.wait_for(test_method(), self.TIMEOUT)
            return super()._callTestMethod(with_timeout)
        return super()._callTestMethod(method)

    def make_temp_dir(self) -> str:
        path = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, path, True)
        return path

    @staticmethod
    def write_file(path: str, data: bytes) -> str:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
        return path


class BundleTestCase(AsyncioTestCase):
    """ Helpers to drain a source into plain python values for assertions. """

    async def read_bundle(self, source: BundleSource) -> typing.Tuple[
            BundleProps, typing.Any, typing.List[typing.Tuple[str, bytes, typing.Any]]]:
        info, props, files = None, None, []
        try:
            async for entry in source.entries():
                if entry.type is EntryType.BUNDLE_INFO:
                    info = entry.value
                elif entry.type is EntryType.BUNDLE_PROPS:
                    props = entry.value
                elif entry.type is EntryType.FILE:
                    try:
                        files.append((entry.bundle_path, await entry.content.read(), entry.props))
                    finally:
                        entry.content.close()
        finally:
            await source.close()
        return info, props, files

    async def collect_entries(self, source: BundleSource) -> typing.List[Entry]:
        entries = []
        try:
            async for entry in source.entries():
                if entry.type is EntryType.FILE:
                    entry.content.close()
                entries.append(entry)
        finally:
            await source.close()
        return entries
