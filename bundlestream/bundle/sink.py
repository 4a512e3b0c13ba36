import asyncio
import logging
import typing

from bundlestream.conf import Config
from bundlestream.error import EntryOrderError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import Entry, EntryType, EntryOrderValidator, PropsValue

log = logging.getLogger(__name__)


class BundleSink:
    """
    Consumes the entries of one bundle and writes them into a destination.

    Entries must arrive in protocol order. A file entry is copied completely
    before `write()` returns, so by the time the end entry is handled every
    prior entry has been flushed to the destination. `finished` resolves once
    the format-specific finalization after the end entry is done, or carries
    the error that aborted the sequence.
    """

    type_name: typing.Optional[str] = None

    def __init__(self, loop: asyncio.AbstractEventLoop, path: typing.Optional[str],
                 info: typing.Optional[typing.Mapping] = None, conf: typing.Optional[Config] = None):
        self.loop = loop
        self.path = path
        self.conf = conf or Config()
        self.extra_info = info
        self.finished: asyncio.Future = loop.create_future()
        self._validator = EntryOrderValidator()

    def __repr__(self):
        return f"{type(self).__name__}({self.path})"

    async def _write_info(self, info: BundleProps):
        pass

    async def _write_props(self, props: PropsValue):
        pass

    async def _write_file(self, bundle_path: str, content: BundleContent, props: typing.Optional[PropsValue]):
        raise NotImplementedError()

    async def _finalize(self):
        pass

    async def _abort(self):
        pass

    async def write(self, entry: Entry):
        if self.finished.done():
            raise EntryOrderError(getattr(entry, 'type', None), "nothing after the bundle was finished or aborted")
        try:
            self._validator.check(entry)
            if entry.type is EntryType.BUNDLE_INFO:
                await self._write_info(entry.value)
            elif entry.type is EntryType.BUNDLE_PROPS:
                await self._write_props(entry.value)
            elif entry.type is EntryType.FILE:
                try:
                    await self._write_file(entry.bundle_path, entry.content, entry.props)
                finally:
                    entry.content.close()
            else:
                await self._finalize()
                log.debug("finalized %s after %i files", self, self._validator.files)
                self.finished.set_result(self._validator.files)
        except Exception as err:
            await self.abort(err)
            raise

    async def abort(self, err: Exception):
        """ Fail `finished` with `err` and release the destination, unless already finished. """
        if self.finished.done():
            return
        log.debug("aborting %s: %s", self, err)
        self.finished.set_exception(err)
        self.finished.exception()  # retrieved, the error is re-raised to the writer
        await self._abort()

    async def consume(self, entries: typing.AsyncIterator[Entry]) -> int:
        async for entry in entries:
            await self.write(entry)
        if not self.finished.done():
            err = EntryOrderError("end of stream", "the end of the bundle")
            await self.abort(err)
            raise err
        return await self.finished
