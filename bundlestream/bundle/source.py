import os
import enum
import asyncio
import logging
import typing

from bundlestream.conf import Config
from bundlestream.error import NotFoundError, SourceNotReadyError, EntryStreamConsumedError
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import (
    Entry, EntryOrderValidator, BundleInfoEntry, BundlePropsEntry, FileEntry, END, PropsValue
)

log = logging.getLogger(__name__)


class SourceState(enum.Enum):
    INITIALIZING = 'initializing'
    READY = 'ready'
    FAILED = 'failed'


class SourceFile(typing.NamedTuple):
    bundle_path: str
    props: typing.Optional[PropsValue] = None
    locator: typing.Any = None


class BundleSource:
    """
    Produces the entries of one bundle: its info, its properties, every file
    and the end marker, in that order and exactly once.

    Construction only checks that the backing path exists. Everything else
    (archive listings, container headers, directory walks) is loaded by
    `_initialize()`, scheduled on the loop at construction time. Until it
    completes the metadata accessors raise `SourceNotReadyError`, and the
    entry iterator waits for it before producing its first entry. A failed
    initialization is stored on `ready` and re-raised to whoever asks.
    """

    type_name: typing.Optional[str] = None

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str,
                 info: typing.Optional[typing.Mapping] = None, props: typing.Optional[typing.Mapping] = None,
                 encrypted: bool = False, conf: typing.Optional[Config] = None):
        if not path or not os.path.exists(path):
            raise NotFoundError(path)
        self.loop = loop
        self.path = path
        self.conf = conf or Config()
        self.encrypted = encrypted
        self.extra_info = info
        self.extra_props = props
        self.state = SourceState.INITIALIZING
        self.ready: asyncio.Future = loop.create_future()
        self._info: typing.Optional[BundleProps] = None
        self._props: typing.Optional[PropsValue] = None
        self._files: typing.List[SourceFile] = []
        self._consumed = False
        self._prepare()
        self._init_task = loop.create_task(self._run_initialize())

    def __repr__(self):
        return f"{type(self).__name__}({self.path})"

    async def _initialize(self):
        """ Load info, properties and the file list of the bundle. """
        raise NotImplementedError()

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        raise NotImplementedError()

    def _prepare(self):
        """ Synchronous, format-specific setup run before initialization is scheduled. """

    async def _close(self):
        pass

    async def _run_initialize(self):
        try:
            await self._initialize()
        except asyncio.CancelledError:
            self.state = SourceState.FAILED
            self.ready.cancel()
            raise
        except Exception as err:
            log.debug("failed to initialize %s: %s", self, err)
            self.state = SourceState.FAILED
            self.ready.set_exception(err)
            self.ready.exception()
            await self._close()
        else:
            self.state = SourceState.READY
            self.ready.set_result(None)
            log.debug("initialized %s with %i files", self, len(self._files))

    async def wait_ready(self):
        await asyncio.shield(self.ready)

    def _check_ready(self):
        if self.state is SourceState.INITIALIZING:
            raise SourceNotReadyError(self.path)
        if self.state is SourceState.FAILED:
            if self.ready.cancelled():
                raise SourceNotReadyError(self.path)
            raise self.ready.exception()

    def get_info(self) -> BundleProps:
        self._check_ready()
        return self._info

    def get_props(self) -> PropsValue:
        self._check_ready()
        return self._props

    def get_files_count(self) -> int:
        self._check_ready()
        return len(self._files)

    def get_files(self) -> typing.List[str]:
        self._check_ready()
        return [source_file.bundle_path for source_file in self._files]

    def entries(self) -> typing.AsyncIterator[Entry]:
        if self._consumed:
            raise EntryStreamConsumedError(self.path)
        self._consumed = True
        return self._iterate_entries()

    async def _iterate_entries(self) -> typing.AsyncIterator[Entry]:
        validator = EntryOrderValidator()
        await self.wait_ready()
        yield validator.check(BundleInfoEntry(self._info))
        yield validator.check(BundlePropsEntry(self._props))
        for source_file in self._files:
            yield validator.check(FileEntry(source_file.bundle_path, self._open_content(source_file), source_file.props))
        yield validator.check(END)

    async def close(self):
        if not self._init_task.done():
            self._init_task.cancel()
        await self._close()
