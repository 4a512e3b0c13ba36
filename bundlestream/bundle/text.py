import asyncio
import typing

from bundlestream.conf import Config
from bundlestream.bundle.sink import BundleSink
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import (
    Entry, BundleInfoEntry, BundlePropsEntry, FileEntry, END, PropsValue
)

EntryCallback = typing.Callable[[Entry], None]


class TextSink(BundleSink):
    """
    Terminal consumer handing every entry to a callback instead of writing it
    anywhere. File content is left unread.
    """

    type_name = 'text'

    def __init__(self, loop: asyncio.AbstractEventLoop, on_entry: EntryCallback,
                 conf: typing.Optional[Config] = None):
        super().__init__(loop, None, conf=conf)
        self.on_entry = on_entry

    async def _write_info(self, info: BundleProps):
        self.on_entry(BundleInfoEntry(info))

    async def _write_props(self, props: PropsValue):
        self.on_entry(BundlePropsEntry(props))

    async def _write_file(self, bundle_path: str, content: BundleContent, props: typing.Optional[PropsValue]):
        self.on_entry(FileEntry(bundle_path, content, props))

    async def _finalize(self):
        self.on_entry(END)
