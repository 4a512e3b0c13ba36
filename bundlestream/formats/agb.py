import asyncio
import logging
import typing

from bundlestream.conf import Config
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.content import BundleContent
from bundlestream.bundle.entry import PropsValue
from bundlestream.bundle.source import BundleSource, SourceFile
from bundlestream.bundle.sink import BundleSink
from bundlestream.formats.container import BundleContainer, open_container

log = logging.getLogger(__name__)


class ContainerFileContent(BundleContent):

    def __init__(self, loop: asyncio.AbstractEventLoop, container: BundleContainer, bundle_path: str,
                 chunk_size: int):
        super().__init__(loop, chunk_size)
        self.container = container
        self.bundle_path = bundle_path
        self._handle = None

    async def _open(self):
        self._handle = await self.container.open_file(self.bundle_path)

    async def _read_chunk(self, size: int) -> bytes:
        return await self.container.read_file_block(self._handle, size)

    def _close(self):
        self._handle = None

    def __repr__(self):
        return f"ContainerFileContent({self.container.path}:{self.bundle_path})"


class BinaryContainerSource(BundleSource):
    """
    Reads a binary (.agb) bundle container through the registered codec.

    With `encrypted` set, bundle properties and file properties are handed on
    as the opaque bytes stored in the container.
    """

    type_name = 'agb'

    def _prepare(self):
        self._container = open_container(self.loop, self.conf.container_codec, self.path, True)
        self._container_closed = False

    def _decode_props(self, data: bytes) -> typing.Optional[PropsValue]:
        if not data:
            return None
        if self.encrypted:
            return bytes(data)
        return BundleProps.from_json(data)

    async def _initialize(self):
        container = self._container
        info_data = await container.get_bundle_info_data()
        self._info = BundleProps.from_json(info_data) if info_data else BundleProps()
        self._props = self._decode_props(await container.get_bundle_properties_data()) or BundleProps()
        for bundle_path in await container.get_files():
            handle = await container.open_file(bundle_path)
            props_data = await container.read_file_properties_data(handle)
            self._files.append(SourceFile(bundle_path, self._decode_props(props_data)))

    def _open_content(self, source_file: SourceFile) -> BundleContent:
        return ContainerFileContent(self.loop, self._container, source_file.bundle_path, self.conf.chunk_size)

    async def _close(self):
        if not self._container_closed:
            self._container_closed = True
            await self._container.close()


class BinaryContainerSink(BundleSink):
    """
    Writes entries into a new binary (.agb) bundle container.

    Caller supplied `info` is merged over the incoming bundle info. Files
    arriving without properties get `{size: <bytes written>}`.
    """

    type_name = 'agb'

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str,
                 info: typing.Optional[typing.Mapping] = None, conf: typing.Optional[Config] = None):
        super().__init__(loop, path, info, conf)
        self._container = open_container(loop, self.conf.container_codec, path, False)
        self._container_closed = False

    @staticmethod
    def _props_data(props: PropsValue) -> bytes:
        if isinstance(props, BundleProps):
            return props.to_bytes()
        return bytes(props)

    async def _write_info(self, info: BundleProps):
        if isinstance(info, BundleProps):
            info = info.merge(self.extra_info)
        await self._container.set_bundle_info_data(self._props_data(info))

    async def _write_props(self, props: PropsValue):
        await self._container.set_bundle_properties_data(self._props_data(props))

    async def _write_file(self, bundle_path: str, content: BundleContent, props: typing.Optional[PropsValue]):
        handle = await self._container.create_file(bundle_path)
        size = 0
        async for chunk in content:
            await self._container.write_file_block(handle, chunk)
            size += len(chunk)
        if props is None:
            props = BundleProps({'size': size})
        await self._container.write_file_properties_data(handle, self._props_data(props))
        log.debug("wrote %s (%i bytes) into %s", bundle_path, size, self.path)

    async def _close_container(self):
        if not self._container_closed:
            self._container_closed = True
            await self._container.close()

    async def _finalize(self):
        await self._close_container()

    async def _abort(self):
        try:
            await self._close_container()
        except Exception as err:  # pylint: disable=broad-except
            log.warning("failed to close %s after an aborted write: %s", self.path, err)
