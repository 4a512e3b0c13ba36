import asyncio
import typing

from bundlestream.error import ContainerCodecUnavailableError


class BundleContainer:
    """
    Byte-level codec of the binary bundle container.

    Implementations own the container file for their whole lifetime. Every
    operation is a coroutine and may fail with an `OSError` or a `ParseError`;
    blocks and property blobs are read and written atomically and in call order.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str, readonly: bool = True):
        self.loop = loop
        self.path = path
        self.readonly = readonly

    async def get_files(self) -> typing.List[str]:
        raise NotImplementedError()

    async def open_file(self, path: str) -> typing.Any:
        raise NotImplementedError()

    async def create_file(self, path: str) -> typing.Any:
        raise NotImplementedError()

    async def read_file_block(self, handle, size: int) -> bytes:
        """ Next block of at most `size` bytes, b'' at the end of the file. """
        raise NotImplementedError()

    async def write_file_block(self, handle, data: bytes):
        raise NotImplementedError()

    async def read_file_properties_data(self, handle) -> bytes:
        raise NotImplementedError()

    async def write_file_properties_data(self, handle, data: bytes):
        raise NotImplementedError()

    async def get_bundle_info_data(self) -> bytes:
        raise NotImplementedError()

    async def set_bundle_info_data(self, data: bytes):
        raise NotImplementedError()

    async def get_bundle_properties_data(self) -> bytes:
        raise NotImplementedError()

    async def set_bundle_properties_data(self, data: bytes):
        raise NotImplementedError()

    async def close(self):
        raise NotImplementedError()


ContainerFactory = typing.Callable[[asyncio.AbstractEventLoop, str, bool], BundleContainer]

CODECS: typing.Dict[str, ContainerFactory] = {}


def register_container_codec(name: str, factory: ContainerFactory):
    CODECS[name] = factory


def unregister_container_codec(name: str):
    CODECS.pop(name, None)


def open_container(loop: asyncio.AbstractEventLoop, codec_name: str, path: str, readonly: bool) -> BundleContainer:
    if codec_name not in CODECS:
        raise ContainerCodecUnavailableError(codec_name)
    return CODECS[codec_name](loop, path, readonly)
