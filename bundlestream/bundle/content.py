import asyncio
import logging
import typing

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class BundleContent:
    """
    Chunked byte content of one bundle file.

    The backing resource is opened on the first read, not when the handle is
    created, so a bundle with many files never holds more than the handles a
    consumer is actually reading. Iterating with `async for` pulls one chunk
    at a time; nothing is read ahead of the consumer.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.loop = loop
        self.chunk_size = chunk_size
        self.is_open = False
        self.is_closed = False
        self.is_exhausted = False
        self.bytes_read = 0
        self._buffer = b''

    def __del__(self):
        if self.is_open and not self.is_closed:
            log.warning("%s not closed before being garbage collected", self)
            self.close()

    async def _open(self):
        pass

    async def _read_chunk(self, size: int) -> bytes:
        raise NotImplementedError()

    def _close(self):
        pass

    async def read_chunk(self) -> bytes:
        """ Next chunk of content, b'' once the content is exhausted. """
        if self._buffer:
            chunk, self._buffer = self._buffer, b''
            return chunk
        if self.is_exhausted:
            return b''
        if self.is_closed:
            raise ValueError(f"{self} is closed")
        if not self.is_open:
            await self._open()
            self.is_open = True
        chunk = await self._read_chunk(self.chunk_size)
        if not chunk:
            self.is_exhausted = True
            self.close()
            return b''
        self.bytes_read += len(chunk)
        return chunk

    async def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            chunks = []
            while True:
                chunk = await self.read_chunk()
                if not chunk:
                    return b''.join(chunks)
                chunks.append(chunk)
        data = b''
        while len(data) < size:
            chunk = await self.read_chunk()
            if not chunk:
                break
            data += chunk
        data, self._buffer = data[:size], data[size:] + self._buffer
        return data

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        chunk = await self.read_chunk()
        if not chunk:
            raise StopAsyncIteration
        return chunk

    def close(self):
        if self.is_closed:
            return
        self.is_closed = True
        if self.is_open:
            self._close()


class FileSystemContent(BundleContent):
    """ Content of a file on the local filesystem. """

    def __init__(self, loop: asyncio.AbstractEventLoop, file_path: str, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(loop, chunk_size)
        self.file_path = file_path
        self._handle: typing.Optional[typing.BinaryIO] = None

    async def _open(self):
        self._handle = await self.loop.run_in_executor(None, open, self.file_path, 'rb')

    async def _read_chunk(self, size: int) -> bytes:
        return await self.loop.run_in_executor(None, self._handle.read, size)

    def _close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __repr__(self):
        return f"FileSystemContent({self.file_path})"


class BytesContent(BundleContent):
    """ Content already held in memory. """

    def __init__(self, loop: asyncio.AbstractEventLoop, data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(loop, chunk_size)
        self.data = data
        self._offset = 0

    async def _read_chunk(self, size: int) -> bytes:
        chunk = self.data[self._offset:self._offset + size]
        self._offset += len(chunk)
        return chunk

    def __repr__(self):
        return f"BytesContent({len(self.data)} bytes)"
