import time
import asyncio
import logging
import typing
import zipfile

from bundlestream.error import ParseError
from bundlestream.bundle.content import BundleContent

log = logging.getLogger(__name__)

COMPRESSION = {
    'deflated': zipfile.ZIP_DEFLATED,
    'stored': zipfile.ZIP_STORED,
}


class ZipMemberContent(BundleContent):
    """ Content of one member of an open ZIP archive, decompressed as it is read. """

    def __init__(self, loop: asyncio.AbstractEventLoop, archive: zipfile.ZipFile, member: zipfile.ZipInfo,
                 chunk_size: int):
        super().__init__(loop, chunk_size)
        self.archive = archive
        self.member = member
        self._handle: typing.Optional[typing.BinaryIO] = None

    async def _open(self):
        self._handle = await self.loop.run_in_executor(None, self.archive.open, self.member)

    async def _read_chunk(self, size: int) -> bytes:
        return await self.loop.run_in_executor(None, self._handle.read, size)

    def _close(self):
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __repr__(self):
        return f"ZipMemberContent({self.member.filename})"


class ZipArchiveReader:

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str):
        self.loop = loop
        self.path = path
        self.archive: typing.Optional[zipfile.ZipFile] = None

    async def open(self):
        try:
            self.archive = await self.loop.run_in_executor(None, zipfile.ZipFile, self.path, 'r')
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
            raise ParseError(f"zip archive {self.path}", str(e))

    def members(self) -> typing.List[zipfile.ZipInfo]:
        """ File members in archive order, directories left out. """
        return [member for member in self.archive.infolist() if not member.is_dir()]

    def get_member(self, name: str) -> typing.Optional[zipfile.ZipInfo]:
        try:
            return self.archive.getinfo(name)
        except KeyError:
            return None

    def has_member(self, name: str) -> bool:
        return self.get_member(name) is not None

    async def read_member(self, name: str) -> bytes:
        try:
            return await self.loop.run_in_executor(None, self.archive.read, name)
        except (zipfile.BadZipFile, KeyError) as e:
            raise ParseError(f"member {name} of {self.path}", str(e))

    def open_content(self, member: zipfile.ZipInfo, chunk_size: int) -> ZipMemberContent:
        return ZipMemberContent(self.loop, self.archive, member, chunk_size)

    def close(self):
        if self.archive is not None:
            self.archive.close()
            self.archive = None


class ZipArchiveWriter:
    """
    Appends members to a new ZIP archive, streaming content into it chunk by
    chunk. The archive file is created on the first write and its central
    directory is written by `finalize()`.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, path: str, compression: str = 'deflated'):
        self.loop = loop
        self.path = path
        self.compression = COMPRESSION[compression]
        self.archive: typing.Optional[zipfile.ZipFile] = None

    async def _ensure_open(self) -> zipfile.ZipFile:
        if self.archive is None:
            self.archive = await self.loop.run_in_executor(
                None, zipfile.ZipFile, self.path, 'w', self.compression
            )
        return self.archive

    def _member_info(self, name: str, comment: typing.Optional[bytes]) -> zipfile.ZipInfo:
        member = zipfile.ZipInfo(name, date_time=time.localtime(time.time())[:6])
        member.compress_type = self.compression
        member.external_attr = 0o644 << 16
        if comment:
            member.comment = comment
        return member

    async def write_bytes(self, name: str, data: bytes, comment: typing.Optional[bytes] = None):
        archive = await self._ensure_open()
        await self.loop.run_in_executor(None, archive.writestr, self._member_info(name, comment), data)

    async def write_content(self, name: str, content: BundleContent, comment: typing.Optional[bytes] = None) -> int:
        archive = await self._ensure_open()
        size = 0
        dest = await self.loop.run_in_executor(
            None, lambda: archive.open(self._member_info(name, comment), 'w', force_zip64=True)
        )
        try:
            async for chunk in content:
                await self.loop.run_in_executor(None, dest.write, chunk)
                size += len(chunk)
        finally:
            await self.loop.run_in_executor(None, dest.close)
        log.debug("added %s (%i bytes) to %s", name, size, self.path)
        return size

    async def finalize(self):
        archive = await self._ensure_open()
        await self.loop.run_in_executor(None, archive.close)
        self.archive = None

    def close(self):
        if self.archive is not None:
            self.archive.close()
            self.archive = None
