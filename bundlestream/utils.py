import os
import binascii
import typing

from bundlestream.error import InvalidKeyError


def parse_hex_key(value: typing.Optional[str]) -> typing.Optional[bytes]:
    """ 256-bit key from its 64 character hex representation, None when not given. """
    if not value:
        return None
    try:
        key = binascii.unhexlify(value.strip())
    except (binascii.Error, ValueError):
        raise InvalidKeyError(len(value) * 4)
    if len(key) != 32:
        raise InvalidKeyError(len(key) * 8)
    return key


def to_bundle_path(file_path: str, root: str) -> str:
    """ Path of `file_path` relative to `root`, with forward slashes on every platform. """
    return os.path.relpath(file_path, root).replace(os.sep, '/')
