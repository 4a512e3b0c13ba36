import sys
import asyncio
import logging
import argparse
import typing

from bundlestream import __version__
from bundlestream.conf import Config
from bundlestream.error import BaseError
from bundlestream.utils import parse_hex_key
from bundlestream.resolver import BundleService, FORMATS
from bundlestream.bundle.props import BundleProps
from bundlestream.bundle.entry import Entry, EntryType
from bundlestream.bundle.text import TextSink
from bundlestream.bundle.pipeline import pipe

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s:%(lineno)d: %(message)s"


class HelpFormatter(argparse.HelpFormatter):

    def add_usage(self, usage, actions, groups, prefix='Usage:  '):
        super().add_usage(usage, actions, groups, prefix)


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--version', action='version', version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        '--verbose', dest='verbose', action='store_true',
        help='Enable debug output.'
    )
    Config.contribute_to_argparse(parser)


def get_bundleinfo_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        'bundleinfo', description='Print the info, properties and files of a bundle.',
        formatter_class=HelpFormatter, allow_abbrev=False
    )
    parser.add_argument('path', metavar='PATH', help='Bundle to inspect.')
    parser.add_argument(
        '-k', '--key', dest='key', metavar='HEX',
        help='Hex encoded 256-bit key to decrypt the bundle with.'
    )
    parser.add_argument(
        '-p', '--public', dest='public', action='store_true',
        help='Only print public metadata, leaving out bundle and file properties.'
    )
    parser.add_argument(
        '--type', dest='type_name', choices=sorted(FORMATS), metavar='TYPE',
        help='Bundle type, guessed from the path when omitted.'
    )
    _add_common_arguments(parser)
    return parser


def get_makebundle_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        'makebundle', description='Build a bundle from a file, a directory or another bundle.',
        formatter_class=HelpFormatter, allow_abbrev=False
    )
    parser.add_argument('input', metavar='INPUT', help='File, directory or bundle to read.')
    parser.add_argument(
        '-o', '--output', dest='output', metavar='OUTPUT', required=True,
        help='Path of the bundle to write.'
    )
    parser.add_argument(
        '-i', '--index', dest='index', metavar='INDEX',
        help='Bundle path of the main file.'
    )
    parser.add_argument(
        '-t', '--type', dest='type_name', choices=sorted(FORMATS), metavar='TYPE',
        help='Output bundle type, guessed from the output path when omitted.'
    )
    parser.add_argument(
        '--input-type', dest='input_type', choices=sorted(FORMATS), metavar='TYPE',
        help='Input bundle type, guessed from the input path when omitted.'
    )
    parser.add_argument(
        '-k', '--input-key', dest='input_key', metavar='HEX',
        help='Hex encoded 256-bit key to decrypt the input with.'
    )
    parser.add_argument(
        '-K', '--output-key', dest='output_key', metavar='HEX',
        help='Hex encoded 256-bit key to encrypt the output with.'
    )
    _add_common_arguments(parser)
    return parser


def setup_logging(conf: Config, verbose: bool = False):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger('bundlestream')
    if not root.handlers:
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else conf.logging_level)


def format_props(props) -> str:
    if props is None:
        return "  (none)"
    if not isinstance(props, BundleProps):
        return f"  <encrypted, {len(props)} bytes>"
    if not props:
        return "  (empty)"
    return "\n".join(f"  {key}: {value!r}" for key, value in props.items())


class BundleInfoPrinter:
    """ Writes a readable listing of the entries it is called with. """

    def __init__(self, out: typing.TextIO, public: bool = False):
        self.out = out
        self.public = public

    def __call__(self, entry: Entry):
        if entry.type is EntryType.BUNDLE_INFO:
            print("Bundle info:", file=self.out)
            print(format_props(entry.value), file=self.out)
        elif entry.type is EntryType.BUNDLE_PROPS and not self.public:
            print("Bundle properties:", file=self.out)
            print(format_props(entry.value), file=self.out)
        elif entry.type is EntryType.FILE:
            print(f"File: {entry.bundle_path}", file=self.out)
            if not self.public:
                print(format_props(entry.props), file=self.out)


async def print_bundle_info(conf: Config, path: str, key: typing.Optional[bytes] = None,
                            public: bool = False, type_name: typing.Optional[str] = None,
                            out: typing.Optional[typing.TextIO] = None) -> int:
    service = BundleService(asyncio.get_running_loop(), conf)
    source = service.create_source(path, type_name, encrypted=bool(key) or public)
    sink = TextSink(service.loop, BundleInfoPrinter(out or sys.stdout, public), conf=conf)
    transforms = [service.create_decryptor(key)] if key and not public else []
    return await pipe(source, sink, *transforms)


async def make_bundle(conf: Config, input_path: str, output_path: str, index: typing.Optional[str] = None,
                      type_name: typing.Optional[str] = None, input_type: typing.Optional[str] = None,
                      input_key: typing.Optional[bytes] = None, output_key: typing.Optional[bytes] = None) -> int:
    service = BundleService(asyncio.get_running_loop(), conf)
    props = {'main_file': index} if index else None
    source = service.create_source(input_path, input_type, props=props, encrypted=bool(input_key))
    try:
        sink = service.create_sink(output_path, type_name)
    except BaseError:
        await source.close()
        raise
    files = await service.convert(source, sink, decrypt_key=input_key, encrypt_key=output_key)
    log.info("wrote %i files into %s", files, output_path)
    return files


def _run(parser: argparse.ArgumentParser, argv, command) -> int:
    args = parser.parse_args(argv)
    try:
        conf = Config.create_from_arguments(args)
        setup_logging(conf, args.verbose)
        asyncio.run(command(conf, args))
    except (BaseError, OSError, ValueError) as err:
        log.debug("%s failed", parser.prog, exc_info=True)
        print(f"{parser.prog}: error: {err}", file=sys.stderr)
        return 1
    return 0


def bundleinfo_main(argv=None):
    return _run(
        get_bundleinfo_parser(), argv if argv is not None else sys.argv[1:],
        lambda conf, args: print_bundle_info(
            conf, args.path, parse_hex_key(args.key), args.public, args.type_name
        )
    )


def makebundle_main(argv=None):
    return _run(
        get_makebundle_parser(), argv if argv is not None else sys.argv[1:],
        lambda conf, args: make_bundle(
            conf, args.input, args.output, args.index, args.type_name, args.input_type,
            parse_hex_key(args.input_key), parse_hex_key(args.output_key)
        )
    )


if __name__ == "__main__":
    sys.exit(makebundle_main())
