import enum
import typing

from bundlestream.error import EntryOrderError
from bundlestream.bundle.props import BundleProps

if typing.TYPE_CHECKING:
    from bundlestream.bundle.content import BundleContent

PropsValue = typing.Union[BundleProps, bytes]


class EntryType(str, enum.Enum):
    BUNDLE_INFO = 'bundleInfo'
    BUNDLE_PROPS = 'bundleProps'
    FILE = 'file'
    END = 'end'


class BundleInfoEntry(typing.NamedTuple):
    value: BundleProps
    type = EntryType.BUNDLE_INFO


class BundlePropsEntry(typing.NamedTuple):
    value: PropsValue
    type = EntryType.BUNDLE_PROPS


class FileEntry(typing.NamedTuple):
    bundle_path: str
    content: 'BundleContent'
    props: typing.Optional[PropsValue] = None
    type = EntryType.FILE


class EndEntry:
    __slots__ = ()
    type = EntryType.END

    def __eq__(self, other):
        return isinstance(other, EndEntry)

    def __hash__(self):
        return hash(EntryType.END)

    def __repr__(self):
        return "EndEntry()"


END = EndEntry()

Entry = typing.Union[BundleInfoEntry, BundlePropsEntry, FileEntry, EndEntry]


class EntryOrderValidator:
    """
    Tracks the position in the entry topology: one bundle info, one bundle
    properties, any number of files and a single terminating end entry.
    """

    EXPECTED_INFO, EXPECTED_PROPS, EXPECTED_FILE_OR_END, CLOSED = range(4)

    __slots__ = [
        'stage',
        'files',
    ]

    def __init__(self):
        self.stage = self.EXPECTED_INFO
        self.files = 0

    @property
    def is_closed(self) -> bool:
        return self.stage == self.CLOSED

    def check(self, entry: Entry) -> Entry:
        entry_type = getattr(entry, 'type', None)
        if self.stage == self.EXPECTED_INFO:
            if entry_type is not EntryType.BUNDLE_INFO:
                raise EntryOrderError(entry_type, "bundle info")
            self.stage = self.EXPECTED_PROPS
        elif self.stage == self.EXPECTED_PROPS:
            if entry_type is not EntryType.BUNDLE_PROPS:
                raise EntryOrderError(entry_type, "bundle properties")
            self.stage = self.EXPECTED_FILE_OR_END
        elif self.stage == self.EXPECTED_FILE_OR_END:
            if entry_type is EntryType.FILE:
                self.files += 1
            elif entry_type is EntryType.END:
                self.stage = self.CLOSED
            else:
                raise EntryOrderError(entry_type, "a file or the end of the bundle")
        else:
            raise EntryOrderError(entry_type, "nothing after the end of the bundle")
        return entry
