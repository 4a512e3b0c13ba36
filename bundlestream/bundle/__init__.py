from .props import BundleProps
from .entry import EntryType, BundleInfoEntry, BundlePropsEntry, FileEntry, EndEntry, END
from .content import BundleContent, BytesContent, FileSystemContent
from .source import BundleSource, SourceState
from .sink import BundleSink
from .crypto import CryptoTransform, CipherMode
from .pipeline import pipe
