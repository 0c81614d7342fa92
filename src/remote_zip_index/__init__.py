from .archive import ArchiveListing, LoadedDirectory, RemoteZip, list_entries, load_directory, resolve_entries
from .directory import CentralDirectory, read_central_directory
from .eocd import discover_size, locate_eocd
from .errors import (
    ErrorKind,
    MissingLengthError,
    RecordNotFoundError,
    RemoteZipError,
    SignatureMismatchError,
    TransportError,
)
from .extractor import extract_entry
from .fetcher import RangeFetcher
from .records import ArchiveHandle, ArchiveState, ContentKind, DirectoryEntry, EOCDRecord, ExtractedContent
from .resolver import inspect_local_header, resolve_all, resolve_entry

__version__ = "1.0.0"

__all__ = [
    "ArchiveHandle",
    "ArchiveListing",
    "ArchiveState",
    "CentralDirectory",
    "ContentKind",
    "DirectoryEntry",
    "EOCDRecord",
    "ErrorKind",
    "ExtractedContent",
    "LoadedDirectory",
    "MissingLengthError",
    "RangeFetcher",
    "RecordNotFoundError",
    "RemoteZip",
    "RemoteZipError",
    "SignatureMismatchError",
    "TransportError",
    "discover_size",
    "extract_entry",
    "inspect_local_header",
    "list_entries",
    "load_directory",
    "locate_eocd",
    "read_central_directory",
    "resolve_all",
    "resolve_entries",
    "resolve_entry",
]
