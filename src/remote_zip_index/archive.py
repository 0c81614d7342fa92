import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

import requests

from .directory import CentralDirectory, read_central_directory
from .eocd import discover_size, locate_eocd
from .errors import SignatureMismatchError
from .extractor import extract_entry
from .fetcher import RangeFetcher
from .records import ArchiveHandle, ArchiveState, DirectoryEntry, EOCDRecord, ExtractedContent
from .resolver import resolve_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedDirectory:
    """DIRECTORY_LOADED: entries decoded, data offsets not yet attached."""

    handle: ArchiveHandle
    directory: CentralDirectory

    state = ArchiveState.DIRECTORY_LOADED

    @property
    def eocd(self) -> EOCDRecord:
        return self.directory.eocd

    @property
    def entries(self) -> Tuple[DirectoryEntry, ...]:
        return self.directory.entries


@dataclass(frozen=True)
class ArchiveListing:
    """ENTRIES_RESOLVED: every file entry carries its data offset, in directory order."""

    handle: ArchiveHandle
    eocd: EOCDRecord
    entries: Tuple[DirectoryEntry, ...]
    directory_error: Optional[SignatureMismatchError] = None

    state = ArchiveState.ENTRIES_RESOLVED

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return iter(self.entries)

    def find(self, name: str) -> Optional[DirectoryEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def files(self) -> List[DirectoryEntry]:
        return [e for e in self.entries if not e.is_directory]

    def images(self) -> List[DirectoryEntry]:
        return [e for e in self.entries if e.is_image]


def load_directory(handle: ArchiveHandle, fetcher: RangeFetcher) -> LoadedDirectory:
    """SIZED (or UNSIZED) -> DIRECTORY_LOADED; two range reads at most."""
    handle, eocd = locate_eocd(handle, fetcher)
    return LoadedDirectory(handle, read_central_directory(fetcher, eocd))


def resolve_entries(loaded: LoadedDirectory, max_workers: Optional[int] = None) -> ArchiveListing:
    entries = resolve_all(loaded.entries, max_workers=max_workers)
    return ArchiveListing(loaded.handle, loaded.eocd, tuple(entries), loaded.directory.error)


def list_entries(
    handle: ArchiveHandle, fetcher: RangeFetcher, max_workers: Optional[int] = None
) -> ArchiveListing:
    return resolve_entries(load_directory(handle, fetcher), max_workers=max_workers)


class RemoteZip:
    """
    A stored-method ZIP archive behind a URL, read with HTTP range requests.

    The listing is loaded on first use and kept; extracted content is not.

        with RemoteZip("https://example.org/tiles.szi") as zf:
            for entry in zf.images():
                png = zf.extract(entry).data
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
        **fetcher_options,
    ) -> None:
        self.fetcher = RangeFetcher(url, session=session, timeout=timeout, **fetcher_options)
        self.handle = ArchiveHandle(url)
        self.max_workers = max_workers
        self._listing: Optional[ArchiveListing] = None

    @property
    def url(self) -> str:
        return self.handle.url

    @property
    def state(self) -> ArchiveState:
        if self._listing is not None:
            return self._listing.state
        return self.handle.state

    def size(self) -> int:
        self.handle = discover_size(self.handle, self.fetcher)
        return self.handle.length

    def listing(self) -> ArchiveListing:
        if self._listing is None:
            self._listing = list_entries(self.handle, self.fetcher, max_workers=self.max_workers)
            self.handle = self._listing.handle
            logger.info("%s: %d entries listed", self.url, len(self._listing))
        return self._listing

    def entries(self) -> Tuple[DirectoryEntry, ...]:
        return self.listing().entries

    def find(self, name: str) -> Optional[DirectoryEntry]:
        return self.listing().find(name)

    def images(self) -> List[DirectoryEntry]:
        return self.listing().images()

    def extract(self, entry: Union[DirectoryEntry, str]) -> ExtractedContent:
        if isinstance(entry, str):
            found = self.find(entry)
            if found is None:
                raise KeyError(f"{entry!r} is not in {self.url}")
            entry = found
        return extract_entry(self.fetcher, entry)

    def close(self) -> None:
        self.fetcher.close()

    def __enter__(self) -> "RemoteZip":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
