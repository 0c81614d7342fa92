import logging
import struct
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .errors import SignatureMismatchError
from .fetcher import RangeFetcher
from .records import LOCAL_HEADER_SIGNATURE, LOCAL_HEADER_SIZE, DirectoryEntry

logger = logging.getLogger(__name__)

_LOCAL_HEADER = struct.Struct("<4s5H3L2H")


def resolve_entry(entry: DirectoryEntry) -> DirectoryEntry:
    """
    Attach the absolute data offset to a file entry.

    The local header is not read: its name is taken to be the central one and
    its extra field to be empty. Archives whose local headers carry extra
    fields get a wrong offset. Already-resolved entries and directories are
    returned unchanged.
    """
    if entry.is_directory or entry.is_resolved:
        return entry
    name_len = len(entry.name.encode("utf-8", "surrogateescape"))
    return replace(
        entry,
        data_offset=entry.local_header_offset + LOCAL_HEADER_SIZE + name_len,
        local_name_length=name_len,
        offset_assumed=True,
    )


def resolve_all(entries: Sequence[DirectoryEntry], max_workers: Optional[int] = None) -> List[DirectoryEntry]:
    """Resolve every file entry concurrently; the result keeps the input order."""
    pending = [i for i, entry in enumerate(entries) if not entry.is_directory and not entry.is_resolved]
    if not pending:
        return list(entries)

    resolved: Dict[int, DirectoryEntry] = {}
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="rzi-resolve") as pool:
        futures = {pool.submit(resolve_entry, entries[i]): i for i in pending}
        for future in as_completed(futures):
            resolved[futures[future]] = future.result()
    return [resolved.get(i, entry) for i, entry in enumerate(entries)]


@dataclass(frozen=True)
class LocalHeaderReport:
    entry: DirectoryEntry
    name_length: int
    extra_field_length: int
    actual_data_offset: int

    @property
    def matches(self) -> bool:
        return self.entry.data_offset == self.actual_data_offset


def inspect_local_header(fetcher: RangeFetcher, entry: DirectoryEntry) -> LocalHeaderReport:
    """
    Read an entry's local header and report where its data really starts.

    Diagnostic only: the entry and its assumed offset are left alone.
    """
    if entry.is_directory:
        raise ValueError(f"{entry.name!r} is a directory")
    entry = resolve_entry(entry)
    start = entry.local_header_offset
    raw = fetcher.read_range(start, start + LOCAL_HEADER_SIZE - 1)
    if raw[:4] != LOCAL_HEADER_SIGNATURE:
        raise SignatureMismatchError(f"no local file header at {start} for {entry.name!r}", offset=start)
    fields = _LOCAL_HEADER.unpack(raw)
    name_len, extra_len = fields[-2], fields[-1]
    report = LocalHeaderReport(entry, name_len, extra_len, start + LOCAL_HEADER_SIZE + name_len + extra_len)
    if not report.matches:
        logger.warning(
            "%s: data starts at %d, listing assumed %d", entry.name, report.actual_data_offset, entry.data_offset
        )
    return report
