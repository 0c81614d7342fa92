import logging
import struct
from typing import Tuple

from .errors import RecordNotFoundError
from .fetcher import RangeFetcher
from .records import EOCD_SEARCH_WINDOW, EOCD_SIGNATURE, EOCD_SIZE, ArchiveHandle, EOCDRecord

logger = logging.getLogger(__name__)

_EOCD = struct.Struct("<4s4H2LH")


def discover_size(handle: ArchiveHandle, fetcher: RangeFetcher) -> ArchiveHandle:
    """UNSIZED -> SIZED. A handle that already knows its length is returned as-is."""
    if handle.length is not None:
        return handle
    return handle.with_length(fetcher.size())


def parse_eocd(buf: bytes, position: int) -> EOCDRecord:
    if len(buf) < EOCD_SIZE or buf[:4] != EOCD_SIGNATURE:
        raise RecordNotFoundError(f"no end of central directory record at {position}")
    (_, disk, cd_disk, disk_entries, total_entries,
     cd_size, cd_offset, comment_len) = _EOCD.unpack_from(buf)
    return EOCDRecord(
        disk_number=disk,
        central_dir_disk=cd_disk,
        disk_entry_count=disk_entries,
        total_entry_count=total_entries,
        central_dir_size=cd_size,
        central_dir_offset=cd_offset,
        comment_length=comment_len,
        position=position,
    )


def find_eocd(window: bytes, window_start: int) -> EOCDRecord:
    """
    Scan ``window`` backward for the EOCD signature.

    The last occurrence that leaves room for the whole fixed record wins. A
    comment that happens to contain the signature can fool this; nothing else
    is cross-checked.
    """
    i = -1
    if len(window) >= EOCD_SIZE:
        i = window.rfind(EOCD_SIGNATURE, 0, len(window) - EOCD_SIZE + len(EOCD_SIGNATURE))
    if i < 0:
        raise RecordNotFoundError(
            f"end of central directory signature not found in last {len(window)} bytes"
        )
    return parse_eocd(window[i:i + EOCD_SIZE], window_start + i)


def locate_eocd(handle: ArchiveHandle, fetcher: RangeFetcher) -> Tuple[ArchiveHandle, EOCDRecord]:
    handle = discover_size(handle, fetcher)
    if handle.length == 0:
        raise RecordNotFoundError(f"{handle.url} is empty")
    span = min(EOCD_SEARCH_WINDOW, handle.length)
    start = handle.length - span
    window = fetcher.read_range(start, handle.last_byte)
    eocd = find_eocd(window, start)
    logger.info(
        "EOCD at %d: %d entries, directory %d bytes at %d",
        eocd.position, eocd.total_entry_count, eocd.central_dir_size, eocd.central_dir_offset,
    )
    return handle, eocd
