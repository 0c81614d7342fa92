import logging
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import SignatureMismatchError
from .fetcher import RangeFetcher
from .records import CENTRAL_DIR_HEADER_SIZE, CENTRAL_DIR_SIGNATURE, DirectoryEntry, EOCDRecord

logger = logging.getLogger(__name__)

# signature, made-by, needed, flags, method, mtime, mdate, crc32, csize, usize,
# name len, extra len, comment len, disk start, internal attr, external attr,
# local header offset
_CENTRAL_HEADER = struct.Struct("<4s6H3L5H2L")


@dataclass(frozen=True)
class CentralDirectory:
    """Decoded entries in directory order, plus the error that cut decoding short."""

    eocd: EOCDRecord
    entries: Tuple[DirectoryEntry, ...]
    error: Optional[SignatureMismatchError] = field(default=None)

    @property
    def complete(self) -> bool:
        return self.error is None and len(self.entries) == self.eocd.total_entry_count


def decode_name(raw: bytes) -> str:
    # surrogateescape keeps the exact byte length recoverable for bad UTF-8
    return raw.decode("utf-8", "surrogateescape")


def parse_entry(buf: bytes, offset: int, index: int = 0) -> Tuple[DirectoryEntry, int]:
    """Decode the entry at ``offset``; return it with the offset of the next one."""
    if buf[offset:offset + 4] != CENTRAL_DIR_SIGNATURE:
        raise SignatureMismatchError(
            f"central directory entry {index} at {offset}: bad signature {buf[offset:offset + 4].hex()}",
            offset=offset,
            index=index,
        )
    if offset + CENTRAL_DIR_HEADER_SIZE > len(buf):
        raise SignatureMismatchError(
            f"central directory entry {index} at {offset} is truncated", offset=offset, index=index
        )
    (_, _, _, _, method, _, _, crc, csize, usize,
     name_len, extra_len, comment_len, _, _, _, local_offset) = _CENTRAL_HEADER.unpack_from(buf, offset)

    name_start = offset + CENTRAL_DIR_HEADER_SIZE
    if name_start + name_len > len(buf):
        raise SignatureMismatchError(
            f"central directory entry {index} at {offset}: name runs past the directory",
            offset=offset,
            index=index,
        )
    entry = DirectoryEntry(
        name=decode_name(buf[name_start:name_start + name_len]),
        compressed_size=csize,
        uncompressed_size=usize,
        local_header_offset=local_offset,
        name_length=name_len,
        extra_field_length=extra_len,
        comment_length=comment_len,
        compression_method=method,
        crc32=crc,
    )
    return entry, name_start + name_len + extra_len + comment_len


def decode_entries(buf: bytes, eocd: EOCDRecord) -> CentralDirectory:
    """
    Decode up to ``eocd.total_entry_count`` entries from ``buf``.

    A bad entry stops decoding; whatever was decoded before it is kept and the
    failure is attached to the result instead of being raised.
    """
    entries: List[DirectoryEntry] = []
    offset = 0
    for index in range(eocd.total_entry_count):
        try:
            entry, offset = parse_entry(buf, offset, index)
        except SignatureMismatchError as exc:
            logger.warning("stopped reading central directory after %d entries: %s", len(entries), exc)
            return CentralDirectory(eocd, tuple(entries), exc)
        entries.append(entry)
    return CentralDirectory(eocd, tuple(entries))


def read_central_directory(fetcher: RangeFetcher, eocd: EOCDRecord) -> CentralDirectory:
    if eocd.total_entry_count == 0 or eocd.central_dir_size == 0:
        return CentralDirectory(eocd, ())
    buf = fetcher.read_range(eocd.central_dir_offset, eocd.central_dir_end - 1)
    directory = decode_entries(buf, eocd)
    logger.info("decoded %d of %d central directory entries", len(directory.entries), eocd.total_entry_count)
    return directory
