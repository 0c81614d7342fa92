import logging

from .fetcher import RangeFetcher
from .records import ContentKind, DirectoryEntry, ExtractedContent
from .resolver import resolve_entry

logger = logging.getLogger(__name__)


def extract_entry(fetcher: RangeFetcher, entry: DirectoryEntry) -> ExtractedContent:
    """
    Fetch an entry's bytes with a single range read.

    Only stored entries come back as their real content; anything else is
    returned as the raw compressed bytes. Nothing is cached.
    """
    if entry.is_directory:
        raise ValueError(f"{entry.name!r} is a directory")
    entry = resolve_entry(entry)
    if not entry.is_stored:
        logger.warning(
            "%s uses compression method %d; returning raw bytes", entry.name, entry.compression_method
        )
    kind = ContentKind.for_name(entry.name)
    if entry.compressed_size == 0:
        return ExtractedContent(b"", kind)
    data = fetcher.read_range(entry.data_offset, entry.data_offset + entry.compressed_size - 1)
    return ExtractedContent(data, kind)
