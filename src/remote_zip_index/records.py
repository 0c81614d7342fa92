import enum
from dataclasses import dataclass, replace
from typing import Optional

EOCD_SIGNATURE = b"PK\x05\x06"
CENTRAL_DIR_SIGNATURE = b"PK\x01\x02"
LOCAL_HEADER_SIGNATURE = b"PK\x03\x04"

EOCD_SIZE = 22
CENTRAL_DIR_HEADER_SIZE = 46
LOCAL_HEADER_SIZE = 30
MAX_COMMENT_LENGTH = 65535
EOCD_SEARCH_WINDOW = MAX_COMMENT_LENGTH + EOCD_SIZE

COMPRESSION_STORED = 0

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


class ArchiveState(enum.Enum):
    UNSIZED = "unsized"
    SIZED = "sized"
    DIRECTORY_LOADED = "directory-loaded"
    ENTRIES_RESOLVED = "entries-resolved"


class ContentKind(str, enum.Enum):
    PNG = "image/png"
    JPEG = "image/jpeg"
    BINARY = "application/octet-stream"

    @classmethod
    def for_name(cls, name: str) -> "ContentKind":
        lowered = name.lower()
        if lowered.endswith(".png"):
            return cls.PNG
        if lowered.endswith((".jpg", ".jpeg")):
            return cls.JPEG
        return cls.BINARY


@dataclass(frozen=True)
class ArchiveHandle:
    """A remote archive: its URL and, once discovered, its exact byte length."""

    url: str
    length: Optional[int] = None

    @property
    def state(self) -> ArchiveState:
        return ArchiveState.UNSIZED if self.length is None else ArchiveState.SIZED

    @property
    def last_byte(self) -> int:
        if self.length is None:
            raise ValueError("archive length has not been discovered")
        return self.length - 1

    def with_length(self, length: int) -> "ArchiveHandle":
        if self.length is not None:
            raise ValueError("archive length is already known")
        return replace(self, length=length)


@dataclass(frozen=True)
class EOCDRecord:
    disk_number: int
    central_dir_disk: int
    disk_entry_count: int
    total_entry_count: int
    central_dir_size: int
    central_dir_offset: int
    comment_length: int
    # absolute position of the signature's first byte
    position: int

    @property
    def central_dir_end(self) -> int:
        return self.central_dir_offset + self.central_dir_size


@dataclass(frozen=True)
class DirectoryEntry:
    """
    One file or directory from the central directory.

    ``data_offset`` and ``local_name_length`` stay ``None`` until the entry is
    resolved; directories are never resolved. ``offset_assumed`` marks an
    offset computed without reading the local header (zero extra field and a
    local name identical to the central one are assumed).
    """

    name: str
    compressed_size: int
    uncompressed_size: int
    local_header_offset: int
    name_length: int
    extra_field_length: int
    comment_length: int
    compression_method: int = COMPRESSION_STORED
    crc32: int = 0
    data_offset: Optional[int] = None
    local_name_length: Optional[int] = None
    offset_assumed: bool = False

    @property
    def is_directory(self) -> bool:
        return self.name.endswith("/")

    @property
    def is_image(self) -> bool:
        return not self.is_directory and self.name.lower().endswith(IMAGE_SUFFIXES)

    @property
    def is_stored(self) -> bool:
        return self.compression_method == COMPRESSION_STORED

    @property
    def is_resolved(self) -> bool:
        return self.data_offset is not None


@dataclass(frozen=True)
class ExtractedContent:
    data: bytes
    kind: ContentKind

    @property
    def content_type(self) -> str:
        return self.kind.value

    def __len__(self) -> int:
        return len(self.data)
