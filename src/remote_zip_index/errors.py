import enum
from typing import Optional


class ErrorKind(enum.Enum):
    TRANSPORT = "transport"
    MISSING_LENGTH = "missing-length"
    RECORD_NOT_FOUND = "record-not-found"
    SIGNATURE_MISMATCH = "signature-mismatch"


class RemoteZipError(Exception):
    """Base class; ``kind`` tells callers which failure they are looking at."""

    kind: ErrorKind


class TransportError(RemoteZipError):
    """Non-success, failed or short response from a HEAD or range request."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class MissingLengthError(RemoteZipError):
    kind = ErrorKind.MISSING_LENGTH


class RecordNotFoundError(RemoteZipError):
    kind = ErrorKind.RECORD_NOT_FOUND


class SignatureMismatchError(RemoteZipError):
    kind = ErrorKind.SIGNATURE_MISMATCH

    def __init__(self, message: str, offset: int, index: Optional[int] = None) -> None:
        super().__init__(message)
        # offset within the buffer that was checked; entry ordinal for directory entries
        self.offset = offset
        self.index = index
