import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import MissingLengthError, TransportError

logger = logging.getLogger(__name__)


class RangeFetcher:
    """
    Size discovery and inclusive byte-range reads against one URL.

      • HEAD (redirects followed) for the exact Content-Length
      • GET with ``Range: bytes=start-end``, streamed so a response of the
        wrong size is refused before its body is read
      • Failures surface immediately as TransportError / MissingLengthError

    Retries and timeouts are off unless configured; a caller-provided session
    is used as-is and never closed here.

    Thread safety: the fetcher keeps no per-request state of its own, but all
    requests go through one ``requests.Session``, which does not promise
    thread safety. Give each thread its own fetcher (or session) when reads
    must run concurrently.
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_retries: int = 0,
        backoff: float = 0.0,
        user_agent: str = "remote-zip-index/1.0",
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        self.url = url
        self.timeout = timeout

        self._external_session = session is not None
        self.s = session or requests.Session()
        if not self._external_session:
            adapter = HTTPAdapter(
                max_retries=Retry(
                    total=max_retries,
                    connect=max_retries,
                    read=max_retries,
                    backoff_factor=backoff,
                    status_forcelist=(500, 502, 503, 504),
                    allowed_methods=("HEAD", "GET"),
                    raise_on_status=False,
                )
            )
            self.s.mount("http://", adapter)
            self.s.mount("https://", adapter)
        self._base_headers = {"User-Agent": user_agent}

    def size(self) -> int:
        try:
            h = self.s.head(self.url, headers=self._base_headers, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise TransportError(f"HEAD {self.url} failed: {exc}") from exc
        logger.debug("HEAD %s -> %s (%s)", self.url, h.status_code, h.url)
        # a 3xx that survives redirect handling describes the redirect, not the archive
        if not 200 <= h.status_code < 300:
            raise TransportError(f"HEAD {self.url} returned {h.status_code}", status=h.status_code)

        cl = h.headers.get("Content-Length")
        if cl is None:
            raise MissingLengthError(f"{self.url} did not report Content-Length")
        try:
            length = int(cl)
        except ValueError:
            raise MissingLengthError(f"{self.url} reported unusable Content-Length {cl!r}") from None
        if length < 0:
            raise MissingLengthError(f"{self.url} reported negative Content-Length {length}")
        return length

    def read_range(self, start: int, end: int) -> bytes:
        """Return bytes ``start..end`` inclusive; exactly ``end - start + 1`` of them."""
        if start < 0 or end < start:
            raise ValueError(f"invalid byte range {start}-{end}")
        body = self._range_get(start, end)
        expected = end - start + 1
        if len(body) != expected:
            raise TransportError(
                f"range {start}-{end} of {self.url}: expected {expected} bytes, got {len(body)}"
            )
        return body

    def close(self) -> None:
        if not self._external_session:
            self.s.close()

    def __enter__(self) -> "RangeFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # internals
    def _headers_for_range(self, start: int, end: int) -> dict:
        return {**self._base_headers, "Range": f"bytes={start}-{end}"}

    def _range_get(self, start: int, end: int) -> bytes:
        try:
            r = self.s.get(
                self.url, headers=self._headers_for_range(start, end), timeout=self.timeout, stream=True
            )
        except requests.RequestException as exc:
            raise TransportError(f"GET {self.url} bytes={start}-{end} failed: {exc}") from exc
        with r:
            logger.debug("GET %s bytes=%d-%d -> %s", self.url, start, end, r.status_code)
            if r.status_code not in (200, 206):
                raise TransportError(
                    f"GET {self.url} bytes={start}-{end} returned {r.status_code}", status=r.status_code
                )
            expected = end - start + 1
            announced = r.headers.get("Content-Length")
            # 200 means Range was ignored; only a whole object of exactly the
            # requested span may be read
            if r.status_code == 200 and announced != str(expected):
                raise TransportError(
                    f"GET {self.url} bytes={start}-{end}: range ignored, "
                    f"server sent {announced or 'unknown'} bytes instead of {expected}",
                    status=200,
                )
            if announced is not None and announced.isdigit() and int(announced) != expected:
                raise TransportError(
                    f"GET {self.url} bytes={start}-{end}: expected {expected} bytes, server announced {announced}",
                    status=r.status_code,
                )
            try:
                return r.content
            except requests.RequestException as exc:
                raise TransportError(f"GET {self.url} bytes={start}-{end} failed: {exc}") from exc
