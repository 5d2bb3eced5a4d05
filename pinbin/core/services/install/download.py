"""
Artifact download — opens the byte stream the verifier consumes.
"""

from __future__ import annotations

import contextlib
import http.client
import logging
import urllib.error
import urllib.request
from typing import BinaryIO, Iterator, Protocol

from pinbin import __version__
from pinbin.core.errors import StorageError

logger = logging.getLogger(__name__)


class Downloader(Protocol):
    """Opens a URL as a readable binary stream."""

    def open(self, url: str) -> contextlib.AbstractContextManager[BinaryIO]:
        ...


class HTTPDownloader:
    """``urllib`` based downloader for release assets."""

    def __init__(self, timeout: float = 60.0) -> None:
        self.timeout = timeout

    @contextlib.contextmanager
    def open(self, url: str) -> Iterator[BinaryIO]:
        logger.debug("GET %s", url)
        try:
            req = urllib.request.Request(
                url, headers={"User-Agent": f"pinbin/{__version__}"},
            )
            resp = urllib.request.urlopen(req, timeout=self.timeout)
        except urllib.error.HTTPError as e:
            raise StorageError(f"download a package: HTTP {e.code}", url=url) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise StorageError(f"download a package: {e}", url=url) from e
        with resp:
            try:
                yield resp
            except (http.client.HTTPException, OSError) as e:
                # truncated body or dropped connection while the caller reads
                raise StorageError(f"download a package: {e!r}", url=url) from e
