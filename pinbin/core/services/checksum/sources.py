"""
Checksum sources — where release checksum manifests are fetched from.

``ChecksumSource`` is the seam the verifier depends on; ``HTTPChecksumSource``
is the default, downloading the manifest declared in the package's
``checksum`` block.
"""

from __future__ import annotations

import http.client
import logging
import threading
import urllib.error
import urllib.request
from typing import Protocol

from pinbin import __version__
from pinbin.core.errors import InstallCancelledError, StorageError
from pinbin.core.models.package import Package
from pinbin.core.runtime import Runtime
from pinbin.core.services.templates import checksum_manifest_url

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024
_USER_AGENT = f"pinbin/{__version__}"


class ChecksumSource(Protocol):
    """Fetches a release's checksum manifest."""

    def fetch(
        self,
        package: Package,
        runtime: Runtime,
        cancel: threading.Event | None = None,
    ) -> str | None:
        """Manifest text, or None when the release publishes none."""
        ...


class HTTPChecksumSource:
    """Downloads manifests over HTTP(S) with ``urllib``."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def fetch(
        self,
        package: Package,
        runtime: Runtime,
        cancel: threading.Event | None = None,
    ) -> str | None:
        url = checksum_manifest_url(package, runtime)
        if not url:
            logger.debug("Package %s declares no checksum file", package.name)
            return None

        logger.info("Downloading checksum file %s", url)
        chunks: list[bytes] = []
        try:
            req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                while True:
                    if cancel is not None and cancel.is_set():
                        raise InstallCancelledError(
                            "checksum download cancelled", url=url,
                        )
                    chunk = resp.read(_CHUNK)
                    if not chunk:
                        break
                    chunks.append(chunk)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                logger.warning("Checksum file not found: %s", url)
                return None
            raise StorageError(f"download a checksum file: HTTP {e.code}", url=url) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise StorageError(f"download a checksum file: {e}", url=url) from e

        return b"".join(chunks).decode("utf-8", errors="replace")
