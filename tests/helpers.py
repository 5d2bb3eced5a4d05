"""
Test doubles for the network collaborators.
"""

from __future__ import annotations

import contextlib
import hashlib
import io


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class FakeChecksumSource:
    """Serves a fixed manifest and counts fetches."""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.calls = 0

    def fetch(self, package, runtime, cancel=None):
        self.calls += 1
        return self.text


class FakeDownloader:
    """Serves bytes per URL and records every request."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = dict(files or {})
        self.requested: list[str] = []

    @contextlib.contextmanager
    def open(self, url: str):
        self.requested.append(url)
        yield io.BytesIO(self.files[url])
