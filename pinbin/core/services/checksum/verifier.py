"""
Artifact checksum verification.

Every downloaded artifact passes through ``ArtifactChecksumVerifier.verify``
before it reaches the install directory:

1. The body is streamed into a temporary file owned by this call and
   hashed on the way (package algorithm, sha256 by default).
2. The expected digest comes from the ledger, or from the release's
   checksum manifest when the ledger has none and the package publishes
   checksums.  Every manifest entry is recorded in the ledger.
3. A mismatch raises ``IntegrityError``.  When no expected digest exists
   anywhere the computed one is recorded (trust on first use), unless the
   verifier was built with ``trust_on_first_use=False``.

The temporary file is closed (and so removed) on every failure path; on
success the caller gets it back, rewound, and owns closing it.
"""

from __future__ import annotations

import hashlib
import logging
import tempfile
import threading
from pathlib import Path
from typing import IO, BinaryIO

from pinbin.core.errors import (
    ChecksumParseError,
    InstallCancelledError,
    IntegrityError,
    PinbinError,
    StorageError,
)
from pinbin.core.models.package import Package
from pinbin.core.observability.logging_config import package_logger
from pinbin.core.runtime import Runtime
from pinbin.core.services.checksum.checksum_id import checksum_id, checksum_id_from_asset
from pinbin.core.services.checksum.ledger import ChecksumLedger
from pinbin.core.services.checksum.manifest import parse_checksum_manifest
from pinbin.core.services.checksum.sources import ChecksumSource

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024

SUPPORTED_ALGORITHMS = ("sha256", "sha512", "sha1", "md5")


def new_hash(algorithm: str):
    """hashlib object for a package's declared algorithm."""
    algo = (algorithm or "sha256").lower()
    if algo not in SUPPORTED_ALGORITHMS:
        raise PinbinError(f"unsupported checksum algorithm: {algorithm}", algorithm=algorithm)
    return hashlib.new(algo)


def calculate_checksum(path: Path, algorithm: str = "sha256") -> str:
    """Hex digest of the file at ``path``."""
    h = new_hash(algorithm)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


class ArtifactChecksumVerifier:
    """Verifies downloaded artifacts against the checksum ledger."""

    def __init__(
        self,
        checksum_source: ChecksumSource,
        runtime: Runtime,
        *,
        trust_on_first_use: bool = True,
        tmp_dir: Path | None = None,
    ) -> None:
        self.checksum_source = checksum_source
        self.runtime = runtime
        self.trust_on_first_use = trust_on_first_use
        self.tmp_dir = tmp_dir

    def verify(
        self,
        package: Package,
        asset: str,
        body: BinaryIO,
        ledger: ChecksumLedger,
        cancel: threading.Event | None = None,
    ) -> IO[bytes]:
        """Stream ``body`` to a temp file, verify it, return it rewound.

        Raises:
            IntegrityError: Computed digest differs from the expected one.
            ChecksumParseError: The release manifest has no usable entry.
            StorageError: Temp file or manifest download failed.
            InstallCancelledError: ``cancel`` was set before verification finished.
        """
        log = package_logger(
            logger, package_name=package.name, package_version=package.version,
        )
        algorithm = package.info.checksum.get_algorithm()

        try:
            tmp = tempfile.TemporaryFile(dir=self.tmp_dir)
        except OSError as e:
            raise StorageError(f"create a temporary file: {e}", asset=asset) from e

        try:
            calculated = self._stream(body, tmp, algorithm, cancel)
            expected = self._expected_checksum(package, asset, ledger, cancel, log)
            chk_id = checksum_id(package, self.runtime, asset or None)

            if expected and calculated != expected:
                raise IntegrityError(
                    "checksum is invalid",
                    actual=calculated,
                    expected=expected,
                    package_name=package.name,
                    package_version=package.version,
                    checksum_id=chk_id,
                )
            if not expected:
                if not self.trust_on_first_use:
                    raise IntegrityError(
                        "no checksum is known for the artifact",
                        actual=calculated,
                        expected="",
                        package_name=package.name,
                        package_version=package.version,
                        checksum_id=chk_id,
                    )
                log.info("recording checksum %s for %s", calculated, chk_id)
                ledger.set(chk_id, calculated, algorithm)

            tmp.seek(0)
            return tmp
        except BaseException:
            tmp.close()
            raise

    def _stream(
        self,
        body: BinaryIO,
        tmp: IO[bytes],
        algorithm: str,
        cancel: threading.Event | None,
    ) -> str:
        h = new_hash(algorithm)
        try:
            for chunk in iter(lambda: body.read(_CHUNK), b""):
                if cancel is not None and cancel.is_set():
                    raise InstallCancelledError("download cancelled")
                h.update(chunk)
                tmp.write(chunk)
            tmp.flush()
        except OSError as e:
            raise StorageError(f"write a temporary file: {e}") from e
        return h.hexdigest()

    def _expected_checksum(
        self,
        package: Package,
        asset: str,
        ledger: ChecksumLedger,
        cancel: threading.Event | None,
        log,
    ) -> str:
        """Ledger value, else the release manifest's value, else ``""``."""
        chk_id = checksum_id(package, self.runtime, asset or None)
        expected = ledger.get(chk_id)
        if expected or not package.info.checksum.enabled:
            return expected

        if cancel is not None and cancel.is_set():
            raise InstallCancelledError("install cancelled before checksum download")

        log.info("downloading a checksum file")
        raw = self.checksum_source.fetch(package, self.runtime, cancel)
        if raw is None:
            return ""

        try:
            entries = parse_checksum_manifest(raw, package, asset)
        except ChecksumParseError as e:
            raise e.with_fields(asset=asset)

        algorithm = package.info.checksum.get_algorithm()
        for filename, value in entries.items():
            try:
                entry_id = checksum_id_from_asset(package, self.runtime, filename)
            except ValueError as e:
                log.error("get checksum ID: %s", e)
                continue
            ledger.set(entry_id, value, algorithm)

        return entries.get(asset, "")
