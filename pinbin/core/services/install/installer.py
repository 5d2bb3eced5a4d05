"""
Package installer — download, verify and place one package.

``PackageInstaller.install_package`` is the boundary every install goes
through, whether it comes from the config file or from a
``SingleInstallCoordinator``.  Files land at::

    <root>/pkgs/<type>/<package name>/<version>/<asset>
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

from pinbin.core.errors import (
    InstallCancelledError,
    PinbinError,
    PolicyError,
    StorageError,
)
from pinbin.core.models.package import Package
from pinbin.core.observability.logging_config import package_logger
from pinbin.core.runtime import Runtime
from pinbin.core.services.checksum.checksum_id import ARCHIVE_FILENAME, checksum_id
from pinbin.core.services.checksum.ledger import ChecksumLedger
from pinbin.core.services.checksum.verifier import ArtifactChecksumVerifier
from pinbin.core.services.install.download import Downloader
from pinbin.core.services.templates import asset_name, download_url

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


@dataclass
class InstallParam:
    """Arguments to ``PackageInstaller.install_package``.

    Attributes:
        package: Package with its version overrides already applied.
        ledger: Ledger to verify against; None skips verification.
        expected_checksum: Digest known out of band, seeded into ``ledger``.
        disable_policy_checks: Skip the registry allowlist.
    """

    package: Package
    ledger: ChecksumLedger | None = None
    expected_checksum: str = ""
    disable_policy_checks: bool = False


class PackageInstaller:
    """Installs packages into ``root_dir`` for ``runtime``."""

    def __init__(
        self,
        root_dir: Path,
        runtime: Runtime,
        downloader: Downloader,
        verifier: ArtifactChecksumVerifier,
        *,
        allowed_registries: list[str] | None = None,
    ) -> None:
        self.root_dir = root_dir
        self.runtime = runtime
        self.downloader = downloader
        self.verifier = verifier
        self.allowed_registries = list(allowed_registries or [])

    def install_path(self, package: Package) -> Path:
        asset = asset_name(package, self.runtime) or ARCHIVE_FILENAME
        return (
            self.root_dir / "pkgs" / package.info.type / package.name
            / package.version / asset
        )

    def install_package(self, param: InstallParam, cancel: threading.Event | None = None) -> Path:
        """Install ``param.package`` unless it is already in place.

        Returns:
            Path of the installed file.

        Raises:
            PolicyError: Registry not allowed and policy checks are on.
            IntegrityError / StorageError / InstallCancelledError: from the
                download and verification steps, with package context attached.
        """
        pkg = param.package
        log = package_logger(
            logger, package_name=pkg.name, package_version=pkg.version,
        )

        if not param.disable_policy_checks and self.allowed_registries:
            if pkg.registry not in self.allowed_registries:
                raise PolicyError(
                    "the package's registry isn't allowed by the policy",
                    package_name=pkg.name, registry=pkg.registry,
                )

        dest = self.install_path(pkg)
        if dest.is_file():
            log.debug("already installed at %s", dest)
            return dest

        asset = asset_name(pkg, self.runtime)
        if param.ledger is not None and param.expected_checksum:
            param.ledger.set(
                checksum_id(pkg, self.runtime, asset or None),
                param.expected_checksum,
                pkg.info.checksum.get_algorithm(),
            )

        url = download_url(pkg, self.runtime)
        log = log.bind(env=self.runtime.env())
        log.info("downloading %s", url)
        try:
            with self.downloader.open(url) as body:
                if param.ledger is None:
                    self._place(body, dest, cancel)
                else:
                    verified = self.verifier.verify(pkg, asset, body, param.ledger, cancel)
                    with verified:
                        self._place(verified, dest, cancel)
        except PinbinError as e:
            raise e.with_fields(
                package_name=pkg.name,
                package_version=pkg.version,
                env=self.runtime.env(),
            )

        log.info("installed %s", dest)
        return dest

    def _place(self, src, dest: Path, cancel: threading.Event | None) -> None:
        """Copy ``src`` to ``dest`` atomically and mark it executable."""
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=".pinbin_", suffix=".tmp")
            tmp = Path(tmp_name)
            try:
                with open(fd, "wb") as out:
                    for chunk in iter(lambda: src.read(_CHUNK), b""):
                        if cancel is not None and cancel.is_set():
                            raise InstallCancelledError("install cancelled")
                        out.write(chunk)
                os.chmod(tmp, 0o755)
                tmp.replace(dest)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"install the package file: {e}", path=str(dest)) from e
