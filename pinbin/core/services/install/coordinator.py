"""
Single-install coordination — one package, installed once, one at a time.

Several callers may discover that the same package must be installed
(two tools pinned with the same helper binary, the same entry twice in
a config).  Each distinct package gets exactly one
``SingleInstallCoordinator`` from the ``CoordinatorRegistry``; its lock
serialises every install attempt for that package, and after the first
one succeeds the others find the file already in place.

The coordinator installs with checksums known ahead of time
(``{"linux/amd64": "<sha256>", ...}``) into a throwaway ledger, so the
project's checksum file is neither consulted nor updated for it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Protocol

from pinbin.core.errors import PinbinError, UnsupportedPlatformError
from pinbin.core.models.package import Package
from pinbin.core.observability.logging_config import package_logger
from pinbin.core.services.checksum.ledger import ChecksumLedger
from pinbin.core.services.install.installer import InstallParam, PackageInstaller
from pinbin.core.services.install.supported import prepare_package

logger = logging.getLogger(__name__)


class PackageResolver(Protocol):
    """Late-bound package: resolved only once the install lock is held."""

    def resolve(self) -> Package:
        ...


class LazyPackage:
    """``PackageResolver`` over a factory; the factory runs at most once."""

    def __init__(self, factory: Callable[[], Package]) -> None:
        self._factory = factory
        self._package: Package | None = None

    def resolve(self) -> Package:
        if self._package is None:
            self._package = self._factory()
        return self._package


class SingleInstallCoordinator:
    """Serialises installs of one package.

    Args:
        installer: Underlying installer.
        resolver: Yields the package; called with the lock held.
        checksums: ``{"<os>/<arch>": digest}`` known for this package.
    """

    def __init__(
        self,
        installer: PackageInstaller,
        resolver: PackageResolver,
        checksums: dict[str, str] | None = None,
    ) -> None:
        self.installer = installer
        self.resolver = resolver
        self.checksums = dict(checksums or {})
        self._lock = threading.Lock()

    def install(self, cancel: threading.Event | None = None) -> Path | None:
        """Install the package.

        Returns:
            Installed path, or None when the package does not support
            this platform (logged, not an error).

        Raises:
            PinbinError: Any install failure, annotated with name and version.
        """
        with self._lock:
            runtime = self.installer.runtime
            try:
                pkg = prepare_package(self.resolver.resolve(), runtime)
            except UnsupportedPlatformError as e:
                logger.debug("skip: %s", e)
                return None

            log = package_logger(
                logger, package_name=pkg.name, package_version=pkg.version,
            )
            info = pkg.info
            key = runtime.platform_key(info.rosetta2, info.windows_arm_emulation)
            chksum = self.checksums.get(key, "")
            if not chksum:
                log.warning("no pinned checksum for %s", key)

            try:
                return self.installer.install_package(
                    InstallParam(
                        package=pkg,
                        # verified against the pinned checksum, never persisted
                        ledger=ChecksumLedger(),
                        expected_checksum=chksum,
                        disable_policy_checks=True,
                    ),
                    cancel,
                )
            except PinbinError as e:
                raise e.with_fields(package_name=pkg.name, package_version=pkg.version)


class CoordinatorRegistry:
    """Process-wide ``package key → coordinator`` map.

    Creation is guarded so concurrent callers asking for the same key
    always share one coordinator (and therefore one lock).
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._coordinators: dict[str, SingleInstallCoordinator] = {}

    def get_or_create(
        self,
        key: str,
        factory: Callable[[], SingleInstallCoordinator],
    ) -> SingleInstallCoordinator:
        with self._guard:
            coordinator = self._coordinators.get(key)
            if coordinator is None:
                coordinator = factory()
                self._coordinators[key] = coordinator
            return coordinator

    def __len__(self) -> int:
        with self._guard:
            return len(self._coordinators)
