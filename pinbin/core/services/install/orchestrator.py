"""
Install orchestration — install every package a project pins.

``install_all`` is what ``pinbin install`` runs:

1. Load the checksum ledger (when checksums are enabled).
2. Resolve each config entry against the registries.  Entries that pin
   their own checksums are resolved lazily, inside their
   ``SingleInstallCoordinator``.
3. Install the packages in parallel on a thread pool.  Coordinated
   entries verify against their pinned checksums; the rest against the
   shared ledger.
4. Persist the ledger once, whatever happened.

Failures are collected per package and reported together.  Nothing is
retried; a failure of any kind in one package does not stop the others.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from pathlib import Path
from typing import Any

from pinbin.core.config.loader import checksum_enabled, checksum_file_path
from pinbin.core.errors import (
    IntegrityError,
    PinbinError,
    UnknownPackageError,
    UnsupportedPlatformError,
)
from pinbin.core.models.config import PackageEntry, ProjectConfig, RegistryContent
from pinbin.core.models.package import Package, PackageInfo
from pinbin.core.services.checksum.ledger import ChecksumLedger
from pinbin.core.services.install.coordinator import (
    CoordinatorRegistry,
    LazyPackage,
    SingleInstallCoordinator,
)
from pinbin.core.services.install.installer import InstallParam, PackageInstaller
from pinbin.core.services.install.supported import prepare_package
from pinbin.core.services.registry_index import build_package_index

logger = logging.getLogger(__name__)


def resolve_entry(
    entry: PackageEntry,
    index: dict[str, tuple[str, PackageInfo]],
) -> Package:
    """Config entry → ``Package`` with its registry metadata.

    Raises:
        UnknownPackageError: No registry declares the package.
    """
    name, version = entry.split_version()
    found = index.get(f"{entry.registry},{name}")
    if found is None:
        raise UnknownPackageError(
            "the package isn't found in the registry",
            package_name=name, registry=entry.registry,
        )
    _registry, info = found
    return Package(name=info.get_name(), registry=entry.registry, version=version, info=info)


def _install_with_ledger(
    installer: PackageInstaller,
    pkg: Package,
    ledger: ChecksumLedger | None,
    cancel: threading.Event | None,
) -> Path | None:
    """Install ``pkg`` verifying against the project ledger."""
    try:
        pkg = prepare_package(pkg, installer.runtime)
    except UnsupportedPlatformError as e:
        logger.debug("skip: %s", e)
        return None
    return installer.install_package(InstallParam(package=pkg, ledger=ledger), cancel)


def install_all(
    cfg: ProjectConfig,
    config_path: Path,
    registries: dict[str, RegistryContent],
    installer: PackageInstaller,
    *,
    only: list[str] | None = None,
    jobs: int = 4,
    cancel: threading.Event | None = None,
    coordinators: CoordinatorRegistry | None = None,
) -> dict[str, Any]:
    """Install the packages pinned in ``cfg``.

    Args:
        cfg: Project configuration.
        config_path: Path of the config file (locates the checksum ledger).
        registries: Loaded registry contents.
        installer: Installer to delegate to.
        only: Restrict to these package names.
        jobs: Worker threads.
        cancel: Cancellation signal shared by every install.
        coordinators: Registry of per-package coordinators (new one if None).

    Returns::

        {
            "ok": False,
            "installed": ["cli/cli@v2.40.0"],
            "skipped": ["foo/winonly@v1.0.0"],
            "failed": [{"package": "x/y@v1", "error": "...", "integrity": True}],
            "checksum_file": "/path/pinbin-checksums.json",
        }
    """
    if coordinators is None:
        coordinators = CoordinatorRegistry()
    ledger: ChecksumLedger | None = None
    ledger_path: Path | None = None
    if checksum_enabled(cfg):
        ledger = ChecksumLedger()
        ledger_path = checksum_file_path(config_path)
        ledger.load(ledger_path)

    index = build_package_index(registries)
    installed: list[str] = []
    skipped: list[str] = []
    failed: list[dict[str, Any]] = []

    # (label, callable) per distinct package, first occurrence wins
    tasks: dict[str, Any] = {}
    for entry in cfg.packages:
        name, version = entry.split_version()
        if only and name not in only:
            continue

        if entry.checksums:
            # resolved under the coordinator's lock; lookup errors surface from install()
            key = f"{entry.registry},{name}@{version}"
            label = f"{name}@{version}"
            if key in tasks:
                logger.debug("package %s is declared twice", label)
                continue
            coordinator = coordinators.get_or_create(
                key,
                lambda e=entry, c=entry.checksums: SingleInstallCoordinator(
                    installer, LazyPackage(lambda: resolve_entry(e, index)), c,
                ),
            )
            tasks[key] = (label, lambda c=coordinator: c.install(cancel))
            continue

        try:
            pkg = resolve_entry(entry, index)
        except PinbinError as e:
            failed.append({"package": entry.name, "error": str(e), "integrity": False})
            continue

        label = f"{pkg.name}@{pkg.version}"
        if pkg.key in tasks:
            logger.debug("package %s is declared twice", label)
            continue
        tasks[pkg.key] = (
            label,
            lambda p=pkg: _install_with_ledger(installer, p, ledger, cancel),
        )

    try:
        with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
            futures = {pool.submit(fn): label for label, fn in tasks.values()}
            for future in concurrent.futures.as_completed(futures):
                label = futures[future]
                try:
                    path = future.result()
                except PinbinError as e:
                    logger.error("install %s: %s", label, e)
                    failed.append({
                        "package": label,
                        "error": str(e),
                        "integrity": isinstance(e, IntegrityError),
                    })
                    continue
                except Exception as e:
                    logger.exception("install %s: unexpected error", label)
                    failed.append({"package": label, "error": str(e), "integrity": False})
                    continue
                if path is None:
                    skipped.append(label)
                else:
                    installed.append(label)
    finally:
        if ledger is not None and ledger_path is not None:
            ledger.persist(ledger_path)

    return {
        "ok": not failed,
        "installed": sorted(installed),
        "skipped": sorted(skipped),
        "failed": failed,
        "checksum_file": str(ledger_path) if ledger_path else "",
    }
