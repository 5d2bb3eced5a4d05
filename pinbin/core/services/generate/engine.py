"""
Package resolution — turn identifiers into config entries.

Identifiers::

    ripgrep                  → standard,ripgrep, latest version
    ripgrep@14.1.0           → standard,ripgrep at 14.1.0
    local,acme/tool@v1.0.0   → registry "local"

Lookup is exact (package names and aliases).  One unknown identifier
fails the whole batch: writing a partial list would leave a config that
silently lacks a tool the user asked for.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pinbin.core.errors import StorageError, UnknownPackageError
from pinbin.core.models.config import (
    STANDARD_REGISTRY,
    PackageEntry,
    ProjectConfig,
    RegistryContent,
)
from pinbin.core.models.package import PackageInfo
from pinbin.core.services.registry_index import build_package_index

logger = logging.getLogger(__name__)

VERSION_PLACEHOLDER = "[SET PACKAGE VERSION]"

# (package info, registry name) → latest version or ""
VersionGetter = Callable[[PackageInfo, str], str]


def _no_version(info: PackageInfo, registry: str) -> str:
    return ""


def normalize_identifier(identifier: str) -> str:
    """Prefix the standard registry when the identifier names none."""
    if "," not in identifier:
        return f"{STANDARD_REGISTRY},{identifier}"
    return identifier


def output_entry(
    info: PackageInfo,
    registry: str,
    version: str,
    *,
    pin: bool = False,
    detail: bool = False,
    version_getter: VersionGetter = _no_version,
) -> PackageEntry:
    """Config entry for ``info``, shaped for output.

    With ``pin`` the version stays in its own field; otherwise it is
    folded into the name as ``name@version``.  The standard registry is
    left implicit.
    """
    entry = PackageEntry(name=info.get_name(), registry=registry, version=version)
    if detail:
        entry.link = info.get_link()
        entry.description = info.description

    if not entry.version:
        latest = version_getter(info, registry)
        if not latest:
            entry.version = VERSION_PLACEHOLDER
            return entry
        entry.version = latest

    if pin:
        return entry
    entry.name = f"{entry.name}@{entry.version}"
    entry.version = ""
    return entry


def resolve_identifiers(
    identifiers: list[str],
    registries: dict[str, RegistryContent],
    *,
    pin: bool = False,
    detail: bool = False,
    version_getter: VersionGetter = _no_version,
) -> list[PackageEntry]:
    """Resolve ``[registry,]name[@version]`` identifiers to config entries.

    Raises:
        UnknownPackageError: An identifier matches no package in any registry.
    """
    index = build_package_index(registries)
    entries: list[PackageEntry] = []
    for identifier in identifiers:
        normalized = normalize_identifier(identifier.strip())
        key, _, version = normalized.partition("@")
        found = index.get(key)
        if found is None:
            raise UnknownPackageError("unknown package", package_name=identifier)
        registry, info = found
        entries.append(output_entry(
            info, registry, version,
            pin=pin, detail=detail, version_getter=version_getter,
        ))
    return entries


def read_identifiers_file(path: Path) -> list[str]:
    """Identifiers from a file, one per line; ``#`` starts a comment."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"read the package list: {e}", path=str(path)) from e
    identifiers = []
    for line in raw.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            identifiers.append(line)
    return identifiers


def _entry_identity(entry: PackageEntry) -> tuple[str, str, str]:
    name, version = entry.split_version()
    return entry.registry or STANDARD_REGISTRY, name, version


def exclude_duplicates(cfg: ProjectConfig, entries: list[PackageEntry]) -> list[PackageEntry]:
    """Drop entries the config already declares, and repeats within ``entries``.

    Identity is exact registry, name and version, whichever shape the
    entry is written in; another version of a declared package is kept.
    The first occurrence wins and order is preserved.
    """
    seen = {_entry_identity(e) for e in cfg.packages}
    result: list[PackageEntry] = []
    for entry in entries:
        identity = _entry_identity(entry)
        if identity in seen:
            logger.info("skip a package already declared: %s,%s@%s", *identity)
            continue
        seen.add(identity)
        result.append(entry)
    return result


def list_packages(registries: dict[str, RegistryContent]) -> list[str]:
    """``registry,name`` for every package in every registry."""
    lines = []
    for registry_name, content in registries.items():
        for info in content.packages:
            lines.append(f"{registry_name},{info.get_name()}")
    return lines
