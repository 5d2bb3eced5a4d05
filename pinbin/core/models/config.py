"""
Project configuration model — loaded from pinbin.yaml.

    registries:
      - name: standard
        type: local
        path: registry.yaml
    packages:
      - name: BurntSushi/ripgrep@14.1.0
      - name: cli/cli
        version: v2.40.0
    checksum:
      enabled: true
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from pinbin.core.models.package import PackageInfo

STANDARD_REGISTRY = "standard"


class RegistrySource(BaseModel):
    """Where a registry's package declarations come from."""

    name: str
    type: Literal["local", "standard"] = "local"
    path: str = ""


class PackageEntry(BaseModel):
    """A package as declared in pinbin.yaml.

    ``name`` may carry the version as ``name@version``; ``version`` is then
    empty.  See ``split_version()``.
    """

    name: str
    registry: str = STANDARD_REGISTRY
    version: str = ""
    link: str = ""
    description: str = ""
    # checksums known ahead of time, "<os>/<arch>" → digest
    checksums: dict[str, str] = Field(default_factory=dict)

    def split_version(self) -> tuple[str, str]:
        """Return ``(name, version)`` whichever way the entry was written."""
        if self.version:
            return self.name, self.version
        name, _, version = self.name.partition("@")
        return name, version


class ChecksumSettings(BaseModel):
    """Checksum policy for a project."""

    enabled: bool = False
    require_checksum: bool = False


class ProjectConfig(BaseModel):
    """Root configuration for one pinbin project."""

    registries: list[RegistrySource] = Field(default_factory=list)
    packages: list[PackageEntry] = Field(default_factory=list)
    checksum: ChecksumSettings = Field(default_factory=ChecksumSettings)
    allowed_registries: list[str] = Field(default_factory=list)


class RegistryContent(BaseModel):
    """Parsed content of one registry file."""

    packages: list[PackageInfo] = Field(default_factory=list)
