"""
Package models — registry declarations and install requests.

``PackageInfo`` is what a registry says about a tool (where its assets
live, which platforms it supports, how its checksums are published).
``Package`` is one request to install a tool at a version.  Overrides
always produce a fresh ``PackageInfo``; nothing here mutates in place.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_CHECKSUM_ALGORITHM = "sha256"

PackageType = Literal["github_release", "github_archive", "http", "go"]


class Alias(BaseModel):
    """An alternative name a package can be requested by."""

    name: str = ""


class ChecksumConfig(BaseModel):
    """How a package publishes checksums for its releases."""

    enabled: bool = False
    type: Literal["github_release", "http"] = "github_release"
    asset: str = ""                             # manifest filename template
    url: str = ""                               # manifest URL template (http)
    file_format: Literal["line", "raw"] = "line"
    algorithm: str = DEFAULT_CHECKSUM_ALGORITHM

    def get_algorithm(self) -> str:
        return self.algorithm or DEFAULT_CHECKSUM_ALGORITHM


class PlatformOverride(BaseModel):
    """Field overrides selected by OS / architecture."""

    goos: str = ""
    goarch: str = ""
    asset: str | None = None
    url: str | None = None
    format: str | None = None
    replacements: dict[str, str] | None = None
    checksum: ChecksumConfig | None = None

    def matches(self, goos: str, goarch: str) -> bool:
        if self.goos and self.goos != goos:
            return False
        if self.goarch and self.goarch != goarch:
            return False
        return True


class VersionOverride(BaseModel):
    """Field overrides selected by a version constraint expression."""

    version_constraint: str = ""
    type: PackageType | None = None
    asset: str | None = None
    url: str | None = None
    format: str | None = None
    supported_envs: list[str] | None = None
    rosetta2: bool | None = None
    windows_arm_emulation: bool | None = None
    replacements: dict[str, str] | None = None
    checksum: ChecksumConfig | None = None
    overrides: list[PlatformOverride] | None = None


# Fields a VersionOverride / PlatformOverride may replace.
VERSION_OVERRIDE_FIELDS: tuple[str, ...] = (
    "type", "asset", "url", "format", "supported_envs", "rosetta2",
    "windows_arm_emulation", "replacements", "checksum", "overrides",
)
PLATFORM_OVERRIDE_FIELDS: tuple[str, ...] = (
    "asset", "url", "format", "replacements", "checksum",
)


class PackageInfo(BaseModel):
    """A package declaration as found in a registry."""

    type: PackageType = "github_release"
    repo_owner: str = ""
    repo_name: str = ""
    name: str = ""
    asset: str = ""
    url: str = ""
    format: str = "raw"
    description: str = ""
    link: str = ""
    aliases: list[Alias] = Field(default_factory=list)
    supported_envs: list[str] = Field(default_factory=list)
    rosetta2: bool = False
    windows_arm_emulation: bool = False
    replacements: dict[str, str] = Field(default_factory=dict)
    checksum: ChecksumConfig = Field(default_factory=ChecksumConfig)
    version_constraint: str = ""
    version_overrides: list[VersionOverride] = Field(default_factory=list)
    overrides: list[PlatformOverride] = Field(default_factory=list)

    def get_name(self) -> str:
        """Declared name, or ``owner/repo`` when the registry omits it."""
        if self.name:
            return self.name
        if self.repo_owner and self.repo_name:
            return f"{self.repo_owner}/{self.repo_name}"
        return self.url

    def get_link(self) -> str:
        if self.link:
            return self.link
        if self.repo_owner and self.repo_name:
            return f"https://github.com/{self.repo_owner}/{self.repo_name}"
        return ""


class Package(BaseModel):
    """One request to install ``info`` at ``version`` from ``registry``."""

    name: str
    registry: str = "standard"
    version: str = ""
    info: PackageInfo = Field(default_factory=PackageInfo)

    def with_info(self, info: PackageInfo) -> Package:
        """Copy of this package carrying replacement metadata."""
        return self.model_copy(update={"info": info})

    @property
    def key(self) -> str:
        """Identity used to collapse concurrent installs of the same tool."""
        return f"{self.registry},{self.name}@{self.version}"
