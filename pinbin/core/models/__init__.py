"""
Domain models — Pydantic types for pinbin.

All models are re-exported here for convenient access:

    from pinbin.core.models import Package, PackageInfo, ProjectConfig
"""

from pinbin.core.models.config import (
    STANDARD_REGISTRY,
    ChecksumSettings,
    PackageEntry,
    ProjectConfig,
    RegistryContent,
    RegistrySource,
)
from pinbin.core.models.package import (
    Alias,
    ChecksumConfig,
    Package,
    PackageInfo,
    PlatformOverride,
    VersionOverride,
)

__all__ = [
    # config.py
    "STANDARD_REGISTRY",
    "ChecksumSettings",
    "PackageEntry",
    "ProjectConfig",
    "RegistryContent",
    "RegistrySource",
    # package.py
    "Alias",
    "ChecksumConfig",
    "Package",
    "PackageInfo",
    "PlatformOverride",
    "VersionOverride",
]
