"""
Registry index — ``"<registry>,<name>"`` lookup over loaded registries.

Package names and their aliases are both indexed; lookups are exact.
"""

from __future__ import annotations

import logging

from pinbin.core.models.config import RegistryContent
from pinbin.core.models.package import PackageInfo

logger = logging.getLogger(__name__)


def build_package_index(registries: dict[str, RegistryContent]) -> dict[str, tuple[str, PackageInfo]]:
    """Map ``"<registry>,<name or alias>"`` to ``(registry, info)``.

    Earlier declarations win when a name repeats within a registry.
    """
    index: dict[str, tuple[str, PackageInfo]] = {}
    for registry_name, content in registries.items():
        for info in content.packages:
            name = info.get_name()
            if not name:
                logger.warning("ignore a package without a name in registry '%s'", registry_name)
                continue
            index.setdefault(f"{registry_name},{name}", (registry_name, info))
            for alias in info.aliases:
                if not alias.name:
                    logger.warning(
                        "ignore a package alias because the alias is empty (package %s)", name,
                    )
                    continue
                index.setdefault(f"{registry_name},{alias.name}", (registry_name, info))
    return index
