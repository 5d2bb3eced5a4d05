"""
Install services — per-version overrides, platform support, downloads,
single-install coordination and the config-wide install run.

    from pinbin.core.services.install import install_all, SingleInstallCoordinator
"""

from pinbin.core.services.install.coordinator import (  # noqa: F401
    CoordinatorRegistry,
    LazyPackage,
    PackageResolver,
    SingleInstallCoordinator,
)
from pinbin.core.services.install.download import Downloader, HTTPDownloader  # noqa: F401
from pinbin.core.services.install.installer import (  # noqa: F401
    InstallParam,
    PackageInstaller,
)
from pinbin.core.services.install.orchestrator import install_all, resolve_entry  # noqa: F401
from pinbin.core.services.install.override import (  # noqa: F401
    evaluate_constraint,
    override_package_info,
)
from pinbin.core.services.install.supported import check_supported, prepare_package  # noqa: F401
