"""
Platform support — does a package ship a build for this runtime?

``supported_envs`` entries: ``all``, an OS (``linux``), an architecture
(``arm64``) or a pair (``darwin/arm64``).  No entries means every platform.
"""

from __future__ import annotations

from pinbin.core.errors import PinbinError, UnsupportedPlatformError
from pinbin.core.models.package import Package, PackageInfo
from pinbin.core.runtime import Runtime
from pinbin.core.services.install.override import override_package_info


def check_supported(info: PackageInfo, runtime: Runtime) -> bool:
    """True if ``info`` can be installed on ``runtime``."""
    if not info.supported_envs:
        return True
    goos = runtime.goos
    goarch = runtime.arch(info.rosetta2, info.windows_arm_emulation)
    env = f"{goos}/{goarch}"
    for entry in info.supported_envs:
        if entry in ("all", goos, goarch, env):
            return True
    return False


def prepare_package(pkg: Package, runtime: Runtime) -> Package:
    """``pkg`` with the overrides for its version and ``runtime`` applied.

    Raises:
        ConstraintEvalError: An override constraint could not be evaluated.
        UnsupportedPlatformError: The package has no build for ``runtime``.
            Callers skip the package rather than fail.
    """
    try:
        info = override_package_info(pkg.info, pkg.version, runtime)
    except PinbinError as e:
        raise e.with_fields(package_name=pkg.name, package_version=pkg.version)

    if not check_supported(info, runtime):
        raise UnsupportedPlatformError(
            "the package isn't supported in the environment",
            package_name=pkg.name,
            package_version=pkg.version,
            env=runtime.env(),
        )
    return pkg.with_info(info)
