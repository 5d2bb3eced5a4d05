"""
Template rendering — fill ``{var}`` placeholders in asset names and URLs.

Variables:
    - ``{version}`` — requested version as written (``v1.2.3``)
    - ``{semver}`` — version without a leading ``v``
    - ``{os}`` / ``{arch}`` — runtime platform after ``replacements``
    - ``{format}`` — archive format declared by the package
    - ``{owner}`` / ``{repo}`` — GitHub repository coordinates
    - ``{asset}`` — rendered asset filename (manifest templates only)
"""

from __future__ import annotations

import posixpath
from urllib.parse import urlparse

from pinbin.core.models.package import Package
from pinbin.core.runtime import Runtime


def template_vars(package: Package, runtime: Runtime) -> dict[str, str]:
    """Variables available to every template of ``package`` on ``runtime``."""
    info = package.info
    goarch = runtime.arch(info.rosetta2, info.windows_arm_emulation)
    return {
        "version": package.version,
        "semver": package.version.removeprefix("v"),
        "os": info.replacements.get(runtime.goos, runtime.goos),
        "arch": info.replacements.get(goarch, goarch),
        "format": info.format,
        "owner": info.repo_owner,
        "repo": info.repo_name,
    }


def render(template: str, variables: dict[str, str]) -> str:
    """Replace every ``{name}`` in ``template`` with ``variables[name]``.

    Unknown placeholders are left untouched.
    """
    result = template
    for key, value in variables.items():
        result = result.replace("{" + key + "}", value)
    return result


def asset_name(package: Package, runtime: Runtime) -> str:
    """Filename of the artifact to download, ``""`` for source archives."""
    info = package.info
    variables = template_vars(package, runtime)
    if info.type == "github_release":
        return render(info.asset, variables)
    if info.type == "http":
        url = render(info.url, variables)
        return posixpath.basename(urlparse(url).path)
    return ""


def download_url(package: Package, runtime: Runtime) -> str:
    """Where the artifact for ``package`` on ``runtime`` is downloaded from."""
    info = package.info
    variables = template_vars(package, runtime)
    if info.type == "github_release":
        return (
            f"https://github.com/{info.repo_owner}/{info.repo_name}"
            f"/releases/download/{package.version}/{render(info.asset, variables)}"
        )
    if info.type == "http":
        return render(info.url, variables)
    # github_archive / go: source tarball of the tag
    return (
        f"https://github.com/{info.repo_owner}/{info.repo_name}"
        f"/archive/refs/tags/{package.version}.tar.gz"
    )


def checksum_manifest_url(package: Package, runtime: Runtime) -> str:
    """Where the release's checksum manifest lives, ``""`` if undeclared."""
    info = package.info
    chk = info.checksum
    variables = template_vars(package, runtime)
    variables["asset"] = asset_name(package, runtime)
    if chk.type == "http":
        return render(chk.url, variables)
    if not chk.asset:
        return ""
    return (
        f"https://github.com/{info.repo_owner}/{info.repo_name}"
        f"/releases/download/{package.version}/{render(chk.asset, variables)}"
    )
