"""
Checksum IDs — ledger keys for downloaded artifacts.

    github_release/cli/cli/v2.40.0/gh_2.40.0_linux_amd64.tar.gz
    github_archive/foo/bar/v1.0.0/archive.tar.gz
    http/hashicorp/terraform/1.6.0/releases.example.com/terraform_1.6.0_linux_amd64.zip

The platform enters the key through the rendered asset filename, so two
platforms that download different files get different keys, and an
asset listed in a release manifest maps to the same key the verifier
later looks up.  ``http`` packages are keyed by host and path of the
rendered URL, since the platform may live in a directory rather than
in the filename.
"""

from __future__ import annotations

import posixpath
from urllib.parse import urlparse

from pinbin.core.models.package import Package
from pinbin.core.runtime import Runtime
from pinbin.core.services.templates import asset_name, download_url

# Stand-in filename for source archives, which have no asset of their own.
ARCHIVE_FILENAME = "archive.tar.gz"


def _http_location(package: Package, runtime: Runtime, asset: str | None) -> str:
    """``host/path`` of the download URL, last segment replaced by ``asset``."""
    parsed = urlparse(download_url(package, runtime))
    location = parsed.netloc + parsed.path
    if asset:
        location = posixpath.join(posixpath.dirname(location), asset)
    return location


def checksum_id(package: Package, runtime: Runtime, asset: str | None = None) -> str:
    """Ledger key for ``asset`` of ``package`` (default: the runtime's asset)."""
    prefix = f"{package.info.type}/{package.name}/{package.version}"
    if package.info.type == "http":
        return f"{prefix}/{_http_location(package, runtime, asset)}"
    if asset is None:
        asset = asset_name(package, runtime)
    if not asset:
        asset = ARCHIVE_FILENAME
    return f"{prefix}/{asset}"


def checksum_id_from_asset(package: Package, runtime: Runtime, filename: str) -> str:
    """Ledger key for a filename listed in a release manifest.

    Raises:
        ValueError: If the filename cannot name a release asset.
    """
    name = filename.strip()
    if not name or name.startswith("/") or ".." in name.split("/"):
        raise ValueError(f"not a release asset name: {filename!r}")
    return checksum_id(package, runtime, name)
