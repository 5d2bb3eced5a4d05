"""
Latest-version lookup via the GitHub releases API.

Used by ``pinbin generate`` when an identifier carries no version.
Any failure yields ``""`` so the entry gets a placeholder instead of
failing the batch.
"""

from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request

from pinbin import __version__
from pinbin.core.models.package import PackageInfo

logger = logging.getLogger(__name__)


def github_latest_version(info: PackageInfo, registry: str, *, timeout: int = 15) -> str:
    """Tag of the latest GitHub release of ``info``, or ``""``."""
    if not (info.repo_owner and info.repo_name):
        return ""

    api_url = f"https://api.github.com/repos/{info.repo_owner}/{info.repo_name}/releases/latest"
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": f"pinbin/{__version__}",
    }
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        req = urllib.request.Request(api_url, headers=headers)
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = json.loads(resp.read())
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.warning("get the latest version of %s: %s", info.get_name(), e)
        return ""

    return data.get("tag_name", "") if isinstance(data, dict) else ""
