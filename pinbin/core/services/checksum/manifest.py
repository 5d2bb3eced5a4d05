"""
Checksum manifest parser — ``checksums.txt`` style files from releases.

Accepted record shapes (one per line)::

    3c6b1c...  gh_2.40.0_linux_amd64.tar.gz       # sha256sum output
    3c6b1c... *gh_2.40.0_linux_amd64.tar.gz       # binary-mode marker
    SHA256 (gh_2.40.0_linux_amd64.tar.gz) = 3c6b1c...   # BSD style

Anything else (blank lines, PGP armour, comments) is skipped.  Packages
declaring ``file_format: raw`` publish one digest per asset instead.
"""

from __future__ import annotations

import logging
import re

from pinbin.core.errors import ChecksumParseError
from pinbin.core.models.package import Package

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^([0-9a-fA-F]+)[ \t]+\*?(?:\./)?(\S.*?)\s*$")
_BSD_RE = re.compile(r"^[A-Za-z0-9-]+\s*\((?:\./)?(.+)\)\s*=\s*([0-9a-fA-F]+)\s*$")
_RAW_RE = re.compile(r"^\s*([0-9a-fA-F]+)\b")


def parse_checksum_manifest(raw_text: str, package: Package, asset: str = "") -> dict[str, str]:
    """Parse a release's checksum manifest into ``{filename: digest}``.

    Args:
        raw_text: Manifest content.
        package: Package the manifest belongs to.
        asset: Asset the manifest describes (``raw`` format only).

    Returns:
        Mapping of filename to lower-case hex digest.

    Raises:
        ChecksumParseError: No entry found and the package has checksums enabled.
    """
    if package.info.checksum.file_format == "raw":
        result = _parse_raw(raw_text, asset)
    else:
        result = _parse_lines(raw_text)

    if not result and package.info.checksum.enabled:
        raise ChecksumParseError(
            "no checksum found in the checksum file",
            package_name=package.name,
            package_version=package.version,
            lines=len(raw_text.splitlines()),
        )
    return result


def _parse_lines(raw_text: str) -> dict[str, str]:
    result: dict[str, str] = {}
    skipped = 0
    for line in raw_text.splitlines():
        line = line.strip()
        if not line:
            continue
        m = _LINE_RE.match(line)
        if m:
            result[m.group(2)] = m.group(1).lower()
            continue
        m = _BSD_RE.match(line)
        if m:
            result[m.group(1)] = m.group(2).lower()
            continue
        skipped += 1
    if skipped:
        logger.debug("Skipped %d unrecognised checksum manifest lines", skipped)
    return result


def _parse_raw(raw_text: str, asset: str) -> dict[str, str]:
    m = _RAW_RE.match(raw_text)
    if not m or not asset:
        return {}
    return {asset: m.group(1).lower()}
