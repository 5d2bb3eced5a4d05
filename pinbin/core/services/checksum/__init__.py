"""
Checksum services — ledger, manifest parsing, artifact verification.

    from pinbin.core.services.checksum import ChecksumLedger, ArtifactChecksumVerifier
"""

from pinbin.core.services.checksum.checksum_id import (
    ARCHIVE_FILENAME,
    checksum_id,
    checksum_id_from_asset,
)
from pinbin.core.services.checksum.ledger import ChecksumLedger, ChecksumRecord
from pinbin.core.services.checksum.manifest import parse_checksum_manifest
from pinbin.core.services.checksum.sources import ChecksumSource, HTTPChecksumSource
from pinbin.core.services.checksum.verifier import (
    ArtifactChecksumVerifier,
    calculate_checksum,
)

__all__ = [
    "ARCHIVE_FILENAME",
    "ArtifactChecksumVerifier",
    "ChecksumLedger",
    "ChecksumRecord",
    "ChecksumSource",
    "HTTPChecksumSource",
    "calculate_checksum",
    "checksum_id",
    "checksum_id_from_asset",
    "parse_checksum_manifest",
]
