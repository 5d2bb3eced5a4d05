"""
Checksum ledger — the project's record of expected artifact digests.

Stored next to pinbin.yaml as ``pinbin-checksums.json``::

    {
      "checksums": [
        {"id": "github_release/cli/cli/v2.40.0/gh_2.40.0_linux_amd64.tar.gz",
         "checksum": "3c6b...", "algorithm": "sha256"}
      ]
    }

Records are sorted by id so an unmodified load/persist round trip is
byte-for-byte identical.  One ledger is shared by every install of a
command invocation; all access goes through a single lock.
"""

from __future__ import annotations

import json
import logging
import tempfile
import threading
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from pinbin.core.errors import StorageError
from pinbin.core.models.package import DEFAULT_CHECKSUM_ALGORITHM

logger = logging.getLogger(__name__)


class ChecksumRecord(BaseModel):
    """One expected digest."""

    id: str
    checksum: str
    algorithm: str = DEFAULT_CHECKSUM_ALGORITHM


class ChecksumFile(BaseModel):
    """On-disk shape of the ledger."""

    checksums: list[ChecksumRecord] = Field(default_factory=list)


class ChecksumLedger:
    """Thread-safe ``checksum id → digest`` mapping with JSON persistence."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, ChecksumRecord] = {}
        self._loaded_content: str | None = None

    def get(self, checksum_id: str) -> str:
        """Expected digest for ``checksum_id``, ``""`` when unknown."""
        with self._lock:
            record = self._records.get(checksum_id)
            return record.checksum if record else ""

    def get_record(self, checksum_id: str) -> ChecksumRecord | None:
        with self._lock:
            return self._records.get(checksum_id)

    def set(self, checksum_id: str, value: str, algorithm: str = DEFAULT_CHECKSUM_ALGORITHM) -> None:
        """Record ``value`` for ``checksum_id``, replacing any previous value."""
        record = ChecksumRecord(id=checksum_id, checksum=value.lower(), algorithm=algorithm)
        with self._lock:
            self._records[checksum_id] = record

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def snapshot(self) -> dict[str, str]:
        """Copy of the mapping, for reporting and tests."""
        with self._lock:
            return {k: r.checksum for k, r in self._records.items()}

    # ── Persistence ─────────────────────────────────────────────

    def load(self, path: Path) -> None:
        """Replace the in-memory state with the content of ``path``.

        A missing file is an empty ledger.

        Raises:
            StorageError: The file exists but cannot be read or parsed.
        """
        if not path.exists():
            logger.debug("No checksum file at %s — starting empty", path)
            with self._lock:
                self._records = {}
                self._loaded_content = None
            return

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read checksum file: {e}", path=str(path)) from e

        try:
            parsed = ChecksumFile.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(f"Invalid checksum file: {e}", path=str(path)) from e

        with self._lock:
            self._records = {r.id: r for r in parsed.checksums}
            self._loaded_content = raw
        logger.debug("Loaded %d checksums from %s", len(parsed.checksums), path)

    def dumps(self) -> str:
        """Serialised ledger: records sorted by id, 2-space indent, trailing newline."""
        with self._lock:
            records = [self._records[k] for k in sorted(self._records)]
        data = ChecksumFile(checksums=records).model_dump(mode="json")
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def persist(self, path: Path) -> bool:
        """Write the ledger to ``path`` (atomic).  Never raises.

        Skips the write when nothing changed since ``load()``.

        Returns:
            True if the file was written.
        """
        content = self.dumps()
        with self._lock:
            unchanged = content == self._loaded_content
        if unchanged:
            logger.debug("Checksum file %s unchanged", path)
            return False

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".checksums_", suffix=".tmp")
            tmp = Path(tmp_name)
            try:
                with open(fd, "w", encoding="utf-8") as fh:
                    fh.write(content)
                tmp.replace(path)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to update checksum file %s: %s", path, e)
            return False

        with self._lock:
            self._loaded_content = content
            count = len(self._records)
        logger.info("Checksum file %s updated (%d entries)", path, count)
        return True
