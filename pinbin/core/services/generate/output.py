"""
Generate output — print resolved entries or merge them into pinbin.yaml.
"""

from __future__ import annotations

import logging
import sys
import tempfile
from pathlib import Path
from typing import TextIO

import yaml

from pinbin.core.errors import ConfigError, StorageError
from pinbin.core.models.config import PackageEntry

logger = logging.getLogger(__name__)


def _entry_dicts(entries: list[PackageEntry]) -> list[dict]:
    return [e.model_dump(exclude_defaults=True) for e in entries]


def format_packages(entries: list[PackageEntry]) -> str:
    """YAML list of entries, ready to paste under ``packages:``."""
    return yaml.safe_dump(_entry_dicts(entries), sort_keys=False, allow_unicode=True)


def write_packages(
    entries: list[PackageEntry],
    *,
    insert: bool = False,
    config_path: Path | None = None,
    stream: TextIO | None = None,
) -> None:
    """Print ``entries`` to ``stream`` or append them to the config file.

    Raises:
        ConfigError: ``insert`` without a readable YAML mapping config.
        StorageError: The config file could not be written.
    """
    if not entries:
        return
    if not insert:
        (stream or sys.stdout).write(format_packages(entries))
        return

    if config_path is None:
        raise ConfigError("no configuration file to insert packages into")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {config_path}")

    packages = data.get("packages") or []
    packages.extend(_entry_dicts(entries))
    data["packages"] = packages
    content = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    try:
        fd, tmp_name = tempfile.mkstemp(dir=config_path.parent, prefix=".pinbin_", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with open(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp.replace(config_path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        raise StorageError(f"update the configuration file: {e}", path=str(config_path)) from e
    logger.info("Added %d packages to %s", len(entries), config_path)
