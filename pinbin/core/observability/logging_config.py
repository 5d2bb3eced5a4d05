"""
Logging configuration — set up once by main.py.

Every module uses ``logger = logging.getLogger(__name__)``.  Installs
log through ``package_logger()`` so each line names the package and
version it is about:

    log = package_logger(logger, package_name="cli/cli", package_version="v2.40.0")
    log.info("downloading")   # → "downloading [package_name=cli/cli package_version=v2.40.0]"

Level precedence: CLI flag > PINBIN_LOG_LEVEL > WARNING.
Optional file output via PINBIN_LOG_FILE / PINBIN_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, MutableMapping

# level threshold → (format, datefmt); first entry whose threshold >= level wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(levelname)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "pinbin: %(levelname)s %(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


class PackageLogAdapter(logging.LoggerAdapter):
    """Appends ``[key=value ...]`` context to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        fields = self.extra or {}
        if not fields:
            return msg, kwargs
        ctx = " ".join(f"{k}={v}" for k, v in fields.items())
        return f"{msg} [{ctx}]", kwargs

    def bind(self, **fields: Any) -> PackageLogAdapter:
        """New adapter with extra context fields."""
        merged = dict(self.extra or {})
        merged.update(fields)
        return PackageLogAdapter(self.logger, merged)


def package_logger(logger: logging.Logger, **fields: Any) -> PackageLogAdapter:
    """Wrap ``logger`` so every line carries ``fields``."""
    return PackageLogAdapter(logger, fields)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file, defaults to ``level``.
    """
    console_level = _parse_level(level)
    fmt, datefmt = next(
        (f, d) for threshold, f, d in _CONSOLE_FORMATS if console_level <= threshold
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)

    root.setLevel(root_level)


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant, WARNING for anything unknown."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
