"""
Configuration loader — reads pinbin.yaml and registry files into models.

This is the primary entry point for loading project configuration.
It reads YAML, validates against Pydantic schemas, and returns
typed domain objects.  Registries are read from local files; fetching
them from remote hosts is left to whatever populated those files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from pinbin.core.errors import ConfigError
from pinbin.core.models.config import ProjectConfig, RegistryContent

logger = logging.getLogger(__name__)

# Config filenames, in lookup order
CONFIG_FILES = ("pinbin.yaml", "pinbin.yml", ".pinbin.yaml")

CHECKSUM_FILE = "pinbin-checksums.json"
HIDDEN_CHECKSUM_FILE = ".pinbin-checksums.json"

_DEFAULT_ROOT_DIR = Path.home() / ".local" / "share" / "pinbin"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for pinbin.yaml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(40):  # safety limit
        for name in CONFIG_FILES:
            candidate = current / name
            if candidate.is_file():
                return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml_mapping(path: Path) -> dict:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_config(path: Path | None = None) -> ProjectConfig:
    """Load and validate pinbin.yaml.

    Args:
        path: Explicit config path. If None, searches upward from cwd.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {CONFIG_FILES[0]} found. Create one, or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)
    data = _read_yaml_mapping(path)

    try:
        cfg = ProjectConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded config %s with %d packages", path, len(cfg.packages))
    return cfg


def load_registries(cfg: ProjectConfig, config_path: Path) -> dict[str, RegistryContent]:
    """Read every registry the config declares.

    Relative registry paths resolve against the config file's directory.

    Returns:
        ``{registry_name: RegistryContent}`` in declaration order.
    """
    base = config_path.parent
    contents: dict[str, RegistryContent] = {}
    for source in cfg.registries:
        if not source.path:
            raise ConfigError(f"Registry '{source.name}' has no path", registry=source.name)
        reg_path = Path(source.path)
        if not reg_path.is_absolute():
            reg_path = base / reg_path
        if not reg_path.is_file():
            raise ConfigError(f"Registry file not found: {reg_path}", registry=source.name)
        data = _read_yaml_mapping(reg_path)
        try:
            contents[source.name] = RegistryContent.model_validate(data)
        except Exception as e:
            raise ConfigError(f"Invalid registry {reg_path}: {e}", registry=source.name) from e
        logger.debug(
            "Loaded registry '%s' (%d packages)",
            source.name, len(contents[source.name].packages),
        )
    return contents


def checksum_file_path(config_path: Path) -> Path:
    """Ledger path for a config file: same directory, hidden name if it exists."""
    base = config_path.parent
    hidden = base / HIDDEN_CHECKSUM_FILE
    if hidden.is_file():
        return hidden
    return base / CHECKSUM_FILE


def root_dir() -> Path:
    """Install root (``PINBIN_ROOT_DIR`` or ``~/.local/share/pinbin``)."""
    env = os.environ.get("PINBIN_ROOT_DIR")
    return Path(env) if env else _DEFAULT_ROOT_DIR


def _env_flag(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def checksum_enabled(cfg: ProjectConfig) -> bool:
    """Config ``checksum.enabled``, overridden by ``PINBIN_ENFORCE_CHECKSUM``."""
    env = _env_flag("PINBIN_ENFORCE_CHECKSUM")
    return cfg.checksum.enabled if env is None else env


def checksum_required(cfg: ProjectConfig) -> bool:
    """Config ``checksum.require_checksum``, overridden by ``PINBIN_REQUIRE_CHECKSUM``."""
    env = _env_flag("PINBIN_REQUIRE_CHECKSUM")
    return cfg.checksum.require_checksum if env is None else env
