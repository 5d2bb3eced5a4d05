"""
Error types — every failure pinbin reports to a caller.

Each error carries a ``fields`` dict with the context it picked up on the
way out (package name, version, platform, checksum ids...).  Boundaries add
context with ``with_fields()`` instead of wrapping in a new type, so the
top level can still tell an integrity failure from a network failure.

    try:
        verify(...)
    except PinbinError as e:
        raise e.with_fields(package_name=pkg.name)
"""

from __future__ import annotations

from typing import Any


class PinbinError(Exception):
    """Base class for pinbin failures."""

    def __init__(self, message: str, **fields: Any) -> None:
        super().__init__(message)
        self.message = message
        self.fields: dict[str, Any] = dict(fields)

    def with_fields(self, **fields: Any) -> PinbinError:
        """Attach more context and return ``self`` (for ``raise e.with_fields()``)."""
        for key, value in fields.items():
            self.fields.setdefault(key, value)
        return self

    def __str__(self) -> str:
        if not self.fields:
            return self.message
        ctx = ", ".join(f"{k}={v}" for k, v in self.fields.items())
        return f"{self.message} ({ctx})"


class ConfigError(PinbinError):
    """pinbin.yaml or a registry file is missing or invalid."""


class StorageError(PinbinError):
    """Filesystem or network failure (temp files, ledger file, downloads)."""


class ChecksumParseError(PinbinError):
    """A downloaded checksum manifest yielded no usable entries."""


class IntegrityError(PinbinError):
    """Computed digest differs from the expected one.  Never retried."""

    def __init__(self, message: str, *, actual: str, expected: str, **fields: Any) -> None:
        super().__init__(
            message, actual_checksum=actual, expected_checksum=expected, **fields,
        )
        self.actual = actual
        self.expected = expected


class UnsupportedPlatformError(PinbinError):
    """Package has no build for this platform.  Callers treat it as a skip."""


class ConstraintEvalError(PinbinError):
    """A version_constraint expression could not be evaluated."""


class UnknownPackageError(PinbinError):
    """Identifier not found in any loaded registry."""


class PolicyError(PinbinError):
    """Package comes from a registry the project policy does not allow."""


class InstallCancelledError(PinbinError):
    """The cancel signal was set while an install was in flight."""
