"""
Version overrides — pick the metadata that applies to a requested version.

Registries describe the current release layout at the top level and older
layouts in ``version_overrides``::

    version_constraint: semver(">= 2.0.0")
    asset: tool_{semver}_{os}_{arch}.tar.gz
    version_overrides:
      - version_constraint: semver("< 2.0.0")
        asset: tool-{os}-{arch}.zip
        checksum: {enabled: false}
      - version_constraint: "true"
        supported_envs: [linux]

If the top-level constraint matches (or is absent) the declaration is used
as is; otherwise the first override whose constraint matches is applied.
Per-platform ``overrides`` are then applied for the runtime.  Results are
deep copies; the registry's ``PackageInfo`` is never touched, so concurrent
installs of different versions cannot see each other's patches.

Expression language::

    true | false
    Version == "v1.2.3" | Version != "v1.2.3"
    semver(">= 1.0.0, < 2")
    <expr> && <expr> | <expr> || <expr>     (&& binds tighter)
"""

from __future__ import annotations

import copy
import logging
import re

from pinbin.core.errors import ConstraintEvalError
from pinbin.core.models.package import (
    PLATFORM_OVERRIDE_FIELDS,
    VERSION_OVERRIDE_FIELDS,
    PackageInfo,
    PlatformOverride,
    VersionOverride,
)
from pinbin.core.runtime import Runtime

logger = logging.getLogger(__name__)

_SEMVER_CALL_RE = re.compile(r'^semver\(\s*"([^"]*)"\s*\)$')
_VERSION_CMP_RE = re.compile(r'^Version\s*(==|!=)\s*"([^"]*)"$')
_COMPARATOR_RE = re.compile(r"^(>=|<=|==|!=|>|<|=)?\s*(v?\d+(?:\.\d+)*(?:[-+][0-9A-Za-z.-]+)?)$")


def _parse_semver(v: str) -> tuple[int, int, int]:
    """``v1.2.3-rc1`` → ``(1, 2, 3)``.  Missing parts are zero."""
    core = re.split(r"[-+]", v.strip().lstrip("v"), maxsplit=1)[0]
    parts = [int(x) for x in core.split(".")[:3]]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def _check_comparator(comparator: str, version: tuple[int, int, int]) -> bool:
    m = _COMPARATOR_RE.match(comparator.strip())
    if not m:
        raise ValueError(f"invalid comparator: {comparator!r}")
    op = m.group(1) or "=="
    ref = _parse_semver(m.group(2))
    if op in ("==", "="):
        return version == ref
    if op == "!=":
        return version != ref
    if op == ">=":
        return version >= ref
    if op == ">":
        return version > ref
    if op == "<=":
        return version <= ref
    return version < ref


def _eval_term(term: str, version: str) -> bool:
    term = term.strip()
    if term == "true":
        return True
    if term == "false":
        return False

    m = _VERSION_CMP_RE.match(term)
    if m:
        equal = version == m.group(2)
        return equal if m.group(1) == "==" else not equal

    m = _SEMVER_CALL_RE.match(term)
    if m:
        parsed = _parse_semver(version)
        return all(
            _check_comparator(c, parsed) for c in m.group(1).split(",") if c.strip()
        )

    raise ValueError(f"unsupported expression: {term!r}")


def evaluate_constraint(expression: str, version: str) -> bool:
    """Evaluate a ``version_constraint`` expression for ``version``.

    An empty expression matches every version.

    Raises:
        ConstraintEvalError: The expression or the version cannot be evaluated.
    """
    if not expression.strip():
        return True
    try:
        return any(
            all(_eval_term(term, version) for term in disjunct.split("&&"))
            for disjunct in expression.split("||")
        )
    except (ValueError, IndexError) as e:
        raise ConstraintEvalError(
            f"evaluate the version constraint: {e}",
            version_constraint=expression,
            version=version,
        ) from e


def _apply(info: PackageInfo, override: VersionOverride | PlatformOverride, fields: tuple[str, ...]) -> PackageInfo:
    patched = info.model_copy(deep=True)
    for name in fields:
        value = getattr(override, name)
        if value is not None:
            setattr(patched, name, copy.deepcopy(value))
    return patched


def apply_platform_overrides(info: PackageInfo, runtime: Runtime) -> PackageInfo:
    """Apply the first ``overrides`` entry matching the runtime platform."""
    goarch = runtime.arch(info.rosetta2, info.windows_arm_emulation)
    for override in info.overrides:
        if override.matches(runtime.goos, goarch):
            return _apply(info, override, PLATFORM_OVERRIDE_FIELDS)
    return info.model_copy(deep=True)


def override_package_info(info: PackageInfo, version: str, runtime: Runtime) -> PackageInfo:
    """Metadata of ``info`` as it applies to ``version`` on ``runtime``.

    Raises:
        ConstraintEvalError: A constraint expression could not be evaluated.
    """
    if evaluate_constraint(info.version_constraint, version):
        return apply_platform_overrides(info, runtime)

    for i, override in enumerate(info.version_overrides):
        if evaluate_constraint(override.version_constraint, version):
            logger.debug(
                "version override %d (%s) applies to %s@%s",
                i, override.version_constraint, info.get_name(), version,
            )
            patched = _apply(info, override, VERSION_OVERRIDE_FIELDS)
            return apply_platform_overrides(patched, runtime)

    # No rule matched: the top-level declaration still applies
    return apply_platform_overrides(info, runtime)
