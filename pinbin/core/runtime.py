"""
Runtime platform — the OS / architecture pair installs resolve against.

Names follow the Go convention used by nearly every release page
(``linux``/``darwin``/``windows``, ``amd64``/``arm64``).
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass

# uname -m / platform.machine() spellings → Go-style names.
_ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "AMD64": "amd64",      # Windows / WSL2
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",      # macOS (Darwin reports arm64)
    "ARM64": "arm64",
    "armv7l": "arm",
    "i386": "386",
    "i686": "386",
}

# Overrides for tests and cross-platform dry runs.
_ENV_OS = "PINBIN_GOOS"
_ENV_ARCH = "PINBIN_GOARCH"


@dataclass(frozen=True)
class Runtime:
    """The platform a package is being installed for."""

    goos: str
    goarch: str

    @classmethod
    def from_host(cls) -> Runtime:
        """Detect the current host, honouring ``PINBIN_GOOS``/``PINBIN_GOARCH``."""
        goos = os.environ.get(_ENV_OS) or platform.system().lower()
        machine = platform.machine()
        goarch = os.environ.get(_ENV_ARCH) or _ARCH_MAP.get(machine, machine.lower())
        return cls(goos=goos, goarch=goarch)

    def arch(self, rosetta2: bool = False, windows_arm_emulation: bool = False) -> str:
        """Architecture to pick assets for.

        arm64 hosts fall back to amd64 builds when the package opts into
        Rosetta 2 (darwin) or Windows ARM emulation.
        """
        if self.goarch == "arm64":
            if rosetta2 and self.goos == "darwin":
                return "amd64"
            if windows_arm_emulation and self.goos == "windows":
                return "amd64"
        return self.goarch

    def env(self) -> str:
        return f"{self.goos}/{self.goarch}"

    def platform_key(self, rosetta2: bool = False, windows_arm_emulation: bool = False) -> str:
        """``<os>/<arch>`` with the emulation substitution applied."""
        return f"{self.goos}/{self.arch(rosetta2, windows_arm_emulation)}"
