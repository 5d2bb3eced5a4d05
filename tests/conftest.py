"""
Shared test fixtures — runtime, packages and a sample project.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from pinbin.core.models.package import ChecksumConfig, Package, PackageInfo
from pinbin.core.runtime import Runtime


@pytest.fixture
def runtime() -> Runtime:
    return Runtime(goos="linux", goarch="amd64")


@pytest.fixture
def tool_info() -> PackageInfo:
    """GitHub release package with a published checksums.txt."""
    return PackageInfo(
        type="github_release",
        repo_owner="acme",
        repo_name="tool",
        asset="tool_{os}_{arch}.tar.gz",
        checksum=ChecksumConfig(enabled=True, asset="checksums.txt"),
    )


@pytest.fixture
def tool_package(tool_info: PackageInfo) -> Package:
    return Package(name="acme/tool", registry="standard", version="v1.0.0", info=tool_info)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project with pinbin.yaml and a local standard registry."""
    (tmp_path / "registry.yaml").write_text(textwrap.dedent("""\
        packages:
          - type: github_release
            repo_owner: acme
            repo_name: tool
            description: "An example tool"
            asset: tool_{os}_{arch}.tar.gz
            aliases:
              - name: tool
          - type: github_release
            repo_owner: BurntSushi
            repo_name: ripgrep
            name: ripgrep
            asset: ripgrep-{semver}-{arch}-unknown-{os}.tar.gz
          - type: http
            name: winonly
            url: https://example.com/winonly-{version}.exe
            supported_envs: [windows]
    """))
    (tmp_path / "pinbin.yaml").write_text(textwrap.dedent("""\
        registries:
          - name: standard
            type: standard
            path: registry.yaml
        packages:
          - name: acme/tool@v1.0.0
        checksum:
          enabled: true
    """))
    return tmp_path
