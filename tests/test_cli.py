"""
Tests for CLI commands — install, generate, list and global options.
"""

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from pinbin.main import cli
from tests.helpers import FakeChecksumSource, FakeDownloader, sha256

TOOL_URL = "https://github.com/acme/tool/releases/download/v1.0.0/tool_linux_amd64.tar.gz"
TOOL_BODY = b"tool binary"


@pytest.fixture
def fake_network(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeDownloader:
    """Route installs to fakes, a linux/amd64 runtime and a temp root."""
    downloader = FakeDownloader({TOOL_URL: TOOL_BODY})
    monkeypatch.setattr("pinbin.core.services.install.HTTPDownloader", lambda: downloader)
    monkeypatch.setattr(
        "pinbin.core.services.checksum.HTTPChecksumSource", lambda: FakeChecksumSource(None),
    )
    monkeypatch.setenv("PINBIN_ROOT_DIR", str(tmp_path / "root"))
    monkeypatch.setenv("PINBIN_GOOS", "linux")
    monkeypatch.setenv("PINBIN_GOARCH", "amd64")
    return downloader


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "install pinned versions" in result.output
        for command in ("install", "generate", "list"):
            assert command in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        isolated = tmp_path / "isolated"
        isolated.mkdir()
        monkeypatch.chdir(isolated)
        runner = CliRunner()
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 1
        assert "No pinbin.yaml found" in result.output


class TestListCommand:
    """Tests for the list command."""

    def test_lists_registry_packages(self, project_dir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(project_dir / "pinbin.yaml"), "list"])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "standard,acme/tool",
            "standard,ripgrep",
            "standard,winonly",
        ]


class TestGenerateCommand:
    """Tests for the generate command."""

    def test_prints_entries(self, project_dir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-c", str(project_dir / "pinbin.yaml"),
            "generate", "--no-latest", "ripgrep@14.1.0", "tool",
        ])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == [
            {"name": "ripgrep@14.1.0"},
            {"name": "acme/tool", "version": "[SET PACKAGE VERSION]"},
        ]

    def test_pin(self, project_dir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-c", str(project_dir / "pinbin.yaml"),
            "generate", "--no-latest", "--pin", "ripgrep@14.1.0",
        ])
        assert yaml.safe_load(result.output) == [{"name": "ripgrep", "version": "14.1.0"}]

    def test_insert_skips_declared(self, project_dir: Path):
        config = project_dir / "pinbin.yaml"
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-c", str(config), "generate", "--no-latest", "-i",
            "acme/tool@v1.0.0", "ripgrep@14.1.0", "acme/tool@v2.0.0",
        ])
        assert result.exit_code == 0, result.output
        names = [p["name"] for p in yaml.safe_load(config.read_text())["packages"]]
        assert names == ["acme/tool@v1.0.0", "ripgrep@14.1.0", "acme/tool@v2.0.0"]

    def test_from_file(self, project_dir: Path):
        listing = project_dir / "tools.txt"
        listing.write_text("# wanted\nripgrep@14.1.0\n")
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-c", str(project_dir / "pinbin.yaml"),
            "generate", "--no-latest", "-f", str(listing),
        ])
        assert yaml.safe_load(result.output) == [{"name": "ripgrep@14.1.0"}]

    def test_unknown_identifier(self, project_dir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [
            "-c", str(project_dir / "pinbin.yaml"), "generate", "--no-latest", "nosuch",
        ])
        assert result.exit_code == 1
        assert "unknown package" in result.output

    def test_no_identifiers(self, project_dir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(project_dir / "pinbin.yaml"), "generate"])
        assert result.exit_code == 1
        assert "No package identifiers" in result.output


class TestInstallCommand:
    """Tests for the install command."""

    def test_install(self, project_dir: Path, fake_network: FakeDownloader, tmp_path: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(project_dir / "pinbin.yaml"), "install"])
        assert result.exit_code == 0, result.output
        assert "✓ acme/tool@v1.0.0" in result.output
        assert fake_network.requested == [TOOL_URL]
        ledger = json.loads((project_dir / "pinbin-checksums.json").read_text())
        assert ledger["checksums"][0]["checksum"] == sha256(TOOL_BODY)

    def test_install_json(self, project_dir: Path, fake_network: FakeDownloader):
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(project_dir / "pinbin.yaml"), "install", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["installed"] == ["acme/tool@v1.0.0"]

    def test_checksum_mismatch_exit_code(self, project_dir: Path, fake_network: FakeDownloader):
        (project_dir / "pinbin-checksums.json").write_text(json.dumps({"checksums": [{
            "id": "github_release/acme/tool/v1.0.0/tool_linux_amd64.tar.gz",
            "checksum": "cafebabe",
            "algorithm": "sha256",
        }]}))
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(project_dir / "pinbin.yaml"), "install"])
        assert result.exit_code == 1
        assert "checksum mismatch" in result.output
        assert "cafebabe" in result.output

    def test_require_checksum_refuses_unknown(
        self, project_dir: Path, fake_network: FakeDownloader, monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setenv("PINBIN_REQUIRE_CHECKSUM", "1")
        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(project_dir / "pinbin.yaml"), "install"])
        assert result.exit_code == 1
        assert "no checksum is known" in result.output
