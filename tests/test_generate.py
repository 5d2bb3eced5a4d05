"""
Tests for ``pinbin generate`` resolution and output.
"""

from __future__ import annotations

import io
import textwrap
from pathlib import Path

import pytest
import yaml

from pinbin.core.errors import ConfigError, StorageError, UnknownPackageError
from pinbin.core.models.config import PackageEntry, ProjectConfig, RegistryContent
from pinbin.core.models.package import PackageInfo
from pinbin.core.services.generate import (
    VERSION_PLACEHOLDER,
    exclude_duplicates,
    format_packages,
    list_packages,
    normalize_identifier,
    output_entry,
    read_identifiers_file,
    resolve_identifiers,
    write_packages,
)


@pytest.fixture
def registries() -> dict[str, RegistryContent]:
    return {
        "standard": RegistryContent(packages=[
            PackageInfo(name="ripgrep", repo_owner="BurntSushi", repo_name="ripgrep",
                        description="recursive grep"),
            PackageInfo(name="foo"),
            PackageInfo(repo_owner="cli", repo_name="cli", aliases=[{"name": "gh"}]),
        ]),
        "local": RegistryContent(packages=[PackageInfo(name="acme/internal")]),
    }


class TestNormalize:
    def test_bare_name_gets_standard_registry(self):
        assert normalize_identifier("ripgrep") == "standard,ripgrep"

    def test_explicit_registry_kept(self):
        assert normalize_identifier("local,acme/internal@v1") == "local,acme/internal@v1"


class TestOutputEntry:
    def test_pin_false_folds_version(self):
        entry = output_entry(PackageInfo(name="foo"), "standard", "1.2.3")
        assert (entry.name, entry.version) == ("foo@1.2.3", "")

    def test_pin_true_keeps_version_separate(self):
        entry = output_entry(PackageInfo(name="foo"), "standard", "1.2.3", pin=True)
        assert (entry.name, entry.version) == ("foo", "1.2.3")

    def test_no_version_gets_placeholder(self):
        entry = output_entry(PackageInfo(name="foo"), "standard", "")
        assert entry.name == "foo"
        assert entry.version == VERSION_PLACEHOLDER

    def test_version_getter_used_when_no_version(self):
        entry = output_entry(
            PackageInfo(name="foo"), "standard", "",
            version_getter=lambda info, registry: "v9.9.9",
        )
        assert entry.name == "foo@v9.9.9"

    def test_detail_adds_link_and_description(self):
        info = PackageInfo(repo_owner="cli", repo_name="cli", description="GitHub CLI")
        entry = output_entry(info, "standard", "v2", detail=True)
        assert entry.link == "https://github.com/cli/cli"
        assert entry.description == "GitHub CLI"


class TestResolveIdentifiers:
    def test_bare_identifier(self, registries):
        [entry] = resolve_identifiers(["ripgrep"], registries)
        assert entry.registry == "standard"
        assert entry.name == "ripgrep"
        assert entry.version == VERSION_PLACEHOLDER

    def test_pin_semantics(self, registries):
        [folded] = resolve_identifiers(["foo@1.2.3"], registries)
        [pinned] = resolve_identifiers(["foo@1.2.3"], registries, pin=True)
        assert folded.model_dump(include={"name", "version"}) == {"name": "foo@1.2.3", "version": ""}
        assert pinned.model_dump(include={"name", "version"}) == {"name": "foo", "version": "1.2.3"}

    def test_alias_resolves_to_canonical_name(self, registries):
        [entry] = resolve_identifiers(["gh@v2.40.0"], registries)
        assert entry.name == "cli/cli@v2.40.0"

    def test_other_registry(self, registries):
        [entry] = resolve_identifiers(["local,acme/internal@v1"], registries)
        assert entry.registry == "local"
        assert entry.name == "acme/internal@v1"

    def test_unknown_fails_whole_batch(self, registries):
        with pytest.raises(UnknownPackageError) as exc_info:
            resolve_identifiers(["ripgrep", "nosuch"], registries)
        assert exc_info.value.fields["package_name"] == "nosuch"

    def test_lookup_is_exact(self, registries):
        with pytest.raises(UnknownPackageError):
            resolve_identifiers(["ripgre"], registries)


class TestIdentifiersFile:
    def test_comments_and_blank_lines(self, tmp_path: Path):
        path = tmp_path / "tools.txt"
        path.write_text("# tools\nripgrep@14.1.0\n\n  foo  # trailing\n")
        assert read_identifiers_file(path) == ["ripgrep@14.1.0", "foo"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(StorageError):
            read_identifiers_file(tmp_path / "missing.txt")


class TestExcludeDuplicates:
    def test_drops_declared_and_repeated(self):
        cfg = ProjectConfig(packages=[PackageEntry(name="ripgrep@13.0.0")])
        entries = [
            PackageEntry(name="ripgrep@13.0.0"),
            PackageEntry(name="foo@1"),
            PackageEntry(name="foo", version="1"),
            PackageEntry(name="foo@1", registry="local"),
        ]
        result = exclude_duplicates(cfg, entries)
        assert [(e.registry, e.name) for e in result] == [("standard", "foo@1"), ("local", "foo@1")]

    def test_new_version_of_declared_package_kept(self):
        cfg = ProjectConfig(packages=[PackageEntry(name="acme/tool@v1.0.0")])
        entries = [PackageEntry(name="acme/tool@v2.0.0")]
        assert exclude_duplicates(cfg, entries) == entries

    def test_placeholder_entry_kept(self):
        cfg = ProjectConfig(packages=[PackageEntry(name="acme/tool@v1.0.0")])
        entries = [PackageEntry(name="acme/tool", version=VERSION_PLACEHOLDER)]
        assert exclude_duplicates(cfg, entries) == entries

    def test_split_and_folded_shapes_match(self):
        cfg = ProjectConfig(packages=[PackageEntry(name="acme/tool", version="v1.0.0")])
        assert exclude_duplicates(cfg, [PackageEntry(name="acme/tool@v1.0.0")]) == []


class TestOutput:
    def test_format_omits_defaults(self):
        text = format_packages([
            PackageEntry(name="foo@1.2.3"),
            PackageEntry(name="bar", version="2.0", registry="local"),
        ])
        assert yaml.safe_load(text) == [
            {"name": "foo@1.2.3"},
            {"name": "bar", "registry": "local", "version": "2.0"},
        ]

    def test_print_to_stream(self):
        out = io.StringIO()
        write_packages([PackageEntry(name="foo@1")], stream=out)
        assert out.getvalue() == "- name: foo@1\n"

    def test_nothing_to_write(self, tmp_path: Path):
        out = io.StringIO()
        write_packages([], stream=out)
        assert out.getvalue() == ""

    def test_insert_appends_to_config(self, tmp_path: Path):
        path = tmp_path / "pinbin.yaml"
        path.write_text(textwrap.dedent("""\
            registries:
              - name: standard
                path: registry.yaml
            packages:
              - name: acme/tool@v1.0.0
        """))
        write_packages([PackageEntry(name="ripgrep@14.1.0")], insert=True, config_path=path)
        data = yaml.safe_load(path.read_text())
        assert data["packages"] == [{"name": "acme/tool@v1.0.0"}, {"name": "ripgrep@14.1.0"}]
        assert data["registries"][0]["name"] == "standard"
        assert list(tmp_path.glob(".pinbin_*")) == []

    def test_insert_without_packages_key(self, tmp_path: Path):
        path = tmp_path / "pinbin.yaml"
        path.write_text("registries: []\n")
        write_packages([PackageEntry(name="foo@1")], insert=True, config_path=path)
        assert yaml.safe_load(path.read_text())["packages"] == [{"name": "foo@1"}]

    def test_insert_needs_config(self):
        with pytest.raises(ConfigError):
            write_packages([PackageEntry(name="foo@1")], insert=True)


class TestListPackages:
    def test_every_registry(self, registries):
        assert list_packages(registries) == [
            "standard,ripgrep",
            "standard,foo",
            "standard,cli/cli",
            "local,acme/internal",
        ]
