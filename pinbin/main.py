"""
pinbin — CLI entrypoint.

Usage:
    python -m pinbin.main --help
    python -m pinbin.main install
    python -m pinbin.main generate cli/cli@v2.40.0 -i
"""

from __future__ import annotations

import json
import os
import signal
import sys
import threading
from pathlib import Path

import click

from pinbin import __version__
from pinbin.core.errors import PinbinError
from pinbin.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="pinbin")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to pinbin.yaml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """pinbin — install pinned versions of command-line tools."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("PINBIN_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("PINBIN_LOG_FILE"),
        log_file_level=os.environ.get("PINBIN_LOG_FILE_LEVEL"),
    )


def _config_path(ctx: click.Context) -> Path:
    from pinbin.core.config.loader import find_config_file

    path = ctx.obj.get("config_path") or find_config_file()
    if path is None:
        click.secho("❌ No pinbin.yaml found (use --config).", fg="red", err=True)
        sys.exit(1)
    return path


def _fail(error: PinbinError) -> None:
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(1)


@cli.command()
@click.option("--only", "only", multiple=True, help="Install only these packages.")
@click.option("--jobs", "-j", default=4, show_default=True, help="Parallel installs.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, only: tuple[str, ...], jobs: int, as_json: bool) -> None:
    """Install every package pinned in pinbin.yaml."""
    from pinbin.core.config.loader import (
        checksum_required,
        load_config,
        load_registries,
        root_dir,
    )
    from pinbin.core.runtime import Runtime
    from pinbin.core.services.checksum import ArtifactChecksumVerifier, HTTPChecksumSource
    from pinbin.core.services.install import HTTPDownloader, PackageInstaller, install_all

    config_path = _config_path(ctx)
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        cfg = load_config(config_path)
        registries = load_registries(cfg, config_path)
        runtime = Runtime.from_host()
        verifier = ArtifactChecksumVerifier(
            HTTPChecksumSource(),
            runtime,
            trust_on_first_use=not checksum_required(cfg),
        )
        installer = PackageInstaller(
            root_dir(),
            runtime,
            HTTPDownloader(),
            verifier,
            allowed_registries=cfg.allowed_registries,
        )
        result = install_all(
            cfg, config_path, registries, installer,
            only=list(only) or None, jobs=jobs, cancel=cancel,
        )
    except PinbinError as e:
        _fail(e)
        return
    finally:
        signal.signal(signal.SIGINT, previous)

    if as_json:
        click.echo(json.dumps(result, indent=2))
        sys.exit(0 if result["ok"] else 1)

    if not ctx.obj.get("quiet"):
        for label in result["installed"]:
            click.secho(f"   ✓ {label}", fg="green")
        for label in result["skipped"]:
            click.secho(f"   ⊘ {label} (not supported on this platform)", fg="yellow")
    for failure in result["failed"]:
        marker = " [checksum mismatch]" if failure["integrity"] else ""
        click.secho(f"   ✗ {failure['package']}{marker}: {failure['error']}", fg="red")

    if not result["ok"]:
        sys.exit(1)


@cli.command()
@click.argument("identifiers", nargs=-1)
@click.option("--file", "-f", "list_file", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Read identifiers from a file (one per line).")
@click.option("--insert", "-i", is_flag=True, help="Append to pinbin.yaml instead of printing.")
@click.option("--pin", is_flag=True, help="Keep the version in its own field.")
@click.option("--detail", is_flag=True, help="Include link and description.")
@click.option("--latest/--no-latest", default=True, show_default=True,
              help="Look up the latest release when no version is given.")
@click.pass_context
def generate(
    ctx: click.Context,
    identifiers: tuple[str, ...],
    list_file: str | None,
    insert: bool,
    pin: bool,
    detail: bool,
    latest: bool,
) -> None:
    """Resolve [registry,]name[@version] identifiers into config entries.

    Examples:

        pinbin generate cli/cli@v2.40.0

        pinbin generate -i local,acme/tool
    """
    from pinbin.core.config.loader import load_config, load_registries
    from pinbin.core.services.generate import (
        exclude_duplicates,
        read_identifiers_file,
        resolve_identifiers,
        write_packages,
    )
    from pinbin.core.services.generate.versions import github_latest_version

    config_path = _config_path(ctx)
    try:
        cfg = load_config(config_path)
        registries = load_registries(cfg, config_path)
        names = list(identifiers)
        if list_file:
            names.extend(read_identifiers_file(Path(list_file)))
        if not names:
            click.secho("❌ No package identifiers given.", fg="red", err=True)
            sys.exit(1)
        getter = github_latest_version if latest else (lambda info, registry: "")
        entries = resolve_identifiers(
            names, registries, pin=pin, detail=detail, version_getter=getter,
        )
        entries = exclude_duplicates(cfg, entries)
        write_packages(entries, insert=insert, config_path=config_path)
    except PinbinError as e:
        _fail(e)


@cli.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List every package of every registry as registry,name."""
    from pinbin.core.config.loader import load_config, load_registries
    from pinbin.core.services.generate import list_packages

    config_path = _config_path(ctx)
    try:
        cfg = load_config(config_path)
        registries = load_registries(cfg, config_path)
    except PinbinError as e:
        _fail(e)
        return
    for line in list_packages(registries):
        click.echo(line)


if __name__ == "__main__":
    cli()
