"""
Repository Registrar — CLI entrypoint.

Usage:
    registrar --help
    sudo registrar add
    registrar status
    sudo registrar remove
    registrar config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from registrar import __version__
from registrar.core.observability.logging_config import setup_logging

_STEP_STYLE = {
    "ok": ("✅", "green"),
    "warning": ("⚠️ ", "yellow"),
    "skipped": ("⏭️ ", "cyan"),
}

_MODE_LABEL = {
    "installed": "fresh install",
    "updated": "existing section rewritten",
    "already_present": "already configured (trust refresh only)",
}


@click.group()
@click.version_option(version=__version__, prog_name="registrar")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to registrar.yml (default: auto-detect).",
)
@click.option(
    "--pacman-conf",
    type=click.Path(exists=False),
    default=None,
    help="Override the pacman.conf path from registrar.yml.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    pacman_conf: str | None,
) -> None:
    """Repository Registrar — add a third-party repository to pacman."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["pacman_conf"] = Path(pacman_conf) if pacman_conf else None

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("REGISTRAR_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("REGISTRAR_LOG_FILE"),
        log_file_level=os.environ.get("REGISTRAR_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── Helpers ─────────────────────────────────────────────────────


def _fail(message: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"ok": False, "error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _load(ctx: click.Context, as_json: bool):
    """Load settings, applying the --pacman-conf override."""
    from registrar.core.config.loader import load_settings
    from registrar.core.errors import ConfigError

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        _fail(str(e), as_json)

    override = ctx.obj.get("pacman_conf")
    if override is not None:
        settings = settings.model_copy(update={"pacman_conf": override})
    return settings


def _tools(ctx: click.Context):
    """Host tools; tests inject a mock through ``obj={"tools": ...}``."""
    tools = ctx.obj.get("tools")
    if tools is None:
        from registrar.adapters.pacman import PacmanTools

        tools = PacmanTools()
    return tools


def _print_step(outcome) -> None:
    icon, color = _STEP_STYLE.get(outcome.status, ("•", "white"))
    click.secho(f"{icon} {outcome.message}", fg=color)


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.option("--replace", is_flag=True, help="Rewrite the section if it already exists.")
@click.option("--no-verify", is_flag=True, help="Skip the package listing check.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def add(ctx: click.Context, replace: bool, no_verify: bool, as_json: bool) -> None:
    """Trust the signing key, add the repository and sync databases."""
    from registrar.core.errors import RegistrarError
    from registrar.core.use_cases.register import register_repository

    settings = _load(ctx, as_json)
    if no_verify:
        settings = settings.model_copy(update={"verify": False})

    quiet = ctx.obj.get("quiet", False)
    progress = None if (as_json or quiet) else _print_step

    if progress is not None:
        click.secho(f"\n📦 Registering [{settings.repository.name}]", fg="cyan", bold=True)

    try:
        result = register_repository(
            settings,
            _tools(ctx),
            replace=replace,
            progress=progress,
        )
    except RegistrarError as e:
        _fail(str(e), as_json)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    if quiet:
        return

    click.echo()
    click.secho("   Repository information:", fg="white", bold=True)
    click.echo(f"     Name:        {result.repository}")
    click.echo(f"     URL:         {result.url}")
    if result.fingerprint:
        click.echo(f"     Key:         {result.fingerprint}")
    else:
        click.echo("     Key:         none (relaxed signature policy)")
    if result.sig_level:
        click.echo(f"     SigLevel:    {result.sig_level}")
    click.echo(f"     Result:      {_MODE_LABEL.get(result.mode, result.mode)}")
    if result.backup_path:
        click.echo(f"     Backup:      {result.backup_path}")
    click.echo()
    click.echo(
        f"   To remove it later run 'registrar remove' or delete the "
        f"[{result.repository}] section from {result.config_path}."
    )
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show whether the repository is configured."""
    from registrar.core.use_cases.status import repository_status

    settings = _load(ctx, as_json)
    result = repository_status(settings)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        _fail(result.error, as_json=False)

    if not result.present:
        click.secho(f"➖ [{result.repository}] is not configured in {result.config_path}", fg="yellow")
        return

    click.secho(f"✅ [{result.repository}] is configured in {result.config_path}", fg="green")
    if result.sig_level is not None:
        click.echo(f"   SigLevel: {result.sig_level}")
    for server in result.servers:
        click.echo(f"   Server:   {server}")
    if result.section_count > 1:
        click.secho(f"⚠️  {result.section_count} sections share this name", fg="yellow")
    if result.backups:
        click.echo(f"   Backups:  {len(result.backups)} (latest {result.backups[-1]})")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def remove(ctx: click.Context, as_json: bool) -> None:
    """Remove the repository section from pacman.conf."""
    from registrar.core.errors import RegistrarError
    from registrar.core.use_cases.remove import remove_repository

    settings = _load(ctx, as_json)
    try:
        result = remove_repository(settings, _tools(ctx))
    except RegistrarError as e:
        _fail(str(e), as_json)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.removed:
        click.secho(f"➖ [{result.repository}] was not configured; nothing to do", fg="yellow")
        return

    click.secho(f"✅ [{result.repository}] removed (backup: {result.backup_path})", fg="green")
    for warning in result.warnings:
        click.secho(f"⚠️  {warning}", fg="yellow")


@cli.group()
def config() -> None:
    """Registrar configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate registrar.yml."""
    from registrar.core.use_cases.config_check import check_config

    result = check_config(ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.config_path:
        click.echo(f"📄 {result.config_path}")
    for error in result.errors:
        click.secho(f"   ❌ {error}", fg="red")
    for warning in result.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")

    if result.valid:
        click.secho("✅ Configuration is valid", fg="green")
    else:
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
