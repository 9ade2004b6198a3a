"""Command-line adapter for previewing and sending GELF records.

Purpose
-------
Expose the client through the ``lib_gelf_http`` console script so operators can
check a collector end to end: render the record that would be sent, send it,
and optionally replay the captured bytes to a fallback host when the first
attempt fails.

Contents
--------
* :func:`cli` – rich-click group holding the global options.
* ``info`` / ``preview`` / ``send`` subcommands.
* :func:`main` – entry point wired through :mod:`lib_cli_exit_tools`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

import lib_cli_exit_tools
import rich_click as click
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table

from . import __init__conf__
from . import config as config_module
from .client import GelfHttpClient
from .domain.configuration import GraylogConfiguration
from .domain.results import SendError, SendResult

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _parse_fields(values: Sequence[str]) -> dict[str, str]:
    """Turn repeated ``KEY=VALUE`` options into a mapping.

    Examples
    --------
    >>> _parse_fields(["user=alice", "attempt=3"])
    {'user': 'alice', 'attempt': '3'}
    """

    fields: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--field")
        fields[key] = value
    return fields


def _load(ctx: click.Context) -> GraylogConfiguration:
    try:
        return config_module.load_configuration(ctx.obj.get("config_path"))
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"invalid configuration: {exc}") from exc


def _render(console: Console, result: SendResult, label: str) -> None:
    table = Table(title=label, show_header=False)
    table.add_column("field", style="bold")
    table.add_column("value")
    table.add_row("status", "[green]delivered[/green]" if result.ok else "[red]failed[/red]")
    table.add_row("correlation id", result.correlation_id)
    table.add_row("bytes", str(len(result.message_body)))
    if isinstance(result, SendError):
        table.add_row("fault", f"{result.fault_kind.value}: {result.fault}")
    console.print(table)


@click.group(
    help=__init__conf__.title,
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=True,
)
@click.version_option(
    version=__init__conf__.version,
    prog_name=__init__conf__.shell_command,
    message=f"{__init__conf__.shell_command} version {__init__conf__.version}",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors.",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=False,
    help=f"Load environment variables from the nearest .env (overrides {config_module.DOTENV_ENV_VAR}).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON configuration file (camelCase keys); GELF_* variables still override it.",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool, config_path: Path | None) -> None:
    """Root command storing global flags and loading ``.env`` when requested."""

    if ctx.get_parameter_source("traceback") is not ParameterSource.DEFAULT:
        lib_cli_exit_tools.config.traceback = traceback
        lib_cli_exit_tools.config.traceback_force_color = traceback

    explicit: bool | None = None
    if ctx.get_parameter_source("use_dotenv") is not ParameterSource.DEFAULT:
        explicit = use_dotenv
    if config_module.should_use_dotenv(explicit=explicit, env_value=os.getenv(config_module.DOTENV_ENV_VAR)):
        config_module.enable_dotenv()

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(__init__conf__.summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print resolved metadata so users can inspect installation details."""

    click.echo(__init__conf__.summary_info(), nl=False)


@cli.command("preview", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("short_message")
@click.option("--full", "full_message", default=None, help="Optional full message.")
@click.option("--field", "fields", multiple=True, metavar="KEY=VALUE", help="Additional field; repeatable.")
@click.pass_context
def cli_preview(ctx: click.Context, short_message: str, full_message: str | None, fields: tuple[str, ...]) -> None:
    """Print the GELF JSON that ``send`` would transmit."""

    client = GelfHttpClient(_load(ctx))
    try:
        entry = client.create_entry(short_message, full_message, _parse_fields(fields) or None)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    Console().print_json(entry.to_json())


@cli.command("send", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("short_message")
@click.option("--full", "full_message", default=None, help="Optional full message.")
@click.option("--field", "fields", multiple=True, metavar="KEY=VALUE", help="Additional field; repeatable.")
@click.option("--correlation-id", default=None, help="Correlation id reported with the result.")
@click.option("--fallback-host", default=None, help="Resend the captured bytes to this host once if delivery fails.")
@click.pass_context
def cli_send(
    ctx: click.Context,
    short_message: str,
    full_message: str | None,
    fields: tuple[str, ...],
    correlation_id: str | None,
    fallback_host: str | None,
) -> None:
    """Send one record and report the outcome; exits with 1 on failure."""

    console = Console()
    client = GelfHttpClient(_load(ctx))
    try:
        result = client.send(short_message, full_message, _parse_fields(fields) or None, correlation_id=correlation_id)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    _render(console, result, client.configuration.gelf_url)

    if isinstance(result, SendError) and fallback_host:
        result = client.send_raw(
            result.message_body,
            correlation_id=result.correlation_id,
            override={"host": fallback_host},
        )
        _render(console, result, f"fallback {fallback_host}")

    if not result.ok:
        ctx.exit(1)


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI via :func:`lib_cli_exit_tools.run_cli` and return the exit code.

    Traceback preferences toggled by ``--traceback`` are restored afterwards so
    embedding applications keep their own settings.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main"]
