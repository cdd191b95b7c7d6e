# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for mail-rescan.

Usage:
    mail-rescan rescan alice@example.com /INBOX
    mail-rescan rescan alice@example.com /lists/announce <id1> <id2> --continue-on-error
    mail-rescan locate alice@example.com /INBOX <id1>
    mail-rescan path alice@example.com /lists/announce
    mail-rescan score 203.0.113.9

Settings come from the INI file given with ``--config`` (default
``$MRS_CONFIG`` or ``~/.config/mail-rescan/config.ini``).
"""

from __future__ import annotations

import sys
from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import RescanConfig, load_settings
from .errors import RescanError
from .logger import configure_logging, get_logger
from .maildir import resolve_mailbox_path, scan_message_files
from .rescan import rescan
from .session import RescanSession

console = Console()
err_console = Console(stderr=True)
logger = get_logger()


def print_error(message: str) -> None:
    """Print a formatted error message to stderr."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a formatted success message with checkmark."""
    console.print(f"[green]✓[/green] {message}")


def _config(ctx: click.Context) -> RescanConfig:
    return ctx.obj["config"]


@click.group()
@click.version_option(package_name="mail-rescan")
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), default=None,
              help="Path to config.ini.")
@click.option("--verbose", "-v", is_flag=True, help="Log every rescan step.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """mail-rescan - Reclassify delivered mail and rewrite its spam headers."""
    ctx.ensure_object(dict)
    try:
        config = load_settings(config_path)
    except ValueError as exc:
        print_error(f"invalid configuration: {exc}")
        sys.exit(1)
    if verbose:
        config.verbose = True
    configure_logging(config.log_level, config.verbose)
    logger.debug("settings: api=%s maildir=%s", config.api.server_url, config.maildir.root)
    ctx.obj["config"] = config


@main.command("rescan")
@click.argument("account")
@click.argument("folder")
@click.argument("message_ids", nargs=-1)
@click.option("--continue-on-error", is_flag=True, help="Keep going after a message fails.")
@click.pass_context
def rescan_command(ctx: click.Context, account: str, folder: str, message_ids: tuple[str, ...],
                   continue_on_error: bool) -> None:
    """Rescan messages in FOLDER of ACCOUNT, optionally only MESSAGE_IDS."""
    with RescanSession(_config(ctx)) as session:
        try:
            result = rescan(session, account, folder, message_ids, stop_on_error=not continue_on_error)
        except RescanError as exc:
            print_error(str(exc))
            sys.exit(1)

    for path in result.rescanned:
        console.print(f"  {escape(path)}")
    for error in result.errors:
        print_error(str(error))

    if result.errors:
        console.print(f"[yellow]Rescanned {result.count} message(s), {len(result.errors)} failed[/yellow]")
        sys.exit(1)
    print_success(f"Rescanned {result.count} message(s)")


@main.command("locate")
@click.argument("account")
@click.argument("folder")
@click.argument("message_ids", nargs=-1)
@click.pass_context
def locate_command(ctx: click.Context, account: str, folder: str, message_ids: tuple[str, ...]) -> None:
    """List message files in FOLDER, optionally only MESSAGE_IDS."""
    try:
        directory = resolve_mailbox_path(account, folder, _config(ctx).maildir.root)
        message_files = scan_message_files(directory, message_ids)
    except RescanError as exc:
        print_error(str(exc))
        sys.exit(1)

    if not message_files:
        console.print("[dim]No messages found.[/dim]")
        return

    table = Table(title=escape(directory))
    table.add_column("File", style="cyan")
    table.add_column("Message-ID")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for message_file in message_files:
        table.add_row(
            escape(message_file.pathname.rsplit("/", 1)[-1]),
            escape(message_file.message_id) if message_file.message_id else "[dim]-[/dim]",
            str(message_file.size),
            datetime.fromtimestamp(message_file.mtime).strftime("%Y-%m-%d %H:%M:%S"),
        )
    console.print(table)


@main.command("path")
@click.argument("account")
@click.argument("folder")
@click.pass_context
def path_command(ctx: click.Context, account: str, folder: str) -> None:
    """Print the Maildir directory holding FOLDER of ACCOUNT."""
    try:
        click.echo(resolve_mailbox_path(account, folder, _config(ctx).maildir.root))
    except RescanError as exc:
        print_error(str(exc))
        sys.exit(1)


@main.command("score")
@click.argument("ip")
@click.pass_context
def score_command(ctx: click.Context, ip: str) -> None:
    """Look up the sender reputation score of IP."""
    with RescanSession(_config(ctx)) as session:
        try:
            score = session.reputation().reputation(ip)
        except RescanError as exc:
            print_error(str(exc))
            sys.exit(1)
    click.echo(str(score))


__all__ = ["main"]
