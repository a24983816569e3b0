"""Rich console output for the gateway: startup banner, inbox tables, request panels."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .mail import resolve_gt_executable
from .models import Mail

# Stderr keeps stdout free for `mail inbox --json`.
console = Console(stderr=True, soft_wrap=True)


def _enabled(value: bool) -> str:
    return "[bold bright_green]ENABLED[/bold bright_green]" if value else "[dim]disabled[/dim]"


def display_startup_banner(settings: Any, host: str, port: int) -> None:
    """Print the server configuration before uvicorn takes over the console."""
    table = Table(
        box=box.ROUNDED,
        border_style="bright_blue",
        show_header=True,
        header_style="bold bright_white on bright_blue",
        title="[bold bright_yellow]Gas Town Mail Gateway[/bold bright_yellow]",
        padding=(0, 1),
    )
    table.add_column("Setting", style="bold bright_cyan", width=18)
    table.add_column("Value", style="white", overflow="fold")

    gt_path = resolve_gt_executable(settings.mail)
    table.add_row("Environment", f"[bold bright_green]{escape(settings.environment)}[/bold bright_green]")
    table.add_row("Endpoint", f"[bold bright_magenta]http://{host}:{port}/api/mail[/bold bright_magenta]")
    table.add_row("Gas Town", f"[dim]{escape(str(settings.mail.base_path))}[/dim]")
    table.add_row(
        "gt binary",
        f"[dim]{escape(gt_path)}[/dim]" if gt_path else f"[bold bright_red]{escape(settings.mail.gt_bin)} not found[/bold bright_red]",
    )
    table.add_row("Timeout", f"{settings.mail.command_timeout_ms} ms")
    table.add_row("Request Log", _enabled(settings.http.request_log_enabled))
    table.add_row("CORS", _enabled(settings.cors.enabled))

    console.print(table)


def build_inbox_table(messages: Iterable[Mail], identity: str | None) -> Table:
    title = f"Inbox: {identity}" if identity else "Inbox"
    table = Table(title=escape(title), box=box.SIMPLE_HEAVY)
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("From", style="cyan")
    table.add_column("Subject", style="bold")
    table.add_column("Sent", style="magenta")
    for message in messages:
        table.add_row(
            "" if message.read else "[bright_yellow]●[/bright_yellow]",
            escape(str(message.id or "")),
            escape(str(message.sender or "")),
            escape(str(message.subject or "")),
            escape(str(message.sent_at or "")),
        )
    return table


def print_request_panel(method: str, path: str, status_code: int, duration_ms: int, client: str) -> None:
    title = Text.assemble(
        (method, "bold blue"),
        ("  "),
        (path, "bold white"),
        ("  "),
        (f"{status_code}", "bold green" if 200 <= status_code < 400 else "bold red"),
        ("  "),
        (f"{duration_ms}ms", "bold yellow"),
    )
    body = Text.assemble(
        ("client: ", "cyan"),
        (client, "white"),
    )
    console.print(Panel(body, title=title, border_style="dim"))
