"""Command-line interface: run the gateway and poke at ``gt mail`` directly."""

from __future__ import annotations

import json
from typing import Optional

import typer
import uvicorn

from .config import get_settings
from .http import build_http_app
from .mail import fetch_inbox, resolve_identity, send_mail
from .rich_logger import build_inbox_table, console

app = typer.Typer(help="Gas Town mail gateway utilities.", invoke_without_command=True)
mail_app = typer.Typer(help="Read and send Gas Town mail through gt")
app.add_typer(mail_app, name="mail")


@app.callback()
def _app_callback(ctx: typer.Context) -> None:
    """Default to ``serve-http`` when no subcommand is given."""
    if ctx.invoked_subcommand is None:
        serve_http(host=None, port=None)


@app.command("serve-http")
def serve_http(
    host: Optional[str] = typer.Option(None, help="Host interface to bind. Defaults to HTTP_HOST setting."),
    port: Optional[int] = typer.Option(None, help="Port to bind. Defaults to HTTP_PORT setting."),
) -> None:
    """Serve the /api/mail gateway over HTTP."""
    settings = get_settings()
    resolved_host = host or settings.http.host
    resolved_port = port or settings.http.port

    if settings.log_rich_enabled:
        from . import rich_logger

        rich_logger.display_startup_banner(settings, resolved_host, resolved_port)

    app = build_http_app(settings)
    uvicorn.run(app, host=resolved_host, port=resolved_port, log_level="info")


@mail_app.command("inbox")
def mail_inbox(
    agent: Optional[str] = typer.Option(None, help="Agent name, or a full rig/agent identity."),
    rig: Optional[str] = typer.Option(None, help="Rig used to qualify a bare agent name."),
    as_json: bool = typer.Option(False, "--json", help="Print messages as JSON instead of a table."),
) -> None:
    """List an inbox the same way GET /api/mail does."""
    identity = resolve_identity(agent, rig)
    messages = fetch_inbox(identity)
    if as_json:
        typer.echo(json.dumps([m.to_dict() for m in messages], indent=2))
        return
    if not messages:
        console.print("[dim]No mail.[/dim]")
        return
    console.print(build_inbox_table(messages, identity))


@mail_app.command("send")
def mail_send(
    to: str = typer.Argument(..., help="Recipient identity, e.g. gastown/witness or mayor/."),
    subject: str = typer.Option(..., "--subject", "-s", help="Message subject."),
    body: str = typer.Option(..., "--body", "-m", help="Message body."),
) -> None:
    """Send a message through gt mail send."""
    if not send_mail(to, subject, body):
        console.print(f"[red]Failed to send mail to {to}.[/]")
        raise typer.Exit(code=1)
    console.print(f"[green]Sent to {to}.[/]")
