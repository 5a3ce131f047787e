"""Entry point for ccstats — API server and one-shot CLI commands."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ccstats.config import settings
from ccstats.credentials.store import CredentialStore
from ccstats.formatting import (
    clamp_utilization,
    format_count,
    last_updated_text,
    reset_time_text,
    usage_level,
)
from ccstats.history.store import HistoryStore
from ccstats.local_stats.reader import LocalStatsError, LocalStatsReader
from ccstats.status.service import StatusClient, StatusError
from ccstats.version.checker import UpdateChecker
from ccstats.version.service import VersionService
from ccstats.web_session.client import WebSessionClient
from ccstats.web_session.poller import UsagePoller

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_LEVEL_STYLE = {"low": "green", "medium": "yellow", "high": "red"}


def _usage_row(table: Table, title: str, usage: float, resets_at) -> None:
    value = clamp_utilization(usage)
    style = _LEVEL_STYLE[usage_level(value)]
    table.add_row(title, f"[{style}]{value:.0f}%[/{style}]", reset_time_text(resets_at))


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting ccstats API server", style="bold green"))
    uvicorn.run(
        "ccstats.api.server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def run_usage() -> int:
    """Fetch usage once, record it, and print the windows."""
    credentials = CredentialStore()
    poller = UsagePoller(
        client=WebSessionClient(credentials),
        history=HistoryStore(),
        status_client=StatusClient(),
    )
    with console.status("[bold green]Fetching usage..."):
        asyncio.run(poller.refresh())

    state = poller.state
    if state.error or state.usage is None:
        console.print(f"[bold red]{state.error or 'No usage data'}[/bold red]")
        return 1

    usage = state.usage
    table = Table(title="Claude usage", box=None, padding=(0, 2), title_style="bold cyan")
    table.add_column("Window", style="yellow", no_wrap=True)
    table.add_column("Used", justify="right")
    table.add_column("Reset", style="dim")
    _usage_row(table, "Session (5h)", usage.session_usage, usage.session_resets_at)
    _usage_row(table, "Weekly (7d)", usage.weekly_usage, usage.weekly_resets_at)
    if usage.sonnet_usage is not None and usage.sonnet_resets_at is not None:
        _usage_row(table, "Sonnet (7d)", usage.sonnet_usage, usage.sonnet_resets_at)
    if usage.opus_usage is not None and usage.opus_resets_at is not None:
        _usage_row(table, "Opus (7d)", usage.opus_usage, usage.opus_resets_at)
    console.print(table)

    status = state.status.display_text if state.status else "Status unknown"
    console.print(f"[dim]{last_updated_text(state.last_updated)} | {status}[/dim]")
    return 0


def run_history(limit: int) -> int:
    snapshots = HistoryStore().load_history()
    if not snapshots:
        console.print("[dim]No history yet.[/dim]")
        return 0
    table = Table(title="Usage history", box=None, padding=(0, 2), title_style="bold cyan")
    table.add_column("Time", style="dim")
    table.add_column("Session", justify="right")
    table.add_column("Weekly", justify="right")
    table.add_column("Sonnet", justify="right")
    for snap in snapshots[-limit:]:
        sonnet = f"{snap.sonnet_usage:.0f}%" if snap.sonnet_usage is not None else "-"
        table.add_row(
            f"{snap.timestamp.astimezone():%b %d %H:%M}",
            f"{snap.session_usage:.0f}%",
            f"{snap.weekly_usage:.0f}%",
            sonnet,
        )
    console.print(table)
    return 0


def run_sessions(limit: int) -> int:
    summaries = HistoryStore().load_session_summaries()
    if not summaries:
        console.print("[dim]No sessions recorded yet.[/dim]")
        return 0
    table = Table(title="Session history", box=None, padding=(0, 2), title_style="bold cyan")
    table.add_column("Started", style="dim")
    table.add_column("Reset at")
    table.add_column("Peak", justify="right")
    for s in summaries[-limit:]:
        style = _LEVEL_STYLE[usage_level(s.peak_usage)]
        table.add_row(
            f"{s.first_seen.astimezone():%b %d, %H:%M}",
            f"{s.session_resets_at.astimezone():%b %d, %H:%M}",
            f"[{style}]{s.peak_usage:.0f}%[/{style}]",
        )
    console.print(table)
    return 0


def run_version() -> int:
    checker = UpdateChecker(VersionService(), preferences=CredentialStore())
    with console.status("[bold green]Checking for updates..."):
        asyncio.run(checker.check_for_update())

    if checker.has_update:
        console.print(f"[bold yellow]{checker.update_text}[/bold yellow]")
        console.print(f"[dim]{checker.changelog_url}[/dim]")
    elif checker.is_up_to_date:
        console.print(f"[green]{checker.up_to_date_text}[/green]")
    else:
        installed = checker.installed_version or "unknown"
        latest = checker.latest_version or "unknown"
        console.print(f"[dim]Installed: {installed} | Latest: {latest}[/dim]")
    return 0


def run_dismiss() -> int:
    checker = UpdateChecker(VersionService(), preferences=CredentialStore())
    asyncio.run(checker.check_for_update())
    if not checker.latest_version:
        console.print("[dim]Latest version unknown — nothing to dismiss.[/dim]")
        return 1
    checker.dismiss()
    console.print(f"Dismissed v{checker.latest_version}")
    return 0


def run_status() -> int:
    try:
        status = StatusClient().fetch_status()
    except StatusError as e:
        console.print(f"[dim]Status unavailable: {e}[/dim]")
        return 1
    console.print(f"{status.display_text} — {status.description}")
    return 0


def run_local() -> int:
    try:
        local = LocalStatsReader().read()
    except LocalStatsError as e:
        console.print(f"[bold red]{e}[/bold red]")
        return 1
    table = Table(title="Local activity", box=None, padding=(0, 2), title_style="bold cyan")
    table.add_column("", style="yellow")
    table.add_column("Messages", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_row("Today", format_count(local.today_messages), format_count(local.today_tokens))
    table.add_row("7 days", format_count(local.week_messages), format_count(local.week_tokens))
    console.print(table)
    console.print(
        f"[dim]{local.total_sessions} sessions, {format_count(local.total_messages)} messages | "
        f"mostly {local.primary_model}[/dim]"
    )
    return 0


def run_login(session_key: str | None, cookies: str | None, org_id: str | None) -> int:
    if not session_key and not cookies:
        console.print("[bold red]Provide --session-key and/or --cookies[/bold red]")
        return 1
    credentials = CredentialStore()
    credentials.session_key = session_key
    credentials.full_cookies = cookies
    credentials.organization_id = org_id
    console.print(f"[green]Credentials saved to {settings.credentials_path}[/green]")
    return 0


def run_logout() -> int:
    CredentialStore().clear_session()
    console.print("Logged out.")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Claude usage tracker")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")
    sub.add_parser("usage", help="Fetch and record current usage")
    history_parser = sub.add_parser("history", help="Show recorded snapshots")
    history_parser.add_argument("--limit", type=int, default=20)
    sessions_parser = sub.add_parser("sessions", help="Show reconstructed sessions")
    sessions_parser.add_argument("--limit", type=int, default=30)
    sub.add_parser("version", help="Check the installed CLI against the latest release")
    sub.add_parser("dismiss", help="Dismiss the current update notice")
    sub.add_parser("status", help="Show the service status page indicator")
    sub.add_parser("local", help="Summarize ~/.claude/stats-cache.json")
    login_parser = sub.add_parser("login", help="Store claude.ai session credentials")
    login_parser.add_argument("--session-key")
    login_parser.add_argument("--cookies", help="Full browser cookie string")
    login_parser.add_argument("--org-id", help="Organization id override")
    sub.add_parser("logout", help="Clear stored session credentials")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
        return

    handlers = {
        "usage": run_usage,
        "history": lambda: run_history(args.limit),
        "sessions": lambda: run_sessions(args.limit),
        "version": run_version,
        "dismiss": run_dismiss,
        "status": run_status,
        "local": run_local,
        "login": lambda: run_login(args.session_key, args.cookies, args.org_id),
        "logout": run_logout,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    sys.exit(handler())


if __name__ == "__main__":
    main()
