"""
Oracle CLI - local account, leaderboard and study archive management.

Usage:
    oracle signup ada@example.com Ada --password secret
    oracle login ada@example.com --password secret
    oracle credits add 25
    oracle leaderboard               # Global leaderboard
    oracle circle                    # You + your friends
    oracle friends add <ID>
    oracle attempts record <SESSION> "Quiz 1" 90 90 120
    oracle attempts rankings <SESSION>
    oracle sessions save guide.json
    oracle sessions list
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable, Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import get_settings
from oracle_store.errors import OracleError
from oracle_store.models import Account
from oracle_store.service import OracleService

T = TypeVar("T")

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="oracle",
    help="Oracle - local accounts, credits, rankings and study archive",
    add_completion=False,
    rich_markup_mode="rich",
)
credits_app = typer.Typer(name="credits", help="Credit balance")
friends_app = typer.Typer(name="friends", help="Your friend circle")
attempts_app = typer.Typer(name="attempts", help="Quiz attempt ledger")
sessions_app = typer.Typer(name="sessions", help="Archived study sessions")
app.add_typer(credits_app)
app.add_typer(friends_app)
app.add_typer(attempts_app)
app.add_typer(sessions_app)

console = Console()


@contextmanager
def _service() -> Generator[OracleService, None, None]:
    """Open a service for one command and report domain errors."""
    service = OracleService.from_settings(get_settings())
    try:
        yield service
    except OracleError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1)
    finally:
        service.flat_store.close()
        # The document engine never connects on sync commands
        service.document_store.engine.sync_engine.dispose()


def _run_async(fn: Callable[[OracleService], Awaitable[T]]) -> T:
    """Run an archive coroutine and dispose the async engine on the same loop."""

    async def runner() -> T:
        service = OracleService.from_settings(get_settings())
        try:
            return await fn(service)
        finally:
            await service.close()

    try:
        return asyncio.run(runner())
    except OracleError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1)


def _accounts_table(title: str, accounts: list[Account], viewer_id: str | None = None) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("ID")
    table.add_column("Credits", style="yellow", justify="right")
    for rank, account in enumerate(accounts, start=1):
        name = f"{account.name} [bold](you)[/]" if account.id == viewer_id else account.name
        table.add_row(str(rank), name, account.id, str(account.credits))
    return table


def _format_ts(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp / 1000).strftime("%Y-%m-%d %H:%M")


# =============================================================================
# Account Commands
# =============================================================================


@app.command()
def signup(
    email: Annotated[str, typer.Argument(help="Account email")],
    name: Annotated[str, typer.Argument(help="Display name")],
    password: Annotated[str, typer.Option("--password", "-p", prompt=True, hide_input=True)],
) -> None:
    """Create an account and log in."""
    with _service() as service:
        account = service.accounts.signup(email, password, name)
    console.print(f"[green]✓ Welcome, {account.name}[/] (ID: [bold]{account.id}[/])")


@app.command()
def login(
    email: Annotated[str, typer.Argument(help="Account email")],
    password: Annotated[str, typer.Option("--password", "-p", prompt=True, hide_input=True)],
) -> None:
    """Log in to an existing account."""
    with _service() as service:
        account = service.accounts.login(email, password)
    console.print(f"[green]✓ Logged in as {account.name}[/] ({account.credits} credits)")


@app.command()
def logout() -> None:
    """Log out."""
    with _service() as service:
        service.accounts.logout()
    console.print("[green]✓ Logged out[/]")


@app.command()
def whoami() -> None:
    """Show the active account."""
    with _service() as service:
        user = service.accounts.get_current_user()
    if user is None:
        console.print("[yellow]Not logged in[/]")
        raise typer.Exit(1)
    console.print(f"[cyan]{user.name}[/] <{user.email}>  ID: [bold]{user.id}[/]  Credits: {user.credits}")


@credits_app.command("add")
def credits_add(
    amount: Annotated[int, typer.Argument(help="Credits to add (negative debits)")],
) -> None:
    """Add credits to the active account."""
    with _service() as service:
        user = service.accounts.add_credits(amount)
    if user is None:
        console.print("[yellow]Not logged in[/]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Balance: {user.credits}[/]")


# =============================================================================
# Ranking Commands
# =============================================================================


@app.command()
def leaderboard() -> None:
    """Global leaderboard by credits."""
    with _service() as service:
        viewer = service.accounts.get_current_user()
        accounts = service.accounts.get_all_users()
    console.print(_accounts_table("Leaderboard", accounts, viewer.id if viewer else None))


@app.command()
def circle() -> None:
    """Your friend circle ranked by credits."""
    with _service() as service:
        viewer = service.accounts.get_current_user()
        ranking = service.get_friend_circle_ranking()
    if viewer is None:
        console.print("[yellow]Not logged in[/]")
        raise typer.Exit(1)
    console.print(_accounts_table("Circle Rankings", ranking, viewer.id))


# =============================================================================
# Friend Commands
# =============================================================================


@friends_app.command("add")
def friends_add(friend_id: Annotated[str, typer.Argument(help="Friend's account ID")]) -> None:
    """Add an account to your circle."""
    with _service() as service:
        service.accounts.add_friend(friend_id)
    console.print(f"[green]✓ Added {friend_id}[/]")


@friends_app.command("remove")
def friends_remove(friend_id: Annotated[str, typer.Argument(help="Friend's account ID")]) -> None:
    """Remove an account from your circle."""
    with _service() as service:
        service.accounts.remove_friend(friend_id)
    console.print(f"[green]✓ Removed {friend_id}[/]")


@friends_app.command("list")
def friends_list() -> None:
    """List your friends."""
    with _service() as service:
        friends = service.accounts.get_friends()
    if not friends:
        console.print("[dim]No friends yet[/]")
        return
    console.print(_accounts_table("Friends", friends))


# =============================================================================
# Attempt Commands
# =============================================================================


@attempts_app.command("record")
def attempts_record(
    session_id: Annotated[str, typer.Argument(help="Study session the quiz belongs to")],
    title: Annotated[str, typer.Argument(help="Quiz title")],
    score: Annotated[float, typer.Argument(help="Score")],
    percentage: Annotated[float, typer.Argument(help="Percentage correct")],
    time_taken: Annotated[float, typer.Argument(help="Seconds taken")],
) -> None:
    """Record a quiz attempt for the active account."""
    with _service() as service:
        attempt = service.ledger.save_quiz_attempt(session_id, title, score, percentage, time_taken)
    console.print(f"[green]✓ Recorded attempt {attempt.id}[/]")


@attempts_app.command("list")
def attempts_list(
    user: Annotated[str | None, typer.Option("--user", "-u", help="Only this account's attempts")] = None,
) -> None:
    """List quiz attempts."""
    with _service() as service:
        attempts = service.ledger.get_quiz_attempts(user)

    table = Table(title="Quiz Attempts")
    table.add_column("When", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Quiz")
    table.add_column("Score", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Time (s)", justify="right")
    for a in attempts:
        table.add_row(_format_ts(a.timestamp), a.user_name, a.quiz_title, f"{a.score:g}", f"{a.percentage:g}", f"{a.time_taken:g}")
    console.print(table)


@attempts_app.command("rankings")
def attempts_rankings(session_id: Annotated[str, typer.Argument(help="Study session ID")]) -> None:
    """Rank attempts on one study session."""
    with _service() as service:
        ranked = service.get_session_rankings(session_id)

    table = Table(title=f"Session {session_id}")
    table.add_column("#", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Score", style="green", justify="right")
    table.add_column("Time (s)", justify="right")
    for rank, a in enumerate(ranked, start=1):
        table.add_row(str(rank), a.user_name, f"{a.score:g}", f"{a.time_taken:g}")
    console.print(table)


@attempts_app.command("trajectory")
def attempts_trajectory() -> None:
    """Recent quiz percentages for you and your circle."""
    with _service() as service:
        series = service.get_circle_trajectories()
    if not series:
        console.print("[yellow]Not logged in[/]")
        raise typer.Exit(1)
    for s in series:
        points = "  ".join(f"{p:g}%" for p in s.points) or "[dim]no attempts[/]"
        console.print(f"[cyan]{s.label}[/]: {points}")


# =============================================================================
# Study Session Commands
# =============================================================================


@sessions_app.command("save")
def sessions_save(
    input_file: Annotated[Path, typer.Argument(help='JSON file: {"sources": [...], "guide": {...}}')],
) -> None:
    """Archive a generated study guide."""
    if not input_file.exists():
        console.print(f"[red]File not found: {input_file}[/]")
        raise typer.Exit(1)
    try:
        payload = json.loads(input_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {input_file}: {e}[/]")
        raise typer.Exit(1)
    if not isinstance(payload, dict):
        console.print(f'[red]Expected a JSON object {{"sources": [...], "guide": {{...}}}} in {input_file}[/]')
        raise typer.Exit(1)

    session_id = _run_async(
        lambda service: service.archive.save_study_session(payload.get("sources", []), payload.get("guide"))
    )
    console.print(f"[green]✓ Saved session {session_id}[/]")


@sessions_app.command("list")
def sessions_list() -> None:
    """List your archived study sessions, newest first."""

    async def history(service: OracleService):
        user = service.accounts.get_current_user()
        if user is None:
            return None
        return await service.archive.get_study_history(user.id)

    sessions = _run_async(history)
    if sessions is None:
        console.print("[yellow]Not logged in[/]")
        raise typer.Exit(1)

    table = Table(title="Study Archive")
    table.add_column("ID", style="cyan")
    table.add_column("Saved", style="dim")
    table.add_column("Sources", justify="right")
    table.add_column("Reward")
    for s in sessions:
        table.add_row(s.id, _format_ts(s.timestamp), str(len(s.sources)), "✓ claimed" if s.reward_claimed else "")
    console.print(table)


@sessions_app.command("delete")
def sessions_delete(session_id: Annotated[str, typer.Argument(help="Study session ID")]) -> None:
    """Delete an archived study session."""
    _run_async(lambda service: service.archive.delete_study_session(session_id))
    console.print(f"[green]✓ Deleted {session_id}[/]")


@sessions_app.command("claim")
def sessions_claim(
    session_id: Annotated[str, typer.Argument(help="Study session ID")],
    amount: Annotated[int | None, typer.Option("--amount", "-a", help="Override reward size")] = None,
) -> None:
    """Claim the credit reward for a study session."""
    session = _run_async(lambda service: service.archive.claim_session_reward(session_id, amount))
    if session is None:
        console.print("[yellow]Nothing to claim[/]")
        return
    console.print(f"[green]✓ Reward claimed for {session_id}[/]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )

    app()


if __name__ == "__main__":
    main()
