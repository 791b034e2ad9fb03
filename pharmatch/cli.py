"""
PharMatch Command Line Interface

Provides CLI commands for operating the matching engine: database setup,
queue inspection, swipes, quotas and matches.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="pharmatch",
    help="PharMatch swipe matching engine CLI",
    add_completion=False,
)
console = Console()


@app.command()
def version():
    """Show application version."""
    from pharmatch import __app_name__, __version__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from pharmatch.utils.config import get_settings

    settings = get_settings()
    matching = settings.matching

    table = Table(title="PharMatch Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("Max Radius (km)", f"{matching.max_radius_km:g}")
    table.add_row("Re-surfacing Cool-down (days)", f"{matching.resurface_cooldown_days:g}")
    table.add_row("Superlike Fallback", str(matching.superlike_fallback.value))
    table.add_row("Default Queue Size", str(matching.default_queue_limit))
    table.add_row(
        "Score Weights",
        ", ".join(f"{name}={weight:g}" for name, weight in matching.weights.items()),
    )
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Initialize the database with required collections and indexes."""
    from pharmatch.data.database import get_database_manager

    console.print("[yellow]Initializing database...[/yellow]")

    try:
        db_manager = get_database_manager()

        # Check connection first
        console.print("  Checking database connection...")
        if not db_manager.check_connection():
            console.print("[red]Error: Could not connect to MongoDB.[/red]")
            console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
            raise typer.Exit(1)

        console.print("  [green]✓[/green] Connected to MongoDB")

        # Create indexes
        console.print("  Creating indexes...")
        db_manager.ensure_indexes()
        console.print("  [green]✓[/green] Indexes created")

        console.print("\n[green]Database initialized successfully![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def queue(
    actor_id: str = typer.Argument(..., help="Actor requesting the queue"),
    kind: str = typer.Option("job_offer", "--kind", "-k", help="Target kind (job_offer/internship_offer/mission/candidate/animator)"),
    context_id: Optional[str] = typer.Option(None, "--context", "-c", help="Offer or mission to review profiles for"),
    sort: str = typer.Option("score", "--sort", "-s", help="Sort key (score/distance/recency)"),
    max_distance: Optional[float] = typer.Option(None, "--max-distance", "-d", help="Maximum distance in km"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum number of targets to show"),
):
    """Show the swipe queue of an actor."""
    from pharmatch.core.matching import MatchingError, QueueFilters, get_matching_engine

    try:
        filters = QueueFilters(
            context_id=context_id,
            sort=sort,
            max_distance_km=max_distance,
            limit=limit,
        )
        entries = get_matching_engine().get_queue(actor_id, kind, filters)
    except ValueError as e:
        console.print(f"[red]Invalid option: {e}[/red]")
        raise typer.Exit(1)
    except MatchingError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not entries:
        console.print("[yellow]Queue is empty.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Queue for {actor_id} ({len(entries)} targets)")
    table.add_column("#", style="dim", width=4)
    table.add_column("Target", style="cyan")
    table.add_column("Title")
    table.add_column("Owner")
    table.add_column("Score", justify="right")
    table.add_column("Distance", justify="right")

    for i, entry in enumerate(entries, 1):
        if entry.score >= 80:
            score_style = "green"
        elif entry.score >= 50:
            score_style = "yellow"
        else:
            score_style = "red"
        distance = f"{entry.distance_km:.1f} km" if entry.distance_km is not None else "-"
        table.add_row(
            str(i),
            entry.target_id,
            entry.target.title or "-",
            entry.target.owner_id,
            f"[{score_style}]{entry.score}[/{score_style}]",
            distance,
        )

    console.print(table)


@app.command()
def swipe(
    actor_id: str = typer.Argument(..., help="Actor swiping"),
    target_id: str = typer.Argument(..., help="Target being swiped"),
    decision: str = typer.Argument(..., help="like, dislike or superlike"),
    kind: str = typer.Option("job_offer", "--kind", "-k", help="Target kind"),
    context_id: Optional[str] = typer.Option(None, "--context", "-c", help="Offer or mission a profile is swiped for"),
):
    """Record a swipe and report whether it completed a match."""
    from pharmatch.core.matching import MatchingError, get_matching_engine

    try:
        result = get_matching_engine().swipe(actor_id, kind, target_id, decision, context_id=context_id)
    except ValueError as e:
        console.print(f"[red]Invalid option: {e}[/red]")
        raise typer.Exit(1)
    except MatchingError as e:
        console.print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"Recorded [bold]{result.decision.value}[/bold] on {target_id}")
    if result.downgraded:
        console.print("[yellow]Superlike quota exhausted, recorded as a like.[/yellow]")
    if result.previous_decision is not None:
        console.print(f"[dim]Previous decision: {result.previous_decision.value}[/dim]")
    if result.quota_remaining is not None:
        console.print(f"[dim]Superlikes left today: {result.quota_remaining}[/dim]")
    if result.matched and result.match is not None:
        console.print(
            f"[bold green]It's a match![/bold green] "
            f"{result.match.actor_a} <-> {result.match.actor_b} "
            f"(score {result.match.score})"
        )


@app.command()
def quota(
    actor_id: str = typer.Argument(..., help="Actor to inspect"),
    action: str = typer.Option("superlike", "--action", "-a", help="Rate-limited action kind"),
):
    """Show quota usage for the current period."""
    from pharmatch.core.matching import MatchingError, get_matching_engine

    try:
        status = get_matching_engine().get_quota(actor_id, action)
    except (ValueError, MatchingError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{status.action_kind.value} quota for {actor_id}")
    table.add_column("Period Start", style="cyan")
    table.add_column("Used", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_row(
        status.period_start.strftime("%Y-%m-%d"),
        str(status.used),
        "unlimited" if status.limit is None else str(status.limit),
        "-" if status.remaining is None else str(status.remaining),
    )
    console.print(table)


@app.command()
def matches(
    actor_id: str = typer.Argument(..., help="Actor to list matches for"),
    status: Optional[str] = typer.Option("active", "--status", "-s", help="Filter by status (active/closed/all)"),
):
    """List the matches of an actor."""
    from pharmatch.core.matching import MatchingError, get_matching_engine
    from pharmatch.data.repositories import get_match_repository
    from pharmatch.utils.constants import MatchStatus

    try:
        status_filter = None if status in (None, "all") else MatchStatus(status)
        results = get_matching_engine().get_matches(actor_id, status=status_filter)
    except (ValueError, MatchingError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Matches of {actor_id} ({len(results)} total)")
    table.add_column("ID", style="dim")
    table.add_column("With", style="cyan")
    table.add_column("Context")
    table.add_column("Score", justify="right")
    table.add_column("Matched At")
    table.add_column("Status")

    for match in results:
        status_style = "green" if match.is_active else "dim"
        table.add_row(
            match.match_id or "-",
            match.other_party(actor_id),
            f"{match.target_type}/{match.context_target_id}",
            str(match.score),
            match.matched_at.strftime("%Y-%m-%d %H:%M"),
            f"[{status_style}]{match.status}[/{status_style}]",
        )

    console.print(table)
    counts = get_match_repository().count_by_status(actor_id)
    console.print(f"[dim]{counts['active']} active, {counts['closed']} closed.[/dim]")


@app.command()
def withdraw(
    actor_id: str = typer.Argument(..., help="Participant withdrawing"),
    match_id: str = typer.Argument(..., help="Match to close"),
):
    """Close a match on behalf of one of its participants."""
    from pharmatch.core.matching import MatchingError, get_matching_engine

    try:
        match = get_matching_engine().withdraw_match(actor_id, match_id)
    except MatchingError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Match {match.match_id} is {match.status}.[/green]")


@app.command()
def block(
    blocker_id: str = typer.Argument(..., help="Actor blocking"),
    blocked_id: str = typer.Argument(..., help="Actor being blocked"),
):
    """Block an actor and close every match between the two."""
    from pharmatch.core.matching import MatchingError, get_matching_engine
    from pharmatch.data.repositories import get_block_repository

    try:
        created = get_block_repository().block(blocker_id, blocked_id)
        closed = get_matching_engine().on_block(blocker_id, blocked_id)
    except (ValueError, MatchingError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if created:
        console.print(f"[green]{blocker_id} blocked {blocked_id}.[/green]")
    else:
        console.print(f"[yellow]{blocker_id} already blocks {blocked_id}.[/yellow]")
    console.print(f"[dim]Closed {closed} matches.[/dim]")


@app.command()
def unblock(
    blocker_id: str = typer.Argument(..., help="Actor who placed the block"),
    blocked_id: str = typer.Argument(..., help="Actor to unblock"),
):
    """Lift a block. Matches closed by the block stay closed."""
    from pharmatch.data.repositories import get_block_repository

    if get_block_repository().unblock(blocker_id, blocked_id):
        console.print(f"[green]{blocker_id} no longer blocks {blocked_id}.[/green]")
    else:
        console.print(f"[yellow]{blocker_id} does not block {blocked_id}.[/yellow]")


@app.command()
def target_status(
    target_id: str = typer.Argument(..., help="Offer or mission ID"),
    status: str = typer.Argument(..., help="New status (active/open/withdrawn/filled/closed)"),
    kind: str = typer.Option("job_offer", "--kind", "-k", help="Target kind"),
):
    """Change the status of an offer or mission, e.g. withdraw it."""
    from pharmatch.data.repositories import get_target_repository
    from pharmatch.utils.constants import TargetStatus, TargetType

    try:
        target_kind = TargetType(kind)
        new_status = TargetStatus(status)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not target_kind.is_listing:
        console.print(f"[red]Error: {kind} targets are profiles, not listings[/red]")
        raise typer.Exit(1)

    target = get_target_repository().set_status(target_kind, target_id, new_status)
    if target is None:
        console.print(f"[red]Error: {kind} {target_id} not found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{kind} {target_id} is now {target.status}.[/green]")


@app.command()
def close_expired():
    """Mark offers and missions past their expiry date as expired."""
    from pharmatch.data.repositories import get_target_repository

    try:
        count = get_target_repository().close_expired()
    except Exception as e:
        console.print(f"[red]Error closing expired targets: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Closed {count} expired targets.[/green]")


@app.command()
def health_check():
    """Check system health and component status."""
    from pharmatch.data.database import get_database_manager
    from pharmatch.utils.config import get_settings

    console.print("[bold cyan]System Health Check[/bold cyan]")
    console.print(f"[dim]{'─' * 50}[/dim]")

    settings = get_settings()
    all_healthy = True

    # Check MongoDB
    console.print("\n[bold]Database:[/bold]")
    db_manager = get_database_manager()
    if db_manager.check_connection():
        console.print("  [green]✓[/green] MongoDB connected")
        console.print(f"    Host: {settings.database.host}:{settings.database.port}")
        console.print(f"    Database: {settings.database.name}")

        from pharmatch.data import repositories

        for label, getter in (
            ("Actors", repositories.get_actor_repository),
            ("Targets", repositories.get_target_repository),
            ("Swipes", repositories.get_swipe_repository),
            ("Matches", repositories.get_match_repository),
        ):
            console.print(f"    {label}: {getter().count()}")
    else:
        console.print("  [red]✗[/red] MongoDB not connected")
        all_healthy = False

    # Check matching engine wiring
    console.print("\n[bold]Matching Engine:[/bold]")
    try:
        from pharmatch.core.matching import get_matching_engine

        engine = get_matching_engine()
        console.print("  [green]✓[/green] Engine ready")
        console.print(f"    Radius: {engine.score_engine.max_radius_km:g} km")
        console.print(f"    Superlike fallback: {engine.settings.superlike_fallback.value}")
    except Exception as e:
        console.print(f"  [red]✗[/red] Engine unavailable: {e}")
        all_healthy = False

    # Summary
    console.print(f"\n[dim]{'─' * 50}[/dim]")
    if all_healthy:
        console.print("[green]All critical systems operational.[/green]")
    else:
        console.print("[red]Some systems require attention.[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
