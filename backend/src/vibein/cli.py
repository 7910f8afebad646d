"""Command-line interface for vibeIn."""

from datetime import timedelta
from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from vibein.api.deps import get_services
from vibein.auth.tokens import Actor, ActorRole, create_access_token
from vibein.domain import utc_now
from vibein.errors import VibeInError
from vibein.logging_config import configure_logging, get_logger
from vibein.settings import settings
from vibein.storage.db import Database

# Configure logging
configure_logging()
logger = get_logger(__name__)

app = typer.Typer(
    name="vibein",
    help="vibeIn - offers and redemptions between businesses and influencers",
    no_args_is_help=True,
)

console = Console()


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    Database(settings.database_url).create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = 8000,
    reload: Annotated[bool, typer.Option("--reload", help="Restart on code changes")] = False,
) -> None:
    """Run the HTTP API."""
    console.print(f"[bold blue]Serving vibeIn API on http://{host}:{port}[/bold blue]")
    logger.info("api_serve", host=host, port=port, reload=reload, env=settings.env)
    uvicorn.run(
        "vibein.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("expire-offers")
def expire_offers() -> None:
    """Deactivate every active offer past its end date."""
    count = get_services().offers.deactivate_expired()
    console.print(f"[bold green]✓[/bold green] Deactivated {count} expired offer(s)")


@app.command("offers")
def list_offers(
    business_id: Annotated[str, typer.Argument(help="Business ID")],
) -> None:
    """List the offers of a business."""
    offers = list(get_services().offers.list_for_business(business_id))
    if not offers:
        console.print("[yellow]No offers found[/yellow]")
        return

    now = utc_now()
    table = Table(title=f"Offers of {business_id}")
    table.add_column("ID", style="cyan")
    table.add_column("Description", style="green")
    table.add_column("Platforms")
    table.add_column("Spots", justify="right")
    table.add_column("Valid Until")
    table.add_column("Status")

    for offer in offers:
        if not offer.is_active:
            status = "[dim]inactive[/dim]"
        elif offer.is_expired(now):
            status = "[red]expired[/red]"
        else:
            status = "[green]active[/green]"
        table.add_row(
            offer.id,
            offer.description[:40],
            ", ".join(p.value for p in offer.platforms),
            f"{offer.participant_count}/{offer.max_participants}",
            offer.valid_until.strftime("%Y-%m-%d %H:%M"),
            status,
        )

    console.print(table)


@app.command("stats")
def show_stats(
    business_id: Annotated[str, typer.Argument(help="Business ID")],
) -> None:
    """Show redemption statistics for a business."""
    stats = get_services().redemption.redemption_stats(business_id)
    console.print(f"[bold]Business:[/bold] {business_id}")
    console.print(f"[bold]Participations:[/bold] {stats.total}")
    console.print(f"[bold]Redeemed:[/bold] {stats.redeemed}")
    console.print(f"[bold]Pending:[/bold] {stats.pending}")


@app.command("token")
def show_token(
    offer_id: Annotated[str, typer.Argument(help="Offer ID")],
    influencer_id: Annotated[str, typer.Argument(help="Influencer ID")],
) -> None:
    """Print the QR payload of a participation."""
    try:
        payload = get_services().redemption.issue_token_for(offer_id, influencer_id)
    except VibeInError as e:
        console.print(f"[bold red]✗[/bold red] {e.message}")
        raise typer.Exit(1)
    typer.echo(payload)


@app.command("issue-jwt")
def issue_jwt(
    subject: Annotated[str, typer.Option("--sub", "-s", help="Business or influencer ID")],
    role: Annotated[ActorRole, typer.Option("--role", "-r", help="Account role")] = ActorRole.INFLUENCER,
    name: Annotated[str, typer.Option("--name", "-n", help="Display name")] = "",
    email: Annotated[str, typer.Option("--email", "-e", help="Email address")] = "",
    hours: Annotated[int, typer.Option("--hours", help="Token lifetime in hours")] = 24,
) -> None:
    """Issue a bearer token for local testing."""
    token = create_access_token(
        Actor(id=subject, role=role, name=name, email=email),
        expires_delta=timedelta(hours=hours),
    )
    logger.info("jwt_issued", sub=subject, role=role.value)
    typer.echo(token)


if __name__ == "__main__":
    app()
