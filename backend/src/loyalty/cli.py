"""Command-line interface for the loyalty service."""

from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from loyalty.accounts.models import LoyaltyTier
from loyalty.accounts.service import AccountService
from loyalty.auth.passwords import PasswordHasher
from loyalty.auth.tokens import TokenService
from loyalty.errors import NotFoundError
from loyalty.logging_config import configure_logging, get_logger
from loyalty.referral.service import ReferralService
from loyalty.settings import settings
from loyalty.storage.db import Database

# Configure logging
configure_logging(settings)
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="loyalty",
    help="Loyalty - accounts, ride points and referral bonuses",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


def _database() -> Database:
    return Database(settings.database_url)


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    _database().create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = settings.host,
    port: Annotated[int, typer.Option("--port", "-p", help="Listening port")] = settings.port,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the HTTP API."""
    logger.info("server_starting", host=host, port=port)
    uvicorn.run(
        "loyalty.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("account")
def show_account(
    email: Annotated[str, typer.Argument(help="Account email")],
) -> None:
    """Show an account's points, tier and referral details."""
    accounts = AccountService(
        db=_database(),
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=TokenService(settings.jwt_secret_key, algorithm=settings.jwt_algorithm),
        referrals=ReferralService(bonus_points=settings.referral_bonus_points),
    )

    try:
        summary = accounts.summary_for_email(email)
    except NotFoundError:
        console.print(f"[bold red]✗[/bold red] No account for {email}")
        raise typer.Exit(code=1)

    table = Table(title=summary.email)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Points", str(summary.points))
    table.add_row("Tier", summary.tier.value)
    table.add_row("Referral code", summary.referral_code)
    table.add_row("Referred by", summary.referred_by or "-")
    console.print(table)


@app.command("tier")
def show_tier(
    points: Annotated[int, typer.Argument(help="Points total")],
) -> None:
    """Show the tier a points total maps to."""
    console.print(LoyaltyTier.from_points(points).value)


if __name__ == "__main__":
    app()
