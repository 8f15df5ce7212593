"""
CLI for Accounts Service
========================

Service management: serving, schema creation, salt seeding and key generation.
"""

import asyncio
import base64
import binascii
import secrets
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from pal_logging import get_logger

from .database import close_database, create_session_factory, init_database
from .models import SALT_SETTING_KEY, GlobalSetting
from .settings import AccountsSettings

app = typer.Typer(help="Pal Accounts Service CLI")
console = Console()
logger = get_logger(__name__)

DEFAULT_DATABASE_URL = AccountsSettings.model_fields["database_url"].default


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind to"),
    port: int = typer.Option(8000, help="Port to bind to"),
    workers: int = typer.Option(1, help="Number of worker processes"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
    log_level: str = typer.Option("info", help="Log level"),
) -> None:
    """Start the Accounts API server."""
    console.print(f"Starting Accounts Service on {host}:{port}", style="bold green")
    uvicorn.run(
        "pal_accounts_service.app:create_app",
        factory=True,
        host=host,
        port=port,
        workers=workers,
        reload=reload,
        log_level=log_level,
        # Client addresses are resolved by the service itself.
        proxy_headers=False,
    )


async def _init_db(database_url: str) -> None:
    engine, _ = create_session_factory(database_url)
    try:
        await init_database(engine)
    finally:
        await close_database(engine)


async def _seed_salt(database_url: str, value: str) -> bool:
    engine, session_factory = create_session_factory(database_url)
    try:
        await init_database(engine)
        async with session_factory() as session:
            if await session.get(GlobalSetting, SALT_SETTING_KEY) is not None:
                return False
            session.add(GlobalSetting(key=SALT_SETTING_KEY, value=value))
            await session.commit()
            return True
    finally:
        await close_database(engine)


@app.command("init-db")
def init_db(
    database_url: str = typer.Option(DEFAULT_DATABASE_URL, envvar="PAL_DATABASE_URL", help="Database URL"),
) -> None:
    """Create database tables."""
    asyncio.run(_init_db(database_url))
    console.print("Database tables created", style="green")


@app.command("seed-salt")
def seed_salt(
    database_url: str = typer.Option(DEFAULT_DATABASE_URL, envvar="PAL_DATABASE_URL", help="Database URL"),
    value: Optional[str] = typer.Option(None, help="Base64 salt to store instead of a random one"),
    size: int = typer.Option(32, min=16, help="Random salt size in bytes"),
) -> None:
    """Create the fingerprint salt. An existing salt is never replaced."""
    if value is None:
        value = base64.b64encode(secrets.token_bytes(size)).decode("ascii")
    else:
        try:
            if not base64.b64decode(value, validate=True):
                raise ValueError("empty salt")
        except (binascii.Error, ValueError) as e:
            console.print(f"Invalid salt value: {e}", style="bold red")
            raise typer.Exit(code=1)

    if asyncio.run(_seed_salt(database_url, value)):
        logger.info("Seeded fingerprint salt")
        console.print("Salt stored", style="green")
    else:
        logger.warning("Refusing to replace existing fingerprint salt")
        console.print("Salt already exists, leaving it unchanged", style="yellow")
        raise typer.Exit(code=1)


@app.command("generate-key")
def generate_key(
    size: int = typer.Option(32, min=32, help="Key size in bytes"),
) -> None:
    """Print a new base64 signing key for PAL_JWT_KEY."""
    typer.echo(base64.b64encode(secrets.token_bytes(size)).decode("ascii"))


if __name__ == "__main__":
    app()
