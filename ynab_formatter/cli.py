"""
Purpose:
- `ynab-formatter serve`: run the API under uvicorn.
- `ynab-formatter credentials`: generate AUTH_* / SESSION_SECRET lines for .env.local.
- `ynab-formatter hash-password`: bcrypt a password for AUTH_PASSWORD_HASH.
"""

import secrets

import click

from .core.settings import settings
from .services.auth import hash_password

MIN_USERNAME = 3
MIN_PASSWORD = 6
BCRYPT_MAX_BYTES = 72


def _check_username(value: str) -> str:
    if len(value.strip()) < MIN_USERNAME:
        raise click.BadParameter(f"Username must be at least {MIN_USERNAME} characters long")
    return value.strip()


def _check_password(value: str) -> str:
    if len(value) < MIN_PASSWORD:
        raise click.BadParameter(f"Password must be at least {MIN_PASSWORD} characters long")
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise click.BadParameter(f"Password must be at most {BCRYPT_MAX_BYTES} bytes (bcrypt limit)")
    return value


@click.group()
def cli():
    """YNAB statement formatter."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST setting)")
@click.option("--port", type=int, default=None, help="Port (default: PORT setting)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host, port, reload):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "ynab_formatter.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command()
def credentials():
    """Prompt for a login and print the .env.local lines for it."""
    click.echo("Credentials Generator for YNAB Formatter")
    click.echo("=" * 42)
    username = click.prompt("Enter your username", value_proc=_check_username)
    password = click.prompt(
        "Enter your password", hide_input=True, confirmation_prompt=True, value_proc=_check_password
    )

    click.echo("\nAdd these lines to your .env.local file:")
    click.echo("=" * 42)
    click.echo(f"AUTH_USERNAME={username}")
    click.echo(f"AUTH_PASSWORD_HASH={hash_password(password)}")
    click.echo(f"SESSION_SECRET={secrets.token_urlsafe(32)}")
    click.echo("=" * 42)
    click.echo("Keep these values secret and never commit them to git!")


@cli.command("hash-password")
@click.argument("password")
def hash_password_cmd(password):
    """Print a bcrypt hash for PASSWORD."""
    click.echo(hash_password(_check_password(password)))


def main():
    cli()


if __name__ == "__main__":
    main()
