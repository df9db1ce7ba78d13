"""Flask CLI commands for operating on refresh tokens."""

from __future__ import annotations

from datetime import UTC, datetime

import click
from flask.cli import with_appcontext

from rentapp.core.extensions import get_refresh_token_store
from rentapp.services._shared.errors import StoreUnavailableError


def mask_value(value: str, visible: int = 4) -> str:
    """Keep only the first ``visible`` symbols of a bearer value."""
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "*" * (len(value) - visible)


@click.group("tokens")
def tokens_cli() -> None:
    """Inspect and revoke refresh tokens."""


@tokens_cli.command("inspect")
@click.argument("value")
@with_appcontext
def inspect_command(value: str) -> None:
    """Print the stored state of the refresh token VALUE."""
    try:
        record = get_refresh_token_store().find_by_value(value)
    except StoreUnavailableError as exc:
        raise click.ClickException("Refresh token store unavailable") from exc
    if record is None:
        raise click.ClickException(f"No refresh token matches {mask_value(value)}")

    state = record.state(datetime.now(UTC))
    click.echo(f"value:      {mask_value(record.token_value)}")
    click.echo(f"id:         {record.id}")
    click.echo(f"user_id:    {record.user_id}")
    click.echo(f"jwt_id:     {record.jwt_id}")
    click.echo(f"issued_at:  {record.issued_at.isoformat()}")
    click.echo(f"expires_at: {record.expires_at.isoformat()}")
    click.echo(f"state:      {state.name.lower()}")


@tokens_cli.command("revoke")
@click.argument("value")
@with_appcontext
def revoke_command(value: str) -> None:
    """Revoke the refresh token VALUE so it can no longer be rotated."""
    from rentapp.api.deps import build_auth_service

    try:
        found = build_auth_service().lifecycle.revoke(value)
    except StoreUnavailableError as exc:
        raise click.ClickException("Refresh token store unavailable") from exc
    if not found:
        raise click.ClickException(f"No refresh token matches {mask_value(value)}")
    click.echo(f"Revoked {mask_value(value)}")
