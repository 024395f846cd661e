"""Flask CLI commands for operating on refresh sessions."""

from __future__ import annotations

import json
import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from authcore.api.deps import SESSION_SERVICE_EXTENSION
from authcore.schemas import SessionSchema
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.errors import StoreUnavailableError
from authcore.services.sessions import SessionService

LOGGER = logging.getLogger(__name__)

session_schema = SessionSchema()


def _service() -> SessionService:
    return current_app.extensions[SESSION_SERVICE_EXTENSION](ServiceContext())


@click.group("sessions")
def sessions_cli() -> None:
    """Inspect and revoke refresh sessions."""


@sessions_cli.command("purge-expired")
@with_appcontext
def purge_expired() -> None:
    """Physically delete sessions whose expiry has passed."""
    try:
        purged = _service().purge_expired()
    except StoreUnavailableError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Purged {purged} expired session(s).")


@sessions_cli.command("revoke-user")
@click.argument("user_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@with_appcontext
def revoke_user(user_id: str, yes: bool) -> None:
    """Revoke every session of USER_ID (forces re-login on all devices)."""
    if not yes:
        click.confirm(f"Revoke all sessions of user {user_id}?", abort=True)
    try:
        revoked = _service().revoke_all(user_id)
    except StoreUnavailableError as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.info("cli.revoke_user", extra={"user_id": user_id, "revoked": revoked})
    click.echo(f"Revoked {revoked} session(s) for user {user_id}.")


@sessions_cli.command("list")
@click.argument("user_id")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table.")
@with_appcontext
def list_sessions(user_id: str, as_json: bool) -> None:
    """List active sessions of USER_ID, oldest first."""
    try:
        records = _service().list_sessions(user_id)
    except StoreUnavailableError as exc:
        raise click.ClickException(str(exc)) from exc

    rows = session_schema.dump(records, many=True)
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return
    if not rows:
        click.echo("  (no active sessions)")
        return
    for row in rows:
        click.echo(f"  {row['session']}  created={row['created_at']}  expires={row['expires_at']}")
