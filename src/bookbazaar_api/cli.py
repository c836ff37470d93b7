"""
cli.py — Click CLI entrypoint.

Usage:
    bookbazaar signup
    bookbazaar login
    bookbazaar browse --q calculus --category Engineering
    bookbazaar sell --image cover.jpg
    bookbazaar notifications flush
    bookbazaar serve --port 8000
"""

from __future__ import annotations

import mimetypes
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path

import click

from bookbazaar_shared.config import settings
from bookbazaar_shared.constants import ALL_CATEGORIES, CATEGORIES, CONDITIONS
from bookbazaar_shared.errors import ListingValidationError, MarketplaceError
from bookbazaar_shared.models import ListingDraft

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.services import auth_service, listing_service, order_service
from bookbazaar_api.utils import session_store
from bookbazaar_api.utils.logging import configure_logging, get_logger

log = get_logger(__name__)


def _current_context() -> AuthContext:
    """Load the stored session, refreshing it when the access token has expired."""
    stored = session_store.load_session()
    if stored is None:
        raise click.ClickException("Not signed in. Run `bookbazaar login` first.")

    expires_at = stored.get("expires_at")
    if expires_at is not None and expires_at <= time.time():
        log.info("session_refresh", user_id=stored.get("user_id"))
        stored = auth_service.refresh(stored["refresh_token"]).to_dict()
        session_store.save_session(stored)

    return AuthContext(
        user_id=stored["user_id"],
        access_token=stored["access_token"],
        email=stored.get("email"),
        username=stored.get("username"),
    )


def _echo_field_errors(exc: ListingValidationError) -> None:
    for field, message in exc.field_errors.items():
        click.secho(f"  {field}: {message}", fg="red", err=True)


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
def main(log_level: str) -> None:
    """BookBazaar student textbook marketplace."""
    configure_logging(log_level=log_level, log_format="console")


@main.command()
@click.option("--email", prompt=True)
@click.option("--username", prompt=True)
@click.password_option()
def signup(email: str, username: str, password: str) -> None:
    """Create an account."""
    result = auth_service.sign_up(email, password, username)
    if result["confirmation_required"]:
        click.echo("Account created. Check your email to confirm it, then log in.")
    else:
        click.echo(f"Account created for {username}.")


@main.command()
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str) -> None:
    """Sign in and store the session locally."""
    session_store.clear_invalid_stored_session()
    try:
        session = auth_service.sign_in(email, password)
    except MarketplaceError as exc:
        raise click.ClickException(exc.message) from exc
    path = session_store.save_session(session.to_dict())
    click.echo(f"Signed in as {session.username or session.email}.")
    log.debug("session_stored", path=str(path))


@main.command()
def logout() -> None:
    """Sign out and forget the stored session."""
    stored = session_store.load_session()
    if stored is not None:
        ctx = AuthContext(user_id=stored["user_id"], access_token=stored["access_token"])
        auth_service.sign_out(ctx)
    session_store.clear_session()
    click.echo("Signed out.")


@main.command()
def whoami() -> None:
    """Show the signed-in user."""
    ctx = _current_context()
    profile = auth_service.get_profile(ctx)
    username = (profile.username if profile else None) or ctx.username or "-"
    click.echo(f"{username} <{ctx.email or '-'}>  ({ctx.user_id})")


@main.command()
@click.option("--q", "query", default=None, help="Match title or author")
@click.option(
    "--category",
    default=ALL_CATEGORIES,
    type=click.Choice([ALL_CATEGORIES, *CATEGORIES], case_sensitive=False),
    show_default=True,
)
def browse(query: str | None, category: str) -> None:
    """List books for sale, newest first."""
    listings = listing_service.search_listings(q=query, category=category)
    if not listings:
        click.echo("No books found.")
        return
    for listing in listings:
        click.echo(
            f"  {listing.price_label:>10s}  {listing.title[:40]:40s} "
            f"{listing.author[:24]:24s} {listing.condition:10s} "
            f"@{listing.username or 'unknown'}  {listing.id}"
        )


@main.command()
@click.option(
    "--image",
    "image_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Photo of the book",
)
def sell(image_path: Path | None) -> None:
    """List a book through the three-step wizard."""
    ctx = _current_context()
    draft = ListingDraft()

    while True:
        click.secho(f"Step {draft.step}: {draft.step_title}", bold=True)
        if draft.step == 1:
            draft.title = click.prompt("Title", default=draft.title or None)
            draft.author = click.prompt("Author", default=draft.author or None)
            draft.category = click.prompt(
                "Category", type=click.Choice(CATEGORIES), default=draft.category
            )
        elif draft.step == 2:
            draft.is_swap = click.confirm("Swap only?", default=draft.is_swap)
            if draft.is_swap:
                draft.price = None
            else:
                raw = click.prompt("Price", type=click.STRING).strip()
                try:
                    price = Decimal(raw)
                except InvalidOperation:
                    price = None
                draft.price = price if price is not None and price.is_finite() else None
            draft.condition = click.prompt(
                "Condition", type=click.Choice(CONDITIONS), default=draft.condition
            )
        else:
            draft.description = click.prompt("Description", default="", show_default=False)
            break
        try:
            draft.advance()
        except ListingValidationError as exc:
            _echo_field_errors(exc)

    image = None
    if image_path is not None:
        content_type = mimetypes.guess_type(image_path.name)[0] or "application/octet-stream"
        image = listing_service.ListingImage(
            filename=image_path.name,
            content=image_path.read_bytes(),
            content_type=content_type,
        )

    try:
        listing = listing_service.create_listing(ctx, draft, image)
    except ListingValidationError as exc:
        _echo_field_errors(exc)
        raise click.ClickException(exc.message) from exc
    except MarketplaceError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Listed '{listing.title}' at {listing.price_label} ({listing.id}).")


@main.group()
def notifications() -> None:
    """Notification maintenance."""


@notifications.command("flush")
def flush_notifications() -> None:
    """Re-send seller notifications that failed on order creation."""
    summary = order_service.flush_pending_notifications()
    click.echo(
        f"Checked {summary['checked']} orders: "
        f"{summary['delivered']} delivered, {summary['failed']} still pending."
    )


@main.command()
@click.option("--host", default=settings.api_host, show_default=True)
@click.option("--port", default=settings.api_port, type=int, show_default=True)
@click.option("--reload", is_flag=True, default=False)
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("bookbazaar_api.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
