"""Listing data service: browse, create (with photo upload), delete."""

from __future__ import annotations

import time
from dataclasses import dataclass

import httpx
import structlog
from storage3.exceptions import StorageException
from supabase import Client

from bookbazaar_shared.config import settings
from bookbazaar_shared.constants import ALL_CATEGORIES, LISTINGS_TABLE
from bookbazaar_shared.db import get_supabase_client, get_user_client
from bookbazaar_shared.errors import ImageTooLargeError
from bookbazaar_shared.models import Listing, ListingDraft

from bookbazaar_api.middleware.auth import AuthContext
from bookbazaar_api.utils.filtering import filter_listings

log = structlog.get_logger(__name__)

LISTING_WITH_LISTER = "*, profiles(username)"


@dataclass
class ListingImage:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot and ext else "jpg"


def fetch_listings() -> list[Listing]:
    """Every listing with its lister's username, newest first."""
    supabase = get_supabase_client()
    result = (
        supabase.table(LISTINGS_TABLE)
        .select(LISTING_WITH_LISTER)
        .order("created_at", desc=True)
        .execute()
    )
    return [Listing.from_db_row(row) for row in result.data or []]


def search_listings(
    *,
    q: str | None = None,
    category: str | None = ALL_CATEGORIES,
) -> list[Listing]:
    return filter_listings(fetch_listings(), q, category)


def get_listing(listing_id: str) -> Listing | None:
    supabase = get_supabase_client()
    result = (
        supabase.table(LISTINGS_TABLE)
        .select(LISTING_WITH_LISTER)
        .eq("id", listing_id)
        .limit(1)
        .execute()
    )
    return Listing.from_db_row(result.data[0]) if result.data else None


def fetch_user_listings(ctx: AuthContext) -> list[Listing]:
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(LISTINGS_TABLE)
        .select("*")
        .eq("user_id", ctx.user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return [Listing.from_db_row(row) for row in result.data or []]


def _upload_image(supabase: Client, ctx: AuthContext, image: ListingImage) -> tuple[str, str]:
    if len(image.content) > settings.max_image_bytes:
        raise ImageTooLargeError(
            f"Photo is larger than {settings.max_image_bytes // (1024 * 1024)} MB.",
            details={"size": len(image.content), "limit": settings.max_image_bytes},
        )
    path = f"{ctx.user_id}/{int(time.time() * 1000)}.{image.extension}"
    bucket = supabase.storage.from_(settings.listing_images_bucket)
    bucket.upload(
        path,
        image.content,
        {"content-type": image.content_type or "application/octet-stream"},
    )
    url = bucket.get_public_url(path)
    log.info("listing_image_uploaded", path=path, size=len(image.content))
    return path, url


def _remove_image(supabase: Client, path: str) -> None:
    try:
        supabase.storage.from_(settings.listing_images_bucket).remove([path])
        log.info("listing_image_removed", path=path)
    except (StorageException, httpx.HTTPError) as exc:
        log.error("image_cleanup_failed", path=path, error=str(exc))


def create_listing(
    ctx: AuthContext,
    draft: ListingDraft,
    image: ListingImage | None = None,
) -> Listing:
    """
    Upload the optional photo, then insert one books row referencing it.

    The draft is fully validated before anything is written. If the insert
    fails after a successful upload, the uploaded object is removed and the
    insert error re-raised.
    """
    row = draft.to_insert_dict(ctx.user_id)
    supabase = get_user_client(ctx.access_token)

    image_path: str | None = None
    if image is not None:
        image_path, row["image_url"] = _upload_image(supabase, ctx, image)

    try:
        result = supabase.table(LISTINGS_TABLE).insert(row).execute()
    except Exception:
        if image_path is not None:
            _remove_image(supabase, image_path)
        raise

    listing = Listing.from_db_row(result.data[0])
    log.info(
        "listing_created",
        listing_id=str(listing.id),
        user_id=ctx.user_id,
        is_swap=listing.is_swap,
        has_image=image_path is not None,
    )
    return listing


def delete_listing(ctx: AuthContext, listing_id: str) -> bool:
    """
    Delete one of the caller's listings. Orders that reference it are left
    alone and keep their book snapshot.

    Returns:
        False if no listing of the caller's matched.
    """
    supabase = get_user_client(ctx.access_token)
    result = (
        supabase.table(LISTINGS_TABLE)
        .delete()
        .eq("id", listing_id)
        .eq("user_id", ctx.user_id)
        .execute()
    )
    deleted = bool(result.data)
    log.info("listing_deleted", listing_id=listing_id, user_id=ctx.user_id, deleted=deleted)
    return deleted
