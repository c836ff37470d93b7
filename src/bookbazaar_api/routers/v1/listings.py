"""Listing endpoints: browse/search, wizard validation, create, delete."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile

from bookbazaar_shared.constants import (
    ALL_CATEGORIES,
    CATEGORIES,
    CONDITIONS,
    DEFAULT_CATEGORY,
    DEFAULT_CONDITION,
)
from bookbazaar_shared.errors import ListingValidationError, NotFoundError
from bookbazaar_shared.models import ListingDraft

from bookbazaar_api.dependencies import AuthContext, require_auth
from bookbazaar_api.responses import wrap_response
from bookbazaar_api.services import listing_service
from bookbazaar_api.services.listing_service import ListingImage

router = APIRouter(prefix="/listings", tags=["listings"])


@router.get("")
def list_listings(
    q: str | None = Query(None, description="Search by title or author"),
    category: str = Query(ALL_CATEGORIES, description="Category, or 'All'"),
):
    data = listing_service.search_listings(q=q, category=category)
    return wrap_response(
        [listing.model_dump(mode="json") for listing in data],
        total_count=len(data),
    )


@router.get("/categories")
async def list_categories():
    return wrap_response({"categories": [ALL_CATEGORIES, *CATEGORIES], "conditions": list(CONDITIONS)})


@router.post("/drafts/validate")
async def validate_draft(payload: dict[str, Any] = Body(...)):
    """Check the current wizard step and report the step to show next."""
    draft = ListingDraft.from_form(payload)
    current_step = draft.step
    try:
        next_step = draft.advance()
        errors: dict[str, str] = {}
    except ListingValidationError as exc:
        next_step = draft.step
        errors = exc.field_errors
    return wrap_response(
        {
            "step": current_step,
            "errors": errors,
            "next_step": next_step,
            "next_step_title": draft.step_title,
        }
    )


@router.get("/{listing_id}")
def get_listing(listing_id: str):
    listing = listing_service.get_listing(listing_id)
    if listing is None:
        raise NotFoundError("Listing not found")
    return wrap_response(listing.model_dump(mode="json"))


@router.post("", status_code=201)
def create_listing(
    ctx: AuthContext = Depends(require_auth),
    title: str = Form(""),
    author: str = Form(""),
    category: str = Form(DEFAULT_CATEGORY),
    description: str = Form(""),
    is_swap: bool = Form(False),
    price: str | None = Form(None),
    condition: str = Form(DEFAULT_CONDITION),
    image: UploadFile | None = File(None),
):
    draft = ListingDraft.from_form(
        {
            "title": title,
            "author": author,
            "category": category,
            "description": description,
            "is_swap": is_swap,
            "price": price,
            "condition": condition,
        }
    )
    listing_image = None
    if image is not None and image.filename:
        listing_image = ListingImage(
            filename=image.filename,
            content=image.file.read(),
            content_type=image.content_type,
        )
    listing = listing_service.create_listing(ctx, draft, listing_image)
    return wrap_response(listing.model_dump(mode="json"))


@router.delete("/{listing_id}")
def delete_listing(listing_id: str, ctx: AuthContext = Depends(require_auth)):
    if not listing_service.delete_listing(ctx, listing_id):
        raise NotFoundError("Listing not found")
    return wrap_response({"id": listing_id, "deleted": True})
