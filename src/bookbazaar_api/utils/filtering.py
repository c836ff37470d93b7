"""Listing search filters applied to an already-fetched result set."""

from __future__ import annotations

from collections.abc import Iterable

from bookbazaar_shared.constants import ALL_CATEGORIES
from bookbazaar_shared.models import Listing


def matches_query(listing: Listing, query: str | None) -> bool:
    """Case-insensitive substring match on title or author."""
    if not query:
        return True
    needle = query.lower()
    return needle in listing.title.lower() or needle in listing.author.lower()


def matches_category(listing: Listing, category: str | None) -> bool:
    if not category or category.lower() == ALL_CATEGORIES.lower():
        return True
    return listing.category == category


def filter_listings(
    listings: Iterable[Listing],
    query: str | None = None,
    category: str | None = ALL_CATEGORIES,
) -> list[Listing]:
    """
    Keep listings matching both the free-text query and the category.

    Pure and order-preserving: an empty query with the "All" category
    returns every listing in input order, and re-filtering a result with the
    same arguments returns it unchanged.
    """
    return [
        listing
        for listing in listings
        if matches_query(listing, query) and matches_category(listing, category)
    ]
