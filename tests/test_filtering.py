"""Tests for client-side listing search and category filtering."""

from __future__ import annotations

from uuid import uuid4

import pytest

from bookbazaar_shared.models import Listing

from bookbazaar_api.utils.filtering import filter_listings, matches_category, matches_query


def _listing(title, author, category):
    return Listing(user_id=uuid4(), title=title, author=author, category=category, price=100)


@pytest.fixture()
def catalog():
    return [
        _listing("Data Structures in C", "Tanenbaum", "Engineering"),
        _listing("Macbeth", "Shakespeare", "Literature"),
        _listing("Quantitative Aptitude", "R.S. Aggarwal", "Competitive Exams"),
        _listing("Engineering Drawing", "N.D. Bhatt", "Engineering"),
        _listing("Concepts of Physics", "H.C. Verma", "Science"),
    ]


def test_empty_query_and_all_returns_everything_in_order(catalog):
    assert filter_listings(catalog, "", "All") == catalog
    assert filter_listings(catalog, None, None) == catalog


def test_query_matches_title_case_insensitively(catalog):
    titles = [item.title for item in filter_listings(catalog, "ENGINEERING")]
    assert titles == ["Engineering Drawing"]


def test_query_matches_author(catalog):
    assert [item.author for item in filter_listings(catalog, "verma")] == ["H.C. Verma"]


def test_category_filter_is_exact(catalog):
    result = filter_listings(catalog, category="Engineering")
    assert [item.title for item in result] == ["Data Structures in C", "Engineering Drawing"]
    assert filter_listings(catalog, category="engineering") == []


def test_all_sentinel_is_case_insensitive(catalog):
    assert filter_listings(catalog, category="all") == catalog


def test_query_and_category_combine(catalog):
    result = filter_listings(catalog, "in", "Engineering")
    assert [item.title for item in result] == ["Data Structures in C", "Engineering Drawing"]
    assert filter_listings(catalog, "macbeth", "Engineering") == []


@pytest.mark.parametrize(
    "query,category",
    [("", "All"), ("e", "All"), ("", "Science"), ("ing", "Engineering"), ("zzz", "Arts")],
)
def test_filtering_is_idempotent(catalog, query, category):
    once = filter_listings(catalog, query, category)
    assert filter_listings(once, query, category) == once


def test_result_is_order_preserving_subsequence(catalog):
    result = filter_listings(catalog, "a", "All")
    positions = [catalog.index(item) for item in result]
    assert positions == sorted(positions)


def test_predicates():
    listing = _listing("Macbeth", "Shakespeare", "Literature")
    assert matches_query(listing, "beth")
    assert not matches_query(listing, "hamlet")
    assert matches_category(listing, "Literature")
    assert not matches_category(listing, "Arts")
