"""Tests for the CLI's stored session file."""

from __future__ import annotations

import json
import stat

import pytest

from bookbazaar_api.utils.session_store import (
    clear_invalid_stored_session,
    clear_session,
    load_session,
    save_session,
)

GOOD_REFRESH = "r" * 32


@pytest.fixture()
def session_file(tmp_path):
    return tmp_path / "bookbazaar" / "session.json"


def test_missing_file_is_left_alone(session_file):
    assert clear_invalid_stored_session(session_file) is False


def test_short_refresh_token_is_cleared(session_file):
    session_file.parent.mkdir(parents=True)
    session_file.write_text(json.dumps({"access_token": "a", "refresh_token": "abc"}))

    assert clear_invalid_stored_session(session_file) is True
    assert not session_file.exists()


def test_missing_refresh_token_is_cleared(session_file):
    session_file.parent.mkdir(parents=True)
    session_file.write_text(json.dumps({"access_token": "a"}))

    assert clear_invalid_stored_session(session_file) is True


def test_corrupt_json_is_cleared(session_file):
    session_file.parent.mkdir(parents=True)
    session_file.write_text("{not json")

    assert clear_invalid_stored_session(session_file) is True
    assert load_session(session_file) is None


def test_valid_session_is_kept(session_file):
    save_session({"access_token": "a", "refresh_token": GOOD_REFRESH}, session_file)

    assert clear_invalid_stored_session(session_file) is False
    assert load_session(session_file)["refresh_token"] == GOOD_REFRESH


def test_list_payload_uses_first_entry(session_file):
    session_file.parent.mkdir(parents=True)
    session_file.write_text(json.dumps([{"refresh_token": GOOD_REFRESH, "user_id": "u1"}]))

    assert clear_invalid_stored_session(session_file) is False
    assert load_session(session_file)["user_id"] == "u1"


def test_saved_file_is_private(session_file):
    path = save_session({"refresh_token": GOOD_REFRESH}, session_file)

    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_clear_session(session_file):
    save_session({"refresh_token": GOOD_REFRESH}, session_file)
    clear_session(session_file)
    clear_session(session_file)

    assert not session_file.exists()
