"""Shared test fixtures."""

import copy

import pytest

from note_hashtags.models import Note, NoteSummary, NoteType, NoteUser

NOTE_DETAIL = {
    "data": {
        "id": 1001,
        "key": "n1a2b3c4d5e6",
        "type": "TextNote",
        "name": "Hello note",
        "body": "<p>hello</p>",
        "description": None,
        "pictures": [],
        "created_at": "2023-06-01T12:00:00+00:00",
        "publish_at": "2023-06-01T21:30:00.000+09:00",
        "price": 0,
        "like_count": 12,
        "note_share_total_count": 3,
        "is_r18_confirmation_needed": False,
        "hashtag_notes": [
            {"hashtag": {"name": "#example"}},
            {"hashtag": {"name": "#python"}},
        ],
        "user": {
            "id": 42,
            "nickname": "Test User",
            "urlname": "testuser",
            "note_count": 87,
            "created_at": "2020-01-15T00:00:00+09:00",
        },
    }
}


def listing(keys: list[str], *, is_last_page=True, next_page=None, count=None) -> dict:
    """Build a hashtag listing response for the given note keys."""
    return {
        "data": {
            "notes": [{"key": key, "can_read_note_all": True} for key in keys],
            "count": count if count is not None else len(keys),
            "is_last_page": is_last_page,
            "next_page": next_page,
        }
    }


def detail(key: str, **fields) -> dict:
    """Build a note detail response, overriding top-level fields."""
    response = copy.deepcopy(NOTE_DETAIL)
    response["data"]["key"] = key
    response["data"].update(fields)
    return response


@pytest.fixture
def note_detail() -> dict:
    return copy.deepcopy(NOTE_DETAIL)


@pytest.fixture
def summary() -> NoteSummary:
    return NoteSummary(key="n1a2b3c4d5e6", can_read_all=True)


@pytest.fixture
def make_note():
    """Factory for Note objects with sensible defaults."""

    def _make(**fields) -> Note:
        type_name = fields.pop("type_name", "TextNote")
        defaults = dict(
            key="n1a2b3c4d5e6",
            type_name=type_name,
            note_type=NoteType.parse(type_name),
            name="Hello note",
            user=NoteUser(
                nickname="Test User",
                urlname="testuser",
                note_count=87,
                created_at="2020-01-15T00:00:00+09:00",
            ),
            body="<p>hello</p>",
            created_at="2023-06-01T12:00:00+00:00",
            publish_at="2023-06-01T12:30:00+00:00",
            price=0,
            like_count=12,
            share_count=3,
            hashtags=["#example", "#python"],
        )
        defaults.update(fields)
        return Note(**defaults)

    return _make


@pytest.fixture
def make_listing():
    return listing


@pytest.fixture
def make_detail():
    return detail
