"""Parse note.com API responses into model objects.

Listing responses look like:
    {"data": {"notes": [...], "count": 42, "is_last_page": false, "next_page": 2}}

Detail responses look like:
    {"data": {"key": "n1234", "type": "TextNote", "body": "<p>...</p>", "user": {...}}}

Required fields are read with item access so a malformed record raises
KeyError/TypeError instead of producing a half-empty row.
"""

import logging

from .models import Note, NotesPage, NoteSummary, NoteType, NoteUser

logger = logging.getLogger(__name__)


def parse_notes_page(response: dict) -> NotesPage:
    """Parse a hashtag listing response into a NotesPage."""
    data = response["data"]
    notes = [
        NoteSummary(
            key=note["key"],
            can_read_all=bool(note.get("can_read_note_all", False)),
        )
        for note in data.get("notes") or []
    ]
    return NotesPage(
        notes=notes,
        count=data.get("count") or 0,
        is_last_page=bool(data.get("is_last_page", True)),
        next_page=data.get("next_page"),
    )


def parse_note(response: dict) -> Note:
    """Parse a note detail response into a Note."""
    data = response["data"]
    type_name = data["type"]
    note_type = NoteType.parse(type_name)
    if note_type is None:
        logger.debug("note %s: unknown type %r", data.get("key"), type_name)

    return Note(
        key=data["key"],
        type_name=type_name,
        note_type=note_type,
        name=data.get("name") or "",
        user=_parse_user(data["user"]),
        body=data.get("body"),
        description=data.get("description"),
        picture_captions=[
            picture.get("caption") or ""
            for picture in data.get("pictures") or []
        ],
        created_at=data.get("created_at"),
        publish_at=data.get("publish_at"),
        price=data.get("price"),
        like_count=data.get("like_count"),
        share_count=data.get("note_share_total_count"),
        hashtags=[
            hashtag_note["hashtag"]["name"]
            for hashtag_note in data.get("hashtag_notes") or []
        ],
        is_restricted=bool(data.get("is_r18_confirmation_needed", False)),
    )


def _parse_user(user: dict) -> NoteUser:
    return NoteUser(
        nickname=user["nickname"],
        urlname=user["urlname"],
        note_count=user.get("note_count"),
        created_at=user.get("created_at"),
    )
