"""Data models for note.com hashtag listings and note details."""

from dataclasses import dataclass, field
from enum import Enum


class NoteType(str, Enum):
    TEXT = "TextNote"
    IMAGE = "ImageNote"
    TALK = "TalkNote"  # dialogue
    SOUND = "SoundNote"
    MOVIE = "MovieNote"

    @classmethod
    def parse(cls, value: str) -> "NoteType | None":
        """Return the matching type, or None for kinds we don't know."""
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass
class NoteSummary:
    key: str
    can_read_all: bool = False  # only available on the listing


@dataclass
class NotesPage:
    """A single page of a hashtag listing."""

    notes: list[NoteSummary] = field(default_factory=list)
    count: int = 0  # total notes for the hashtag
    is_last_page: bool = True
    next_page: int | None = None


@dataclass
class NoteUser:
    nickname: str
    urlname: str  # url-safe handle
    note_count: int | None = None
    created_at: str | None = None


@dataclass
class Note:
    key: str
    type_name: str  # raw type tag from the API
    note_type: NoteType | None
    name: str
    user: NoteUser
    body: str | None = None  # HTML, None for paid or R-18 notes
    description: str | None = None
    picture_captions: list[str] = field(default_factory=list)
    created_at: str | None = None
    publish_at: str | None = None
    price: int | None = None
    like_count: int | None = None
    share_count: int | None = None
    hashtags: list[str] = field(default_factory=list)  # names with leading #
    is_restricted: bool = False
