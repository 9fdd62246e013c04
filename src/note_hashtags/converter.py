"""Convert Note objects to flat CSV rows and write them out."""

import csv
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO
from zoneinfo import ZoneInfo

from .models import Note, NoteSummary
from .text import CELL_CHAR_LIMIT, chunk_body, extract_body

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_SITE_URL = "https://note.com"

# Every row carries the same number of body columns so the header written
# from the first row fits all later rows.
BODY_COLUMNS = 5

CSV_COLUMNS = [
    "title",
    "createdAt",
    "publishAt",
    "price",
    "canReadAll",
    "likeCount",
    "shareCount",
    "url",
    "type",
    "user",
    "userUrl",
    "userNoteCount",
    "userCreatedAt",
    "hashtags",
    "remarks",
    *(f"body{i}" for i in range(1, BODY_COLUMNS + 1)),
]


def format_datetime(value: str | None, tz: ZoneInfo | None = None) -> str:
    """Convert an ISO 8601 timestamp to `tz` and drop the offset.

    "2023-06-01T12:00:00+00:00" -> "2023-06-01T21:00:00" for Asia/Tokyo.
    Naive timestamps are read as UTC. Missing values become "".
    """
    if not value:
        return ""
    tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(tz).replace(tzinfo=None).isoformat(timespec="seconds")


def format_hashtags(names: list[str]) -> str:
    """Strip the leading # from each tag name and join them."""
    return ", ".join(name.removeprefix("#") for name in names)


class RowBuilder:
    """Build output rows for notes, collecting remarks for anomalies."""

    def __init__(
        self,
        tz: ZoneInfo | None = None,
        site_url: str = DEFAULT_SITE_URL,
        body_columns: int = BODY_COLUMNS,
        chunk_size: int = CELL_CHAR_LIMIT,
    ):
        self.tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
        self.site_url = site_url.rstrip("/")
        self.body_columns = body_columns
        self.chunk_size = chunk_size

    def build(self, note: Note, summary: NoteSummary) -> dict:
        remarks: list[str] = []

        def remark(message: str) -> None:
            remarks.append(message)
            logger.warning("%s (%s)", message, note.key)

        if note.note_type is None:
            remark(f"Unsupported note type: {note.type_name}")

        if note.is_restricted:
            remark("R-18 note: body unavailable")

        body = extract_body(note)
        if not body:
            remark(f"Empty body: {note.type_name}")

        chunks, needed = chunk_body(body, self.body_columns, self.chunk_size)
        if needed > self.body_columns:
            remark(
                f"Body too long: {needed} chunks, "
                f"truncated to {self.body_columns}"
            )

        row = {
            "title": note.name,
            "createdAt": format_datetime(note.created_at, self.tz),
            "publishAt": format_datetime(note.publish_at, self.tz),
            "price": note.price,
            "canReadAll": summary.can_read_all,
            "likeCount": note.like_count,
            "shareCount": note.share_count,
            "url": f"{self.site_url}/notes/{note.key}",
            "type": note.type_name,
            "user": note.user.nickname,
            "userUrl": f"{self.site_url}/{note.user.urlname}",
            "userNoteCount": note.user.note_count,
            "userCreatedAt": format_datetime(note.user.created_at, self.tz),
            "hashtags": format_hashtags(note.hashtags),
            "remarks": ", ".join(remarks),
        }
        for index, chunk in enumerate(chunks, start=1):
            row[f"body{index}"] = chunk
        return row


def _cell(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


class CsvRowSink:
    """Append rows to a CSV file, one flush per row.

    The header is taken from the first row's keys; every later row must
    have exactly the same keys. The file is closed on every exit path, so
    rows written before a failure stay on disk.
    """

    def __init__(self, path: Path | None = None, stream: TextIO | None = None):
        if (path is None) == (stream is None):
            raise ValueError("Pass exactly one of path or stream")
        self.path = path
        self._stream = stream
        self._owns_stream = stream is None
        self._writer: csv.DictWriter | None = None
        self.count = 0

    def open(self) -> "CsvRowSink":
        if self._stream is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._stream = open(self.path, "w", encoding="utf-8", newline="")
        return self

    def write(self, row: dict) -> None:
        if self._stream is None:
            raise RuntimeError("CsvRowSink is not open")
        if self._writer is None:
            self._writer = csv.DictWriter(self._stream, fieldnames=list(row))
            self._writer.writeheader()
        elif list(row) != self._writer.fieldnames:
            raise ValueError(
                f"Row columns {list(row)} do not match header "
                f"{self._writer.fieldnames}"
            )
        self._writer.writerow({key: _cell(value) for key, value in row.items()})
        self._stream.flush()
        self.count += 1

    def close(self) -> None:
        if self._stream is not None and self._owns_stream:
            self._stream.close()
            self._stream = None

    def __enter__(self) -> "CsvRowSink":
        return self.open()

    def __exit__(self, *args):
        self.close()
