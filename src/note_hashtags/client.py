"""note.com public API client.

Only two unauthenticated endpoints are used:
    v3/hashtags/{hashtag}/notes  - paginated hashtag listing
    v3/notes/{key}               - full detail of a single note

Every decoded response can be dumped to a logs directory for inspection.
The base URL can be overridden with the NOTE_API_BASE_URL environment
variable.
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from urllib.parse import quote, unquote, urlencode

import httpx

from .models import Note, NotesPage
from .parser import parse_note, parse_notes_page

logger = logging.getLogger(__name__)

API_BASE_URL = os.environ.get("NOTE_API_BASE_URL", "https://note.com/api/")

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


class NoteAPIError(RuntimeError):
    """Raised when a request fails or the response is not valid JSON."""


class OrderMode(str, Enum):
    POPULAR = "popular"
    RECENT = "new"


def dump_path_for(logs_dir: Path, path: str, params: dict | None = None) -> Path:
    """Return where the raw response for `path` + `params` is stored.

    "v3/notes/n1" -> logs/v3/notes/n1.json
    "v3/hashtags/a/notes", {"page": 1} -> logs/v3/hashtags/a/notes/page=1.json

    Percent-encoded segments are stored decoded, so a tag like 読書 gets a
    readable directory name.
    """
    segments = [_dump_segment(s) for s in path.strip("/").split("/")]
    if params:
        return logs_dir.joinpath(*segments) / f"{urlencode(params)}.json"
    return logs_dir.joinpath(*segments[:-1], f"{segments[-1]}.json")


def _dump_segment(segment: str) -> str:
    name = unquote(segment).replace("/", "_").replace("\\", "_")
    if name in ("", ".", ".."):
        return "_"
    return name


class NoteClient:
    """Client for note.com's JSON API."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        logs_dir: Path | None = None,
        timeout: float = 30.0,
    ):
        self._logs_dir = logs_dir
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
            follow_redirects=True,
        )

    def fetch(self, path: str, params: dict | None = None):
        """GET `path` and return the decoded JSON body."""
        logger.debug("GET %s %s", path, params or "")
        try:
            response = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise NoteAPIError(f"Request to {path} failed: {e}") from e

        if response.status_code == 404:
            raise NoteAPIError(f"Not found (404): {path}")

        if response.status_code == 429:
            raise NoteAPIError(
                "Rate limited by note.com (429). Wait a while and run again."
            )

        if response.is_error:
            raise NoteAPIError(
                f"Request to {path} failed with status {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NoteAPIError(f"Response from {path} is not valid JSON: {e}") from e

        if self._logs_dir is not None:
            self._dump(path, params, data)

        return data

    def _dump(self, path: str, params: dict | None, data) -> None:
        target = dump_path_for(self._logs_dir, path, params)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(
                json.dumps(data, indent="\t", ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning("Could not write raw response to %s: %s", target, e)

    def fetch_hashtag_page(
        self, hashtag: str, order: OrderMode = OrderMode.POPULAR, page: int = 1
    ) -> NotesPage:
        """Fetch a single page of notes tagged with `hashtag`."""
        params = {
            "order": OrderMode(order).value,
            "page": page,
            "paid_only": "false",
        }
        data = self.fetch(f"v3/hashtags/{quote(hashtag, safe='')}/notes", params)
        return parse_notes_page(data)

    def fetch_note(self, key: str) -> Note:
        """Fetch the full detail of a single note."""
        data = self.fetch(f"v3/notes/{quote(key, safe='')}")
        return parse_note(data)

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
