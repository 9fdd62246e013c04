"""Walk every page of a hashtag listing and write one row per note.

Pagination is a two-state machine: FETCHING until the listing reports its
last page, then DONE. There is no page limit; the API's `is_last_page`
flag is the only way out.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum

from .client import NoteClient, OrderMode
from .converter import CsvRowSink, RowBuilder
from .models import NotesPage

logger = logging.getLogger(__name__)


class PageState(Enum):
    FETCHING = "fetching"
    DONE = "done"


@dataclass(frozen=True)
class Cursor:
    state: PageState = PageState.FETCHING
    page: int = 1
    seen: int = 0  # notes listed so far, for progress only


def advance(cursor: Cursor, page: NotesPage) -> Cursor:
    """Return the cursor after `page` has been processed."""
    seen = cursor.seen + len(page.notes)
    if page.is_last_page or page.next_page is None:
        return replace(cursor, state=PageState.DONE, seen=seen)
    return replace(cursor, page=page.next_page, seen=seen)


def iter_pages(
    client: NoteClient, hashtag: str, order: OrderMode = OrderMode.POPULAR
) -> Iterator[NotesPage]:
    """Yield listing pages in order until the last one."""
    cursor = Cursor()
    while cursor.state is PageState.FETCHING:
        page = client.fetch_hashtag_page(hashtag, order, cursor.page)
        next_cursor = advance(cursor, page)
        logger.info(
            "Page: %d (%d / %d notes)", cursor.page, next_cursor.seen, page.count
        )
        yield page
        cursor = next_cursor


def collect(
    client: NoteClient,
    hashtag: str,
    sink: CsvRowSink,
    order: OrderMode = OrderMode.POPULAR,
    row_builder: RowBuilder | None = None,
) -> int:
    """Fetch every note tagged with `hashtag` and write a row for each.

    Notes are written in listing order. Any fetch or parse error aborts the
    run; rows already written stay in the sink.

    Returns:
        Number of rows written.
    """
    row_builder = row_builder or RowBuilder()
    written = 0
    for page in iter_pages(client, hashtag, order):
        for summary in page.notes:
            note = client.fetch_note(summary.key)
            sink.write(row_builder.build(note, summary))
            written += 1
    logger.info("Wrote %d rows for #%s", written, hashtag)
    return written
