"""Tests for row building and the CSV sink."""

import csv
import io
from zoneinfo import ZoneInfo

import pytest

from note_hashtags.converter import (
    CSV_COLUMNS,
    CsvRowSink,
    RowBuilder,
    format_datetime,
    format_hashtags,
)
from note_hashtags.text import CELL_CHAR_LIMIT


@pytest.fixture
def builder():
    return RowBuilder()


class TestFormatDatetime:
    def test_utc_to_tokyo(self):
        assert format_datetime("2023-06-01T12:00:00+00:00") == "2023-06-01T21:00:00"

    def test_already_tokyo(self):
        assert format_datetime("2020-01-15T00:00:00+09:00") == "2020-01-15T00:00:00"

    def test_milliseconds_and_z_suffix(self):
        assert format_datetime("2023-12-31T20:30:00.123Z") == "2024-01-01T05:30:00"

    def test_naive_read_as_utc(self):
        assert format_datetime("2023-06-01T00:00:00") == "2023-06-01T09:00:00"

    def test_missing(self):
        assert format_datetime(None) == ""
        assert format_datetime("") == ""

    def test_other_zone(self):
        value = format_datetime("2023-06-01T12:00:00+00:00", ZoneInfo("UTC"))
        assert value == "2023-06-01T12:00:00"

    def test_invalid_raises(self):
        with pytest.raises(ValueError):
            format_datetime("yesterday")


class TestFormatHashtags:
    def test_strip_marker(self):
        assert format_hashtags(["#example"]) == "example"

    def test_join_in_order(self):
        assert format_hashtags(["#a", "#b", "#c"]) == "a, b, c"

    def test_only_leading_marker_stripped(self):
        assert format_hashtags(["##double", "c#"]) == "#double, c#"

    def test_empty(self):
        assert format_hashtags([]) == ""


class TestRowBuilder:
    def test_column_order(self, builder, make_note, summary):
        row = builder.build(make_note(), summary)
        assert list(row) == CSV_COLUMNS

    def test_text_note_row(self, builder, make_note, summary):
        row = builder.build(make_note(), summary)
        assert row["title"] == "Hello note"
        assert row["createdAt"] == "2023-06-01T21:00:00"
        assert row["publishAt"] == "2023-06-01T21:30:00"
        assert row["price"] == 0
        assert row["canReadAll"] is True
        assert row["likeCount"] == 12
        assert row["shareCount"] == 3
        assert row["url"] == "https://note.com/notes/n1a2b3c4d5e6"
        assert row["type"] == "TextNote"
        assert row["user"] == "Test User"
        assert row["userUrl"] == "https://note.com/testuser"
        assert row["userNoteCount"] == 87
        assert row["userCreatedAt"] == "2020-01-15T00:00:00"
        assert row["hashtags"] == "example, python"
        assert row["remarks"] == ""
        assert row["body1"] == "hello"
        assert [row[f"body{i}"] for i in range(2, 6)] == ["", "", "", ""]

    def test_unsupported_type_and_empty_body(self, builder, make_note, summary):
        note = make_note(type_name="X", body=None, description=None)
        row = builder.build(note, summary)
        assert row["remarks"] == "Unsupported note type: X, Empty body: X"
        assert row["type"] == "X"
        assert list(row) == CSV_COLUMNS

    def test_restricted_note(self, builder, make_note, summary):
        note = make_note(is_restricted=True, body=None, description=None)
        row = builder.build(note, summary)
        assert row["remarks"] == "R-18 note: body unavailable, Empty body: TextNote"
        assert row["body1"] == ""

    def test_restricted_note_uses_fallback(self, builder, make_note, summary):
        note = make_note(is_restricted=True, body=None, description="teaser")
        row = builder.build(note, summary)
        assert row["remarks"] == "R-18 note: body unavailable"
        assert row["body1"] == "teaser"

    def test_image_note_captions(self, builder, make_note, summary):
        note = make_note(
            type_name="ImageNote",
            body=None,
            picture_captions=["sunset", "beach"],
        )
        row = builder.build(note, summary)
        assert row["body1"] == "sunset\nbeach"
        assert row["remarks"] == ""

    def test_long_body_split(self, builder, make_note, summary):
        text = "a" * CELL_CHAR_LIMIT + "b" * 10
        row = builder.build(make_note(body=None, description=text), summary)
        assert row["body1"] == "a" * CELL_CHAR_LIMIT
        assert row["body2"] == "b" * 10
        assert row["body3"] == ""
        assert row["remarks"] == ""

    def test_oversized_body_remark(self, builder, make_note, summary):
        text = "x" * (CELL_CHAR_LIMIT * 5 + 1)
        row = builder.build(make_note(body=None, description=text), summary)
        assert row["remarks"] == "Body too long: 6 chunks, truncated to 5"
        assert list(row) == CSV_COLUMNS
        assert row["body5"] == "x" * CELL_CHAR_LIMIT

    def test_missing_optional_values(self, builder, make_note, summary):
        note = make_note(publish_at=None, price=None, like_count=None, hashtags=[])
        row = builder.build(note, summary)
        assert row["publishAt"] == ""
        assert row["price"] is None
        assert row["likeCount"] is None
        assert row["hashtags"] == ""

    def test_custom_site_url(self, make_note, summary):
        builder = RowBuilder(site_url="https://example.com/")
        row = builder.build(make_note(), summary)
        assert row["url"] == "https://example.com/notes/n1a2b3c4d5e6"
        assert row["userUrl"] == "https://example.com/testuser"

    def test_remarks_logged(self, builder, make_note, summary, caplog):
        note = make_note(type_name="X", body=None, description=None)
        with caplog.at_level("WARNING", logger="note_hashtags"):
            builder.build(note, summary)
        assert "Unsupported note type: X (n1a2b3c4d5e6)" in caplog.text


class TestCsvRowSink:
    def test_header_from_first_row(self, builder, make_note, summary):
        buf = io.StringIO()
        with CsvRowSink(stream=buf) as sink:
            sink.write(builder.build(make_note(), summary))
        header = next(csv.reader(io.StringIO(buf.getvalue())))
        assert header == CSV_COLUMNS

    def test_cells_formatted(self, builder, make_note, summary):
        buf = io.StringIO()
        with CsvRowSink(stream=buf) as sink:
            sink.write(builder.build(make_note(price=None), summary))
        row = next(csv.DictReader(io.StringIO(buf.getvalue())))
        assert row["canReadAll"] == "true"
        assert row["price"] == ""
        assert row["likeCount"] == "12"
        assert row["body1"] == "hello"

    def test_rows_in_write_order(self, builder, make_note, summary):
        buf = io.StringIO()
        with CsvRowSink(stream=buf) as sink:
            for title in ("first", "second", "third"):
                sink.write(builder.build(make_note(name=title), summary))
        rows = list(csv.DictReader(io.StringIO(buf.getvalue())))
        assert [r["title"] for r in rows] == ["first", "second", "third"]
        assert sink.count == 3

    def test_mismatched_columns_rejected(self):
        buf = io.StringIO()
        with CsvRowSink(stream=buf) as sink:
            sink.write({"a": 1, "b": 2})
            with pytest.raises(ValueError, match="do not match header"):
                sink.write({"a": 1, "b": 2, "c": 3})

    def test_newlines_and_commas_survive(self, builder, make_note, summary):
        buf = io.StringIO()
        note = make_note(body="<p>line one, with comma</p><p>line two</p>")
        with CsvRowSink(stream=buf) as sink:
            sink.write(builder.build(note, summary))
        row = next(csv.DictReader(io.StringIO(buf.getvalue())))
        assert row["body1"] == "line one, with comma\n\nline two"

    def test_file_written_utf8(self, tmp_path, builder, make_note, summary):
        path = tmp_path / "out" / "result.csv"
        with CsvRowSink(path) as sink:
            sink.write(builder.build(make_note(name="ノート"), summary))
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["title"] == "ノート"

    def test_file_closed_on_error(self, tmp_path, builder, make_note, summary):
        path = tmp_path / "result.csv"
        with pytest.raises(RuntimeError):
            with CsvRowSink(path) as sink:
                sink.write(builder.build(make_note(), summary))
                raise RuntimeError("boom")
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1

    def test_write_before_open_raises(self, tmp_path):
        sink = CsvRowSink(tmp_path / "result.csv")
        with pytest.raises(RuntimeError, match="not open"):
            sink.write({"a": 1})

    def test_requires_path_or_stream(self):
        with pytest.raises(ValueError):
            CsvRowSink()
