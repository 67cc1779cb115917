from __future__ import annotations

from datetime import date
from decimal import Decimal
from io import BytesIO

import pytest

from core.data import (
    REJECT_INVALID_DATE,
    RecordParseError,
    load_earnings_data,
    parse_amount,
    parse_date,
    parse_records,
    read_source,
    _parse_upload_cached,
)


def test_parse_records_keeps_order_and_skips_blank_lines(sample_csv):
    result = parse_records(sample_csv)

    assert [r.date for r in result.records] == [
        date(2024, 1, 5),
        date(2024, 1, 20),
        date(2024, 2, 1),
        date(2024, 3, 10),
    ]
    assert [r.amount for r in result.records] == [Decimal("100"), Decimal("50"), Decimal("25"), Decimal(0)]
    assert result.row_count == 5


def test_row_with_empty_date_is_rejected_not_defaulted(sample_csv):
    result = parse_records(sample_csv)

    assert len(result.rejected) == 1
    rejected = result.rejected[0]
    assert rejected.reason == REJECT_INVALID_DATE
    assert rejected.raw_date == ""
    assert rejected.raw_amount == "100"
    assert rejected.line == 4


def test_unparseable_amount_counts_as_zero():
    result = parse_records("Date,Amount\n2024-03-10,abc\n")

    assert len(result.records) == 1
    assert result.records[0].amount == 0
    assert result.rejected == ()


def test_missing_amount_column_gives_zero_amounts():
    result = parse_records("Date,Note\n2024-03-10,hello\n2024-03-11,world\n")

    assert [r.amount for r in result.records] == [0, 0]


def test_missing_date_column_rejects_every_row():
    result = parse_records("When,Amount\n2024-03-10,10\n2024-03-11,20\n")

    assert result.records == ()
    assert len(result.rejected) == 2


def test_duplicate_rows_are_kept():
    result = parse_records("Date,Amount\n2024-03-10,10\n2024-03-10,10\n")

    assert len(result.records) == 2


def test_extra_fields_are_ignored():
    result = parse_records("Date,Amount\n2024-03-10,10,unexpected,fields\n2024-03-11,5\n")

    assert [r.amount for r in result.records] == [Decimal("10"), Decimal("5")]


def test_header_only_and_empty_input_give_empty_result():
    assert parse_records("Date,Amount\n").records == ()
    assert parse_records("").records == ()
    assert parse_records("").rejected == ()


def test_nul_bytes_are_fatal():
    with pytest.raises(RecordParseError):
        parse_records("Date,Amount\n2024-01-01,1\x00\x00\n")


def test_non_utf8_bytes_are_fatal():
    with pytest.raises(RecordParseError):
        read_source(b"\xff\xfe\xfa\xfb binary")


def test_read_source_strips_bom_and_accepts_streams():
    raw = b"\xef\xbb\xbfDate,Amount\n2024-01-01,5\n"

    text = read_source(BytesIO(raw))

    assert text.startswith("Date,")
    assert parse_records(text).records[0].amount == Decimal("5")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("100", Decimal("100")),
        ("12.5 USD", Decimal("12.5")),
        ("$1,234.50", Decimal("1234.50")),
        ("-$20", Decimal("-20")),
        ("(10.25)", Decimal("-10.25")),
        ("-5", Decimal("-5")),
        ("abc", Decimal(0)),
        ("", Decimal(0)),
        (None, Decimal(0)),
        ("NaN", Decimal(0)),
        ("Infinity", Decimal(0)),
        ("1_000", Decimal("1")),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-10", date(2024, 3, 10)),
        ("  2024-03-10  ", date(2024, 3, 10)),
        ("March 10, 2024", date(2024, 3, 10)),
        ("2024-03-10T23:30:00-05:00", date(2024, 3, 10)),
        ("", None),
        ("   ", None),
        ("hello", None),
        ("7", None),
        ("now", None),
        ("today", None),
        ("Today", None),
        ("tomorrow", None),
        (None, None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected


def test_load_earnings_data_returns_context(sample_csv):
    data_ctx = load_earnings_data(sample_csv.encode("utf-8"))

    assert data_ctx["row_count"] == 5
    assert len(data_ctx["records"]) == 4
    assert len(data_ctx["rejected"]) == 1
    assert len(data_ctx["source_hash"]) == 64


def test_relative_date_words_are_rejected():
    result = parse_records("Date,Amount\nnow,100\ntoday,50\n2024-01-02,7\n")

    assert [r.date for r in result.records] == [date(2024, 1, 2)]
    assert [(r.line, r.raw_date) for r in result.rejected] == [(1, "now"), (2, "today")]


def test_load_earnings_data_returns_independent_contexts(sample_csv):
    _parse_upload_cached.cache_clear()

    first = load_earnings_data(sample_csv)
    first["records"] = ()
    second = load_earnings_data(sample_csv.encode("utf-8"))

    assert second is not first
    assert len(second["records"]) == 4
    assert second["source_hash"] == first["source_hash"]
    assert _parse_upload_cached.cache_info().hits == 1
