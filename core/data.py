from __future__ import annotations

import csv
import hashlib
import io
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Union

import pandas as pd

from core.aggregation import aggregate
from core.filters import EarningsFilters, normalize_filters
from core.models import EarningRecord, ParseResult, RejectedRow

logger = logging.getLogger(__name__)

DATE_COLUMN = "Date"
AMOUNT_COLUMN = "Amount"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

REJECT_INVALID_DATE = "invalid_date"

_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

Source = Union[bytes, str, Path, BinaryIO]


class RecordParseError(ValueError):
    """The input could not be read or tokenized as CSV text at all."""


def ensure_bytes(source: Union[bytes, Path, BinaryIO]) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, io.BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    if hasattr(source, "read"):
        return source.read()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def compute_file_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def read_source(source: Source) -> str:
    """Return the decoded text of an uploaded file (UTF-8, optional BOM)."""
    if isinstance(source, str):
        return source
    data = ensure_bytes(source)
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise RecordParseError(f"Input is not UTF-8 text: {exc}") from exc


def parse_date(value: object) -> Optional[date]:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    # Words like "now"/"today" and bare day/month numbers resolve against the clock.
    if not any(ch.isdigit() for ch in s):
        return None
    if s.isdigit() and len(s) < 4:
        return None
    try:
        ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def parse_amount(value: object) -> Decimal:
    """Lenient amount parsing; anything unusable counts as zero."""
    if value is None:
        return Decimal(0)
    s = str(value).strip()
    if not s:
        return Decimal(0)
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1].strip()
    s = s.replace(",", "")
    if s.startswith("$"):
        s = s[1:]
    elif s[:2] in ("-$", "+$"):
        s = s[0] + s[2:]
    result: Optional[Decimal] = None
    # Decimal accepts "1_000"; only the digits before "_" count.
    if "_" not in s:
        try:
            result = Decimal(s)
        except InvalidOperation:
            result = None
    if result is None:
        match = _NUMERIC_PREFIX.match(s)
        if not match:
            return Decimal(0)
        result = Decimal(match.group(0))
    if not result.is_finite():
        return Decimal(0)
    return -result if negative else result


def _tokenize(text: str) -> pd.DataFrame:
    if "\x00" in text:
        raise RecordParseError("Input contains NUL bytes; expected CSV text")
    try:
        header = pd.read_csv(io.StringIO(text), nrows=0, dtype=str, engine="python")
        width = len(header.columns)
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=lambda fields: fields[:width],
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (pd.errors.ParserError, csv.Error) as exc:
        raise RecordParseError(f"Could not tokenize CSV input: {exc}") from exc
    return df.fillna("")


def parse_records(text: str) -> ParseResult:
    """Convert CSV text with ``Date`` and ``Amount`` columns into records.

    Rows whose date cannot be parsed are rejected (and reported in
    ``ParseResult.rejected``); unparseable amounts count as zero. Only input
    that cannot be tokenized at all raises :class:`RecordParseError`.
    """
    df = _tokenize(text)
    if df.empty:
        return ParseResult()

    dates = df[DATE_COLUMN].astype(str) if DATE_COLUMN in df.columns else pd.Series("", index=df.index)
    amounts = df[AMOUNT_COLUMN].astype(str) if AMOUNT_COLUMN in df.columns else pd.Series("", index=df.index)

    records: List[EarningRecord] = []
    rejected: List[RejectedRow] = []
    for line, (raw_date, raw_amount) in enumerate(zip(dates.tolist(), amounts.tolist()), start=1):
        parsed = parse_date(raw_date)
        if parsed is None:
            rejected.append(RejectedRow(line=line, reason=REJECT_INVALID_DATE, raw_date=raw_date, raw_amount=raw_amount))
            continue
        records.append(EarningRecord(date=parsed, amount=parse_amount(raw_amount), line=line))

    if rejected:
        logger.debug("Rejected %d of %d rows: %s", len(rejected), len(df), dict(Counter(r.reason for r in rejected)))
    return ParseResult(records=tuple(records), rejected=tuple(rejected))


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_currency(value: object, decimals: int = 2) -> str:
    rounded = round_half_up(value, decimals)
    if rounded is None:
        return "N/A"
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.{decimals}f}"


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@dataclass(frozen=True)
class _Upload:
    """Cache key for an upload: compared and hashed by content digest only."""

    source_hash: str
    text: str = field(compare=False, repr=False)


@lru_cache(maxsize=4)
def _parse_upload_cached(upload: _Upload) -> ParseResult:
    return parse_records(upload.text)


def load_earnings_data(source: Source) -> Dict[str, object]:
    text = read_source(source)
    source_hash = compute_file_hash(text.encode("utf-8"))
    result = _parse_upload_cached(_Upload(source_hash=source_hash, text=text))
    return {
        "source_hash": source_hash,
        "row_count": result.row_count,
        "records": result.records,
        "rejected": result.rejected,
    }


def prepare_context(filters: dict | EarningsFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    filt = filters if isinstance(filters, EarningsFilters) else normalize_filters(filters)
    records = data_ctx.get("records", ()) or ()
    rejected = data_ctx.get("rejected", ()) or ()
    return {
        "filters": filt,
        "source_hash": data_ctx.get("source_hash"),
        "row_count": int(data_ctx.get("row_count", 0) or 0),
        "records": records,
        "rejected": rejected,
        "aggregation": aggregate(records, filt.granularity),
    }
