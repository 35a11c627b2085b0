"""
Price file parsing.

Reads a delimited text blob (comma or tab separated, one header row, quoting
allowed) with pandas into a date-sorted list of validated :class:`Bar`
records. Structural problems abort the whole load; a bad row is logged and
dropped.
"""
from __future__ import annotations
import io
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from operator import attrgetter
from pathlib import PurePath
from typing import Dict, List, Optional

import pandas as pd
from pydantic import ValidationError

from chartdesk.errors import StructuralError, RowError, DateFormatError, InvalidFileTypeError
from .bars import Bar

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "open", "high", "low", "close", "volume")
# header name -> Bar field
OPTIONAL_COLUMNS = {"rsi14": "rsi14", "macd": "macd", "macdsignal": "macd_signal", "macdhist": "macd_hist"}

NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# pattern -> group numbers holding (day, month, year)
DATE_FORMATS = [
    (re.compile(r"^(\d{2})-(\d{2})-(\d{4})$"), (1, 2, 3)),  # DD-MM-YYYY or MM-DD-YYYY
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), (3, 2, 1)),  # YYYY-MM-DD
    (re.compile(r"^(\d{2})/(\d{2})/(\d{4})$"), (1, 2, 3)),  # DD/MM/YYYY or MM/DD/YYYY
]


@dataclass
class RowDiagnostic:
    line_no: int
    line: str
    reason: str


@dataclass
class ParseReport:
    bars: List[Bar] = field(default_factory=list)
    dropped: List[RowDiagnostic] = field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


@dataclass
class Upload:
    symbol: str
    report: ParseReport


def parse_number(value: Optional[str]) -> float:
    """Parse a decimal or scientific-notation field. Returns NaN for anything invalid."""
    if value is None or not value.strip():
        return math.nan
    trimmed = value.strip()
    if not NUMBER_RE.match(trimmed):
        logger.warning("Invalid numeric value: %r", value)
        return math.nan
    parsed = float(trimmed)
    if not math.isfinite(parsed):
        logger.warning("Non-finite numeric value: %r -> %s", value, parsed)
        return math.nan
    return parsed


def parse_date(date_str: str) -> datetime:
    for pattern, (di, mi, yi) in DATE_FORMATS:
        m = pattern.match(date_str)
        if not m:
            continue
        day, month, year = int(m.group(di)), int(m.group(mi)), int(m.group(yi))
        # NN-NN and NN/NN are always read day first, even when day <= 12.
        # A month-first file with day > 12 lands here as an invalid month.
        try:
            return datetime(year, month, day)
        except ValueError as e:
            raise DateFormatError(f"Cannot parse date: {date_str} ({e})")
    raise DateFormatError(f"Cannot parse date: {date_str}")


def _sniff_delimiter(text: str) -> str:
    first = text.split("\n", 1)[0]
    return "\t" if "\t" in first else ","


def _read_frame(text: str, delimiter: str) -> pd.DataFrame:
    try:
        # index_col=False: cells past the header are dropped, never shifted into an index
        df = pd.read_csv(
            io.StringIO(text), sep=delimiter, dtype=str, keep_default_na=False,
            skip_blank_lines=True, index_col=False, engine="python",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise StructuralError(f"Invalid CSV: {e}")
    # standardize column names
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def _read_header(columns: List[str]):
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise StructuralError(f"Missing required columns: {', '.join(missing)}")
    required = {c: columns.index(c) for c in REQUIRED_COLUMNS}
    optional = {name: columns.index(col) for col, name in OPTIONAL_COLUMNS.items() if col in columns}
    return required, optional


def _cell(value) -> Optional[str]:
    # short rows are padded with NaN
    return value.strip() if isinstance(value, str) else None


def _parse_row(cells: List[Optional[str]], columns: Dict[str, int], optional: Dict[str, int], line_no: int) -> Bar:
    missing = [k for k, idx in columns.items() if cells[idx] is None]
    if missing:
        raise RowError(f"Missing fields: {', '.join(missing)}", line_no)

    date_str = cells[columns["date"]]
    date = parse_date(date_str)
    o, h, l, c, v = (parse_number(cells[columns[k]]) for k in ("open", "high", "low", "close", "volume"))

    if not all(math.isfinite(x) for x in (o, h, l, c, v)):
        raise RowError(f"Invalid OHLC values O={o} H={h} L={l} C={c} V={v}", line_no)
    if h < o or h < c or h < l or l > o or l > c:
        raise RowError(f"Invalid price relationships: OHLC={o},{h},{l},{c}", line_no)
    if v < 0:
        raise RowError(f"Negative volume: {v}", line_no)

    extras = {}
    for name, idx in optional.items():
        if cells[idx]:
            x = parse_number(cells[idx])
            if math.isfinite(x):
                extras[name] = x

    try:
        return Bar(date=date, date_str=date_str, open=o, high=h, low=l, close=c, volume=v, **extras)
    except ValidationError as e:
        raise RowError(str(e), line_no)


def parse_report(text: str) -> ParseReport:
    """Parse ``text`` and keep a diagnostic for every dropped row."""
    # Excel "CSV UTF-8" exports start with a BOM
    text = text.lstrip("\ufeff")
    lines = [ln for ln in text.splitlines() if ln.strip()]
    if len(lines) < 2:
        raise StructuralError("Invalid CSV: need a header row and at least one data row")
    text = "\n".join(lines)

    delimiter = _sniff_delimiter(text)
    df = _read_frame(text, delimiter)
    columns, optional = _read_header(list(df.columns))

    report = ParseReport()
    for line_no, row in enumerate(df.itertuples(index=False, name=None), start=1):
        cells = [_cell(v) for v in row]
        try:
            bar = _parse_row(cells, columns, optional, line_no)
        except RowError as e:
            line = delimiter.join(c for c in cells if c is not None)
            logger.warning("Skipping invalid row %d: %s (%s)", line_no, line, e)
            report.dropped.append(RowDiagnostic(line_no, line, str(e)))
            continue
        report.bars.append(bar)
        logger.debug("Parsed row %d: %s O=%s H=%s L=%s C=%s V=%s",
                     line_no, bar.date_str, bar.open, bar.high, bar.low, bar.close, bar.volume)

    # stable: equal dates keep file order
    report.bars = sorted(report.bars, key=attrgetter("date"))
    if report.dropped:
        logger.info("Parsed %d bars, dropped %d rows", len(report.bars), report.dropped_count)
    return report


def parse_bars(text: str) -> List[Bar]:
    return parse_report(text).bars


def read_upload(filename: str, text: str) -> Upload:
    """Validate the file name, then parse. Symbol is the upper-cased file stem."""
    if not filename.lower().endswith(".csv"):
        raise InvalidFileTypeError(filename)
    symbol = PurePath(filename).name[:-len(".csv")].upper() or "STOCK"
    return Upload(symbol=symbol, report=parse_report(text))
