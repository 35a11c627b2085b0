from __future__ import annotations
from bisect import bisect_left
from datetime import datetime
from typing import List, Optional, Sequence

import pandas as pd

from chartdesk.data.bars import Bar

# range token -> calendar offset back from the last bar
RANGE_OFFSETS = {
    "1D": pd.DateOffset(days=1),
    "5D": pd.DateOffset(days=5),
    "1M": pd.DateOffset(months=1),
    "3M": pd.DateOffset(months=3),
    "6M": pd.DateOffset(months=6),
    "1Y": pd.DateOffset(years=1),
    "5Y": pd.DateOffset(years=5),
}
VALID_RANGES = ("1D", "5D", "1M", "3M", "6M", "YTD", "1Y", "5Y", "ALL")


def range_start(anchor: datetime, token: str) -> Optional[datetime]:
    """First instant inside the window, or None when the token means 'everything'."""
    if token == "YTD":
        return datetime(anchor.year, 1, 1)
    offset = RANGE_OFFSETS.get(token)
    if offset is None:
        return None
    return (pd.Timestamp(anchor) - offset).to_pydatetime()


def filter_bars(bars: Sequence[Bar], token: str) -> List[Bar]:
    """Bars dated on or after the window start. Always a suffix of ``bars``."""
    if not bars:
        return []
    start = range_start(bars[-1].date, token)
    if start is None:
        return list(bars)
    i = bisect_left([b.date for b in bars], start)
    return list(bars[i:])


def suggest_range(bars: Sequence[Bar]) -> str:
    """Default range token for freshly loaded data, based on the span it covers."""
    if not bars:
        return "ALL"
    days = (bars[-1].date - bars[0].date).total_seconds() / 86400
    if days <= 1:
        return "1D"
    if days <= 5:
        return "5D"
    if days <= 30:
        return "1M"
    if days <= 90:
        return "3M"
    if days <= 180:
        return "6M"
    if days < 365:
        return "YTD"
    if days <= 365:
        return "1Y"
    if days <= 1825:
        return "5Y"
    return "ALL"
