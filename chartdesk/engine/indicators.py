# indicators.py
from __future__ import annotations
import math
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict

from chartdesk.data.bars import Bar, bars_to_df

IndicatorSeries = List[Optional[float]]


# ---------- Basics ----------
def sma(s: pd.Series, n: int) -> pd.Series:
    if n < 1:
        return pd.Series(np.nan, index=s.index)
    return s.rolling(n, min_periods=n).mean()

def ema(s: pd.Series, n: int) -> pd.Series:
    # seeded with the SMA at n-1, then the usual k = 2/(n+1) recurrence
    if n < 1 or len(s) < n:
        return pd.Series(np.nan, index=s.index, dtype=float)
    seeded = s.astype(float).copy()
    seeded.iloc[:n - 1] = np.nan
    seeded.iloc[n - 1] = s.iloc[:n].mean()
    out = seeded.ewm(span=n, adjust=False).mean()
    out.iloc[:n - 1] = np.nan
    return out


def to_series_values(s: pd.Series) -> IndicatorSeries:
    return [None if (v is None or not math.isfinite(v)) else float(v) for v in s.tolist()]

def sma_values(prices: Sequence[float], n: int) -> IndicatorSeries:
    return to_series_values(sma(pd.Series(list(prices), dtype=float), n))

def ema_values(prices: Sequence[float], n: int) -> IndicatorSeries:
    return to_series_values(ema(pd.Series(list(prices), dtype=float), n))

def oscillator_values(bars: Sequence[Bar], field: str) -> IndicatorSeries:
    return [getattr(b, field) for b in bars]


# ---------- Selection ----------
class IndicatorKind(str, Enum):
    SMA20 = "sma20"
    SMA50 = "sma50"
    EMA20 = "ema20"
    EMA50 = "ema50"
    RSI14 = "rsi14"
    MACD = "macd"
    MACD_HIST = "macd_hist"

    @property
    def is_oscillator(self) -> bool:
        return self in (IndicatorKind.RSI14, IndicatorKind.MACD, IndicatorKind.MACD_HIST)

    @property
    def period(self) -> Optional[int]:
        return {"sma20": 20, "sma50": 50, "ema20": 20, "ema50": 50}.get(self.value)


# oscillator kind -> Bar field it reads
OSCILLATOR_SOURCE = {
    IndicatorKind.RSI14: "rsi14",
    IndicatorKind.MACD: "macd",
    IndicatorKind.MACD_HIST: "macd_hist",
}


class IndicatorSelection(BaseModel):
    """Which overlays are switched on. Unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    sma20: bool = False
    sma50: bool = False
    ema20: bool = False
    ema50: bool = False
    rsi14: bool = False
    macd: bool = False
    macd_hist: bool = False

    def enabled(self) -> List[IndicatorKind]:
        return [k for k in IndicatorKind if getattr(self, k.value)]


def compute(kind: IndicatorKind, bars: Sequence[Bar]) -> IndicatorSeries:
    """Series for a price-class overlay, or the pass-through field for an oscillator."""
    if kind.is_oscillator:
        return oscillator_values(bars, OSCILLATOR_SOURCE[kind])
    if not bars:
        return []
    close = bars_to_df(list(bars))["close"].astype(float)
    calc = sma if kind in (IndicatorKind.SMA20, IndicatorKind.SMA50) else ema
    return to_series_values(calc(close, kind.period))
