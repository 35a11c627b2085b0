from __future__ import annotations
import math
from datetime import datetime
from typing import List, Optional
import pandas as pd
from pydantic import BaseModel, ConfigDict, model_validator

# optional pass-through columns carried by a bar, in display order
OSCILLATOR_FIELDS = ("rsi14", "macd", "macd_signal", "macd_hist")


class Bar(BaseModel):
    """One validated OHLCV record. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    date: datetime
    date_str: str
    open: float
    high: float
    low: float
    close: float
    volume: float
    rsi14: Optional[float] = None
    macd: Optional[float] = None
    macd_signal: Optional[float] = None
    macd_hist: Optional[float] = None

    @model_validator(mode="after")
    def check_prices(self):
        ohlcv = (self.open, self.high, self.low, self.close, self.volume)
        if not all(math.isfinite(v) for v in ohlcv):
            raise ValueError("OHLCV values must be finite")
        if self.volume < 0:
            raise ValueError("Volume must be >= 0")
        if self.high < max(self.open, self.close, self.low):
            raise ValueError("High must be >= Open, Close and Low")
        if self.low > min(self.open, self.close, self.high):
            raise ValueError("Low must be <= Open, Close and High")
        for name in OSCILLATOR_FIELDS:
            v = getattr(self, name)
            if v is not None and not math.isfinite(v):
                raise ValueError(f"{name} must be finite when present")
        return self

    @property
    def is_up(self) -> bool:
        return self.close >= self.open


def bars_to_df(bars: List[Bar]) -> pd.DataFrame:
    """Frame indexed by date with one column per bar field (absent oscillators are NaN)."""
    df = pd.DataFrame({
        "time": pd.to_datetime([b.date for b in bars]),
        "date_str": [b.date_str for b in bars],
        "open": [b.open for b in bars], "high": [b.high for b in bars],
        "low": [b.low for b in bars], "close": [b.close for b in bars],
        "volume": [b.volume for b in bars],
        **{f: [getattr(b, f) for b in bars] for f in OSCILLATOR_FIELDS},
    }).set_index("time")
    return df
