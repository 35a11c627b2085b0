from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from chartdesk.errors import RenderDegeneracyError

logger = logging.getLogger(__name__)

FALLBACK_BOUNDS = (0.0, 100.0)


@dataclass(frozen=True)
class ChartArea:
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top


@dataclass(frozen=True)
class CategoryScale:
    """Maps a bar index onto x. First bar at the left edge, last at the right."""
    count: int
    left: float
    right: float

    @property
    def width(self) -> float:
        return self.right - self.left

    def pixel_for_value(self, index: float) -> float:
        if index is None or not math.isfinite(index):
            return math.nan
        if self.count <= 1:
            return self.left + self.width / 2
        return self.left + index * self.width / (self.count - 1)


@dataclass(frozen=True)
class LinearScale:
    """Maps a value onto y, ``min`` at ``bottom``."""
    min: float
    max: float
    top: float
    bottom: float

    def pixel_for_value(self, value: Optional[float]) -> float:
        span = self.max - self.min
        if value is None or not math.isfinite(value) or not math.isfinite(span) or span == 0:
            return math.nan
        return self.bottom - (value - self.min) / span * (self.bottom - self.top)

    def ticks(self, count: int = 6) -> List[float]:
        if count < 2 or not (math.isfinite(self.min) and math.isfinite(self.max)):
            return []
        step = (self.max - self.min) / (count - 1)
        return [self.min + i * step for i in range(count)]


def _finite(values: Iterable[Optional[float]]) -> List[float]:
    return [v for v in values if v is not None and math.isfinite(v)]


def _checked(lo: float, hi: float) -> Tuple[float, float]:
    if not (math.isfinite(lo) and math.isfinite(hi)) or lo >= hi:
        raise RenderDegeneracyError(f"Invalid price range: min={lo}, max={hi}")
    return lo, hi


def price_bounds(values: Iterable[Optional[float]]) -> Tuple[float, float]:
    """Primary axis bounds: 2% headroom around the data, floor at 0 for non-positive data."""
    finite = _finite(values)
    try:
        if not finite:
            raise RenderDegeneracyError("Invalid price range: no finite prices")
        lo, hi = _checked(min(finite), max(finite))
        return _checked(lo * 0.98 if lo > 0 else 0.0, hi * 1.02)
    except RenderDegeneracyError as e:
        logger.error("%s; falling back to %s", e, FALLBACK_BOUNDS)
        return FALLBACK_BOUNDS


def fit_bounds(values: Iterable[Optional[float]], pad: float = 0.05) -> Tuple[float, float]:
    """Secondary axis bounds fitted to the data with ``pad`` of the span on each side."""
    finite = _finite(values)
    try:
        if not finite:
            raise RenderDegeneracyError("Invalid oscillator range: no finite values")
        lo, hi = _checked(min(finite), max(finite))
        margin = (hi - lo) * pad
        return lo - margin, hi + margin
    except RenderDegeneracyError as e:
        logger.error("%s; falling back to %s", e, FALLBACK_BOUNDS)
        return FALLBACK_BOUNDS
