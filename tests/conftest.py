from __future__ import annotations
from datetime import datetime, timedelta

import pytest

from chartdesk.data.bars import Bar


class FakeSurface:
    """Records draw calls for the current frame; ``clear`` starts a new frame."""

    def __init__(self, width: float = 800, height: float = 400):
        self.width = width
        self.height = height
        self.calls = []
        self.clears = 0
        self.clips = []

    def clear(self):
        self.calls = []
        self.clears += 1

    def line(self, x0, y0, x1, y1, color, width=1.0, dash=None):
        self.calls.append(("line", (x0, y0, x1, y1), dict(color=color, width=width, dash=dash)))

    def polyline(self, xs, ys, color, width=1.0, dash=None):
        self.calls.append(("polyline", (list(xs), list(ys)), dict(color=color, width=width, dash=dash)))

    def fill_between(self, xs, ys, base_y, color):
        self.calls.append(("fill_between", (list(xs), list(ys), base_y), dict(color=color)))

    def rect(self, x, y, w, h, stroke=None, fill=None, width=1.0):
        self.calls.append(("rect", (x, y, w, h), dict(stroke=stroke, fill=fill, width=width)))

    def text(self, s, x, y, color, size=12, baseline="alphabetic", align="left"):
        self.calls.append(("text", (s, x, y), dict(color=color, size=size, baseline=baseline, align=align)))

    def measure_text(self, s, size=12):
        return 7.0 * len(s)

    def set_clip(self, box=None):
        self.clips.append(None if box is None else tuple(box))

    def of(self, kind):
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def surface():
    return FakeSurface()


def make_bar(day: datetime, close: float, open_: float | None = None, **extra) -> Bar:
    open_ = close if open_ is None else open_
    return Bar(
        date=day, date_str=day.strftime("%Y-%m-%d"),
        open=open_, high=max(open_, close) + 1, low=min(open_, close) - 1,
        close=close, volume=1000, **extra,
    )


@pytest.fixture
def daily_bars():
    start = datetime(2024, 1, 1)
    return [make_bar(start + timedelta(days=i), 100 + i) for i in range(120)]


SAMPLE_CSV = (
    "Date,Open,High,Low,Close,Volume\n"
    "01-02-2024,100,110,95,105,1000\n"
    "02-02-2024,105,115,100,102,1200\n"
)


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV
