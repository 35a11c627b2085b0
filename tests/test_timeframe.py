from datetime import datetime, timedelta

from chartdesk.engine.timeframe import filter_bars, range_start, suggest_range
from conftest import make_bar


def _daily(start, days):
    return [make_bar(start + timedelta(days=i), 100 + i) for i in range(days)]


def test_all_returns_input_unchanged(daily_bars):
    assert filter_bars(daily_bars, "ALL") == daily_bars
    assert filter_bars(daily_bars, "bogus") == daily_bars


def test_output_is_a_suffix(daily_bars):
    for token in ("1D", "5D", "1M", "3M", "6M", "YTD", "1Y", "5Y"):
        out = filter_bars(daily_bars, token)
        assert out == daily_bars[len(daily_bars) - len(out):]


def test_five_days_inclusive():
    bars = _daily(datetime(2024, 1, 1), 10)  # Jan 1..10
    out = filter_bars(bars, "5D")
    assert out[0].date == datetime(2024, 1, 5)
    assert len(out) == 6


def test_month_offset_clamps_to_month_end():
    # clamps to 29 Feb rather than rolling over into March (2 Mar)
    assert range_start(datetime(2024, 3, 31), "1M") == datetime(2024, 2, 29)
    assert range_start(datetime(2024, 5, 15), "3M") == datetime(2024, 2, 15)


def test_ytd_starts_january_first():
    bars = _daily(datetime(2023, 12, 20), 20)
    out = filter_bars(bars, "YTD")
    assert out[0].date == datetime(2024, 1, 1)


def test_years():
    assert range_start(datetime(2024, 2, 29), "1Y") == datetime(2023, 2, 28)
    assert range_start(datetime(2024, 6, 1), "5Y") == datetime(2019, 6, 1)


def test_empty_input():
    assert filter_bars([], "1M") == []


def test_suggest_range():
    assert suggest_range([]) == "ALL"
    assert suggest_range(_daily(datetime(2024, 1, 1), 2)) == "1D"
    assert suggest_range(_daily(datetime(2024, 1, 1), 20)) == "1M"
    assert suggest_range(_daily(datetime(2024, 1, 1), 200)) == "YTD"
    assert suggest_range(_daily(datetime(2024, 1, 1), 366)) == "1Y"
    assert suggest_range(_daily(datetime(2010, 1, 1), 3000)) == "ALL"
