import pandas as pd
import pytest
from pydantic import ValidationError

from chartdesk.engine.indicators import (
    IndicatorKind, IndicatorSelection, compute, ema, ema_values, sma, sma_values,
)
from conftest import make_bar


def test_sma_two_period():
    assert sma_values([105, 102], 2) == [None, 103.5]


def test_sma_trailing_mean():
    closes = [1, 2, 3, 4, 5, 6]
    out = sma_values(closes, 3)
    assert out[:2] == [None, None]
    assert out[2:] == pytest.approx([2, 3, 4, 5])


def test_sma_period_longer_than_data():
    assert sma_values([1, 2, 3], 5) == [None, None, None]


def test_ema_seeded_with_sma():
    closes = [1, 2, 3, 4, 5]
    out = ema_values(closes, 3)
    assert out[:2] == [None, None]
    assert out[2] == pytest.approx(sma_values(closes, 3)[2])
    # k = 0.5
    assert out[3] == pytest.approx(3.0)
    assert out[4] == pytest.approx(4.0)


def test_ema_recurrence():
    closes = [44.0, 44.3, 44.1, 43.6, 44.3, 44.8, 45.1, 45.4, 45.0, 46.2, 47.1, 46.9]
    n = 5
    k = 2 / (n + 1)
    out = ema_values(closes, n)
    assert out[n - 1] == pytest.approx(sum(closes[:n]) / n)
    for i in range(n, len(closes)):
        assert out[i] == pytest.approx(closes[i] * k + out[i - 1] * (1 - k))


def test_ema_short_input_and_bad_period():
    assert ema_values([1, 2], 3) == [None, None]
    assert ema_values([1, 2], 0) == [None, None]
    assert sma_values([1, 2], 0) == [None, None]


def test_pandas_helpers_keep_index():
    s = pd.Series([1.0, 2.0, 3.0], index=[10, 11, 12])
    assert list(sma(s, 2).index) == [10, 11, 12]
    assert ema(s, 2).iloc[1] == pytest.approx(1.5)


def test_selection_is_closed():
    with pytest.raises(ValidationError):
        IndicatorSelection(sma200=True)


def test_selection_enabled_order():
    sel = IndicatorSelection(rsi14=True, sma20=True)
    assert sel.enabled() == [IndicatorKind.SMA20, IndicatorKind.RSI14]
    assert IndicatorKind.RSI14.is_oscillator and not IndicatorKind.SMA20.is_oscillator


def test_compute_passes_oscillators_through(daily_bars):
    bars = daily_bars[:2]
    bars[0] = make_bar(bars[0].date, 100, rsi14=61.2)
    assert compute(IndicatorKind.RSI14, bars) == [61.2, None]
    assert compute(IndicatorKind.MACD, bars) == [None, None]
    assert compute(IndicatorKind.SMA20, bars) == [None, None]
