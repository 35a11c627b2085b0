"""
Renderer-agnostic chart description.

``build_render_model`` turns a bar window plus an indicator selection into
series, axis bounds, a tooltip function and (in candlestick mode) the custom
bar-draw pass that the renderer runs after its normal series pass.
"""
from __future__ import annotations
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from chartdesk.data.bars import Bar
from chartdesk.engine.indicators import IndicatorKind, IndicatorSelection, compute, oscillator_values
from .chart_schema import CHART_MODES, AxisSpec, Candle, RenderModel, SeriesSpec, Tooltip, VolumeSpec, Window
from .scales import CategoryScale, LinearScale, fit_bounds, price_bounds
from .surface import Surface

logger = logging.getLogger(__name__)

UP_COLOR = "#22c55e"
DOWN_COLOR = "#ef4444"
CANDLE_OCCUPANCY = 0.6
MIN_CANDLE_WIDTH = 2.0
MIN_BODY_HEIGHT = 1.0

# kind -> series styles; MACD contributes the line and its signal
INDICATOR_STYLES: Dict[IndicatorKind, List[dict]] = {
    IndicatorKind.SMA20: [dict(label="SMA 20", color="#9ca3af", width=1, dash=[5, 5])],
    IndicatorKind.SMA50: [dict(label="SMA 50", color="#6b7280", width=1, dash=[5, 5])],
    IndicatorKind.EMA20: [dict(label="EMA 20", color="#d1d5db", width=1.5)],
    IndicatorKind.EMA50: [dict(label="EMA 50", color="#f3f4f6", width=1.5)],
    IndicatorKind.RSI14: [dict(label="RSI 14", color="#f59e0b", width=2)],
    IndicatorKind.MACD: [
        dict(label="MACD", color="#3b82f6", width=2),
        dict(label="MACD Signal", color="#ec4899", width=2, field="macd_signal"),
    ],
    IndicatorKind.MACD_HIST: [dict(label="MACD Histogram", type="bar")],
}


class Viewport(BaseModel):
    """
    Zoom/pan state over the time-filtered bars.

    ``start`` and ``end`` are inclusive bar indices and are clamped into the
    data. ``y_min``/``y_max`` replace the fitted price axis when both are set
    and ordered. Indicators are still computed over the whole window, so
    zooming never changes a value, only what is shown.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: Optional[int] = None
    end: Optional[int] = None
    y_min: Optional[float] = None
    y_max: Optional[float] = None

    def window(self, count: int) -> Tuple[int, int]:
        """Clamped ``(start, stop)`` slice bounds for ``count`` bars."""
        if count <= 0:
            return 0, 0
        start = 0 if self.start is None else min(max(self.start, 0), count - 1)
        end = count - 1 if self.end is None else min(max(self.end, start), count - 1)
        return start, end + 1

    def price_range(self) -> Optional[Tuple[float, float]]:
        if self.y_min is None and self.y_max is None:
            return None
        if (self.y_min is None or self.y_max is None or not math.isfinite(self.y_min)
                or not math.isfinite(self.y_max) or self.y_min >= self.y_max):
            logger.warning("Ignoring invalid viewport price range: %s..%s", self.y_min, self.y_max)
            return None
        return self.y_min, self.y_max


def _slice_series(spec: SeriesSpec, start: int, stop: int) -> SeriesSpec:
    out = SeriesSpec(**spec)
    for key in ("data", "bar_colors", "candles"):
        if key in out:
            out[key] = out[key][start:stop]
    return out


def _indicator_series(kind: IndicatorKind, bars: Sequence[Bar]) -> List[SeriesSpec]:
    out: List[SeriesSpec] = []
    for style in INDICATOR_STYLES[kind]:
        style = dict(style)
        field = style.pop("field", None)
        series_type = style.pop("type", "line")
        data = oscillator_values(bars, field) if field else compute(kind, bars)
        spec = SeriesSpec(type=series_type, data=data, show_line=True, fill=False,
                          axis="y1" if kind.is_oscillator else "y", **style)
        if spec["type"] == "bar":
            spec["bar_colors"] = [UP_COLOR + "4d" if (v or 0) >= 0 else DOWN_COLOR + "4d" for v in data]
        out.append(spec)
    return out


def _price_series(bars: Sequence[Bar], mode: str) -> SeriesSpec:
    closes = [b.close for b in bars]
    if mode == "candlestick":
        # positions only; the bodies come from the bar-draw pass
        return SeriesSpec(
            label="Candlestick", type="line", data=closes, axis="y", color="transparent",
            width=0, show_line=False, fill=False,
            candles=[Candle(o=b.open, h=b.high, l=b.low, c=b.close) for b in bars],
        )
    spec = SeriesSpec(label="Close Price", type="line", data=closes, axis="y",
                      color="#ffffff", width=1.5, show_line=True, fill=mode == "area")
    if mode == "area":
        spec["fill_color"] = "#ffffff1a"
    return spec


def _volume(bars: Sequence[Bar]) -> VolumeSpec:
    colors = []
    for i, b in enumerate(bars):
        up = i == 0 or b.close >= bars[i - 1].close
        colors.append((UP_COLOR if up else DOWN_COLOR) + "99")
    return VolumeSpec(data=[b.volume for b in bars], colors=colors)


def build_render_model(bars: Sequence[Bar], selection: Optional[IndicatorSelection] = None,
                       mode: str = "candlestick", viewport: Optional[Viewport] = None) -> RenderModel:
    if mode not in CHART_MODES:
        raise ValueError(f"Unknown chart mode: {mode!r}")
    bars = list(bars)
    selection = selection or IndicatorSelection()
    viewport = viewport or Viewport()

    series = [_price_series(bars, mode)]
    for kind in selection.enabled():
        series.extend(_indicator_series(kind, bars))
    volume = _volume(bars)

    start, stop = viewport.window(len(bars))
    if (start, stop) != (0, len(bars)):
        series = [_slice_series(s, start, stop) for s in series]
        volume = VolumeSpec(data=volume["data"][start:stop], colors=volume["colors"][start:stop])
    shown = bars[start:stop]

    lo, hi = viewport.price_range() or price_bounds(v for b in shown for v in (b.open, b.high, b.low, b.close))
    axes = {"y": AxisSpec(id="y", position="right", min=lo, max=hi)}
    secondary = [s for s in series if s["axis"] == "y1"]
    if secondary:
        y1_lo, y1_hi = fit_bounds(v for s in secondary for v in s["data"])
        axes["y1"] = AxisSpec(id="y1", position="left", min=y1_lo, max=y1_hi)

    logger.debug("Render model: %d of %d bars, mode=%s, series=%s, y=[%s, %s]",
                 len(shown), len(bars), mode, [s["label"] for s in series], lo, hi)
    return RenderModel(
        version=1,
        mode=mode,
        window=Window(start=start, end=stop, total=len(bars)),
        labels=[b.date_str for b in shown],
        series=series,
        axes=axes,
        volume=volume,
        bar_draw=draw_candles if mode == "candlestick" else None,
        tooltip=make_tooltip(shown, mode, series),
    )


# ---------- Candles ----------
def draw_candles(surface: Surface, x_scale: CategoryScale, y_scale: LinearScale,
                 candles: Sequence[Candle]) -> int:
    """Draw wick and body per candle. Returns how many were drawn."""
    if not candles:
        return 0
    candle_width = max((x_scale.width / len(candles)) * CANDLE_OCCUPANCY, MIN_CANDLE_WIDTH)
    drawn = 0
    for index, candle in enumerate(candles):
        x = x_scale.pixel_for_value(index)
        open_y = y_scale.pixel_for_value(candle["o"])
        close_y = y_scale.pixel_for_value(candle["c"])
        high_y = y_scale.pixel_for_value(candle["h"])
        low_y = y_scale.pixel_for_value(candle["l"])
        if not all(math.isfinite(v) for v in (x, open_y, close_y, high_y, low_y)):
            logger.warning("Invalid candle value at index %d: %s", index, candle)
            continue

        color = UP_COLOR if candle["c"] >= candle["o"] else DOWN_COLOR
        surface.line(x, high_y, x, low_y, color, width=1)

        body_top = min(open_y, close_y)
        body_height = max(max(open_y, close_y) - body_top, MIN_BODY_HEIGHT)
        surface.rect(x - candle_width / 2, body_top, candle_width, body_height,
                     stroke=color, fill=color, width=1)
        drawn += 1
    return drawn


# ---------- Tooltips ----------
def candle_tooltip_lines(bar: Bar) -> List[str]:
    change = bar.close - bar.open
    change_pct = f"{change / bar.open * 100:.2f}" if bar.open > 0 else "0.00"
    sign = "+" if change >= 0 else ""
    lines = [
        f"Open: ${bar.open:.2f}",
        f"High: ${bar.high:.2f}",
        f"Low: ${bar.low:.2f}",
        f"Close: ${bar.close:.2f} {sign}{change:.2f} ({sign}{change_pct}%)",
        f"Volume: {bar.volume:,.0f}",
    ]
    if bar.rsi14 is not None:
        lines.append(f"RSI 14: {bar.rsi14:.2f}")
    if bar.macd is not None:
        lines.append(f"MACD: {bar.macd:.6f}")
    if bar.macd_signal is not None:
        lines.append(f"MACD Signal: {bar.macd_signal:.6f}")
    if bar.macd_hist is not None:
        lines.append(f"MACD Hist: {bar.macd_hist:.6f}")
    return lines


def format_series_value(label: str, value: float) -> str:
    if label == "Volume":
        return f"Volume: {value:,.0f}"
    if "RSI" in label:
        return f"{label}: {value:.2f}"
    if "MACD" in label or "Signal" in label:
        return f"{label}: {value:.6f}"
    return f"{label}: ${value:.2f}"


def make_tooltip(bars: Sequence[Bar], mode: str, series: Sequence[SeriesSpec]):
    by_label = {s["label"]: s for s in series}

    def tooltip(label: str, index: int) -> Tooltip:
        if not 0 <= index < len(bars):
            return Tooltip(title="", lines=[])
        bar = bars[index]
        if mode == "candlestick":
            return Tooltip(title=bar.date_str, lines=candle_tooltip_lines(bar))
        if label == "Volume":
            return Tooltip(title=bar.date_str, lines=[format_series_value(label, bar.volume)])
        spec = by_label.get(label)
        value = spec["data"][index] if spec else None
        lines = [] if value is None else [format_series_value(label, value)]
        return Tooltip(title=bar.date_str, lines=lines)

    return tooltip
