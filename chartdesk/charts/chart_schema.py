from __future__ import annotations
from typing import Any, Callable, Dict, List, Literal, Optional, TypedDict

ChartMode = Literal["candlestick", "line", "area"]
AxisId = Literal["y", "y1"]

CHART_MODES = ("candlestick", "line", "area")


class Candle(TypedDict):
    o: float
    h: float
    l: float
    c: float


class SeriesSpec(TypedDict, total=False):
    label: str
    type: Literal["line", "bar"]
    data: List[Optional[float]]
    axis: AxisId
    color: str
    width: float
    dash: List[int]        # [on, off] in px, absent = solid
    show_line: bool
    fill: bool
    fill_color: str
    bar_colors: List[str]  # per-point colours for "bar" series
    candles: List[Candle]  # OHLC payload for the custom bar-draw pass


class AxisSpec(TypedDict):
    id: AxisId
    position: Literal["left", "right"]
    min: float
    max: float


class VolumeSpec(TypedDict):
    data: List[float]
    colors: List[str]


class Tooltip(TypedDict):
    title: str
    lines: List[str]


class Window(TypedDict):
    start: int  # first shown bar
    end: int    # one past the last shown bar
    total: int


class RenderModel(TypedDict):
    version: int  # =1
    mode: ChartMode
    window: Window
    labels: List[str]
    series: List[SeriesSpec]
    axes: Dict[str, AxisSpec]
    volume: VolumeSpec
    bar_draw: Optional[Callable[..., Any]]
    tooltip: Callable[[str, int], Tooltip]


def model_to_json(model: RenderModel) -> Dict[str, Any]:
    """The model minus its callables."""
    return {k: v for k, v in model.items() if k not in ("bar_draw", "tooltip")}
