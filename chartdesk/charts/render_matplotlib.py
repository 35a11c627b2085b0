import math
from typing import Any, Dict, List, Optional, Sequence

from chartdesk.annotations.draw import draw_shape
from .chart_schema import RenderModel
from .scales import ChartArea, CategoryScale, LinearScale
from .surface import MatplotlibSurface, Surface

VOLUME_PANE = 96  # px reserved under the price pane
PADDING = dict(left=56, top=32, right=72, bottom=28)
GRID_COLOR = "#6b728026"
TICK_COLOR = "#d1d5db"
LEGEND_COLOR = "#e5e7eb"
MAX_X_TICKS = 20


def price_area(width: float, height: float) -> ChartArea:
    return ChartArea(PADDING["left"], PADDING["top"], width - PADDING["right"], height - VOLUME_PANE - PADDING["bottom"])

def volume_area(width: float, height: float) -> ChartArea:
    return ChartArea(PADDING["left"], height - VOLUME_PANE + 8, width - PADDING["right"], height - 8)


def _segments(xs: Sequence[float], values: Sequence[Optional[float]], y: LinearScale):
    # contiguous runs of available points; None breaks the line
    run_x, run_y = [], []
    for x, v in zip(xs, values):
        py = y.pixel_for_value(v)
        if math.isfinite(py):
            run_x.append(x); run_y.append(py)
        elif run_x:
            yield run_x, run_y
            run_x, run_y = [], []
    if run_x:
        yield run_x, run_y


def _draw_axes(surface: Surface, area: ChartArea, scales: Dict[str, LinearScale], labels: List[str], x: CategoryScale):
    for t in scales["y"].ticks():
        py = scales["y"].pixel_for_value(t)
        surface.line(area.left, py, area.right, py, GRID_COLOR, width=1)
        surface.text(f"${t:.2f}", area.right + 6, py, TICK_COLOR, size=12, baseline="middle")
    if "y1" in scales:
        for t in scales["y1"].ticks():
            py = scales["y1"].pixel_for_value(t)
            surface.text(f"{t:.2f}", area.left - 6, py, TICK_COLOR, size=12, baseline="middle", align="right")
    if labels:
        step = max(1, math.ceil(len(labels) / MAX_X_TICKS))
        for i in range(0, len(labels), step):
            surface.text(labels[i], x.pixel_for_value(i), area.bottom + 6, TICK_COLOR, size=11,
                         baseline="top", align="center")


def _draw_series(surface: Surface, model: RenderModel, area: ChartArea, x: CategoryScale, scales: Dict[str, LinearScale]):
    xs = [x.pixel_for_value(i) for i in range(len(model["labels"]))]
    for s in model["series"]:
        y = scales[s["axis"]]
        if s.get("type") == "bar":
            zero = min(max(y.pixel_for_value(0.0), area.top), area.bottom)
            bar_w = max(x.width / max(len(xs), 1) * 0.8, 1.0)
            for i, v in enumerate(s["data"]):
                py = y.pixel_for_value(v)
                if math.isfinite(py):
                    surface.rect(xs[i] - bar_w / 2, min(py, zero), bar_w, abs(zero - py), fill=s["bar_colors"][i])
            continue
        for run_x, run_y in _segments(xs, s["data"], y):
            if s.get("fill"):
                surface.fill_between(run_x, run_y, area.bottom, s.get("fill_color", s["color"]))
            if s.get("show_line", True):
                surface.polyline(run_x, run_y, s["color"], width=s.get("width", 1), dash=s.get("dash"))


def _draw_legend(surface: Surface, model: RenderModel):
    cx = PADDING["left"]
    for s in model["series"]:
        swatch = s.get("color", TICK_COLOR)
        if s.get("type") == "bar" or swatch == "transparent":
            swatch = TICK_COLOR
        surface.rect(cx, 10, 10, 10, fill=swatch)
        surface.text(s["label"], cx + 14, 10, LEGEND_COLOR, size=12, baseline="top")
        cx += 14 + surface.measure_text(s["label"], 12) + 16


def _draw_volume(surface: Surface, model: RenderModel, area: ChartArea):
    vol = model["volume"]
    if not vol["data"]:
        return
    x = CategoryScale(len(vol["data"]), area.left, area.right)
    y = LinearScale(0.0, max(vol["data"]) or 1.0, area.top, area.bottom)
    bar_w = max(x.width / len(vol["data"]) * 0.8, 1.0)
    for i, v in enumerate(vol["data"]):
        py = y.pixel_for_value(v)
        surface.rect(x.pixel_for_value(i) - bar_w / 2, py, bar_w, area.bottom - py, fill=vol["colors"][i])
    top = y.pixel_for_value(y.max)
    surface.text(f"{y.max / 1e6:.0f}M", area.right + 6, top, TICK_COLOR, size=10, baseline="top")


def draw_chart(surface: Surface, model: RenderModel, shapes: Sequence[Any] = ()) -> None:
    """Full clear-and-repaint: grid, series, custom bar pass, legend, volume, annotations."""
    surface.clear()
    area = price_area(surface.width, surface.height)
    x = CategoryScale(len(model["labels"]), area.left, area.right)
    scales = {k: LinearScale(a["min"], a["max"], area.top, area.bottom) for k, a in model["axes"].items()}

    _draw_axes(surface, area, scales, model["labels"], x)
    # a zoomed price axis leaves points outside the pane
    surface.set_clip((area.left, area.top, area.width, area.height))
    _draw_series(surface, model, area, x, scales)
    if model["bar_draw"] is not None and model["series"]:
        model["bar_draw"](surface, x, scales["y"], model["series"][0].get("candles", []))
    surface.set_clip(None)
    _draw_legend(surface, model)
    _draw_volume(surface, model, volume_area(surface.width, surface.height))
    for shape in shapes:
        draw_shape(surface, shape)


def render_png(model: RenderModel, shapes: Sequence[Any] = (), width=900, height=500) -> bytes:
    surface = MatplotlibSurface(width, height)
    try:
        draw_chart(surface, model, shapes)
        return surface.to_png()
    finally:
        surface.close()
