"""
Pixel drawing surfaces.

Both the chart renderer and the annotation engine draw through the small
:class:`Surface` protocol: origin top-left, y grows downward, units are
pixels. :class:`MatplotlibSurface` backs it with an Agg figure.
"""
from __future__ import annotations
import io
import math
from typing import Optional, Protocol, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
from matplotlib.textpath import TextPath

DPI = 100
BACKGROUND = "#0a0a0a"

_VA = {"top": "top", "middle": "center", "alphabetic": "baseline", "bottom": "bottom"}


class Surface(Protocol):
    width: float
    height: float

    def clear(self) -> None: ...

    def line(self, x0: float, y0: float, x1: float, y1: float, color: str,
             width: float = 1.0, dash: Optional[Sequence[float]] = None) -> None: ...

    def polyline(self, xs: Sequence[float], ys: Sequence[float], color: str,
                 width: float = 1.0, dash: Optional[Sequence[float]] = None) -> None: ...

    def fill_between(self, xs: Sequence[float], ys: Sequence[float], base_y: float, color: str) -> None: ...

    def rect(self, x: float, y: float, w: float, h: float, stroke: Optional[str] = None,
             fill: Optional[str] = None, width: float = 1.0) -> None: ...

    def text(self, s: str, x: float, y: float, color: str, size: float = 12,
             baseline: str = "alphabetic", align: str = "left") -> None: ...

    def measure_text(self, s: str, size: float = 12) -> float: ...

    def set_clip(self, box: Optional[Sequence[float]] = None) -> None: ...


def _pt(px: float) -> float:
    # matplotlib sizes are points
    return px * 72.0 / DPI


def _linestyle(dash):
    return (0, tuple(dash)) if dash else "-"


class MatplotlibSurface:
    def __init__(self, width: int, height: int, background: str = BACKGROUND):
        self.width = float(width)
        self.height = float(height)
        self.background = background
        self.fig = plt.figure(figsize=(width / DPI, height / DPI), dpi=DPI)
        self.ax = self.fig.add_axes([0, 0, 1, 1])
        self.clear()

    def clear(self) -> None:
        self.ax.cla()
        self._clip = None
        self.ax.set_xlim(0, self.width)
        self.ax.set_ylim(self.height, 0)
        self.ax.axis("off")
        self.fig.set_facecolor(self.background)
        self.ax.set_facecolor(self.background)

    def line(self, x0, y0, x1, y1, color, width=1.0, dash=None) -> None:
        self._clipped(*self.ax.plot([x0, x1], [y0, y1], color=color,
                                    linewidth=_pt(width), linestyle=_linestyle(dash)))

    def polyline(self, xs, ys, color, width=1.0, dash=None) -> None:
        self._clipped(*self.ax.plot(list(xs), list(ys), color=color,
                                    linewidth=_pt(width), linestyle=_linestyle(dash)))

    def fill_between(self, xs, ys, base_y, color) -> None:
        self._clipped(self.ax.fill_between(list(xs), list(ys), base_y, color=color, linewidth=0))

    def rect(self, x, y, w, h, stroke=None, fill=None, width=1.0) -> None:
        self._clipped(self.ax.add_patch(Rectangle(
            (x, y), w, h,
            facecolor=fill if fill else "none",
            edgecolor=stroke if stroke else "none",
            linewidth=_pt(width) if stroke else 0,
        )))

    def text(self, s, x, y, color, size=12, baseline="alphabetic", align="left") -> None:
        self.ax.text(x, y, s, color=color, fontsize=_pt(size), va=_VA.get(baseline, "baseline"), ha=align)

    def set_clip(self, box=None) -> None:
        """Clip later shapes to the pixel box ``(x, y, w, h)``. None turns clipping off."""
        self._clip = None if box is None else Rectangle((box[0], box[1]), box[2], box[3], transform=self.ax.transData)

    def _clipped(self, *artists):
        if self._clip is not None:
            for artist in artists:
                artist.set_clip_path(self._clip)

    def measure_text(self, s: str, size: float = 12) -> float:
        if not s:
            return 0.0
        width = TextPath((0, 0), s, size=size).get_extents().width
        return float(width) if math.isfinite(width) else 0.0

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.fig.savefig(buf, format="png", dpi=DPI, facecolor=self.background)
        return buf.getvalue()

    def close(self) -> None:
        plt.close(self.fig)
