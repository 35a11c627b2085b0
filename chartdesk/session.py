from __future__ import annotations
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from chartdesk.annotations.engine import AnnotationEngine, CaptureHost
from chartdesk.charts.chart_schema import RenderModel
from chartdesk.charts.render_matplotlib import VOLUME_PANE, render_png
from chartdesk.charts.render_model import Viewport, build_render_model
from chartdesk.charts.surface import MatplotlibSurface
from chartdesk.config import get_settings
from chartdesk.data.bars import Bar
from chartdesk.data.csv_parser import RowDiagnostic, Upload, read_upload
from chartdesk.engine.indicators import IndicatorSelection
from chartdesk.engine.timeframe import filter_bars, suggest_range

logger = logging.getLogger(__name__)


class ChartSession:
    """Everything one viewer has loaded or drawn. A new load replaces all of it."""

    def __init__(self, width: Optional[int] = None, height: Optional[int] = None,
                 capture_host: Optional[CaptureHost] = None):
        settings = get_settings()
        self.width = width or settings.chart_width
        self.height = height or settings.chart_height
        self.symbol = "STOCK"
        self.bars: List[Bar] = []
        self.dropped: List[RowDiagnostic] = []
        self.range = "ALL"
        # one event at a time: shared engine state and a single pyplot figure
        self.lock = threading.RLock()
        # annotation layer covers the price pane only
        self.surface = MatplotlibSurface(self.width, self.height - VOLUME_PANE)
        self.annotations = AnnotationEngine(self.surface, capture_host)

    def load(self, filename: str, text: str) -> Upload:
        upload = read_upload(filename, text)
        self.symbol = upload.symbol
        self.bars = upload.report.bars
        self.dropped = upload.report.dropped
        self.range = suggest_range(self.bars)
        self.annotations.reset()
        logger.info("Loaded %s: %d bars (%d dropped), range %s",
                    self.symbol, len(self.bars), len(self.dropped), self.range)
        return upload

    def visible_bars(self, range_token: Optional[str] = None) -> List[Bar]:
        return filter_bars(self.bars, range_token or self.range)

    def render_model(self, range_token: Optional[str] = None, mode: str = "candlestick",
                     selection: Optional[IndicatorSelection] = None,
                     viewport: Optional[Viewport] = None) -> RenderModel:
        return build_render_model(self.visible_bars(range_token), selection, mode, viewport)

    def render_png(self, range_token: Optional[str] = None, mode: str = "candlestick",
                   selection: Optional[IndicatorSelection] = None,
                   viewport: Optional[Viewport] = None) -> bytes:
        model = self.render_model(range_token, mode, selection, viewport)
        return render_png(model, self.annotations.shapes, self.width, self.height)

    def close(self) -> None:
        self.surface.close()


_session: Optional[ChartSession] = None
_session_guard = threading.Lock()


def get_session() -> ChartSession:
    global _session
    with _session_guard:
        if _session is None:
            _session = ChartSession()
        return _session


@contextmanager
def locked_session() -> Iterator[ChartSession]:
    """Hold the session for one request. Request handlers run on a thread pool."""
    session = get_session()
    with session.lock:
        yield session


def reset_session() -> None:
    global _session
    with _session_guard:
        if _session is not None:
            with _session.lock:
                _session.close()
        _session = None
