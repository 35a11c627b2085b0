from typing import Optional
from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from chartdesk.engine.indicators import IndicatorSelection
from chartdesk.session import locked_session
from .chart_schema import ChartMode, model_to_json
from .render_model import Viewport

router = APIRouter(prefix="/charts")


class ChartReq(BaseModel):
    range: Optional[str] = None
    mode: ChartMode = "candlestick"
    indicators: IndicatorSelection = Field(default_factory=IndicatorSelection)
    viewport: Optional[Viewport] = None


class TooltipReq(ChartReq):
    label: str = ""
    index: int  # relative to the viewport


@router.post("/model")
def model(req: ChartReq):
    with locked_session() as session:
        m = session.render_model(req.range, req.mode, req.indicators, req.viewport)
    return model_to_json(m)


@router.post("/tooltip")
def tooltip(req: TooltipReq):
    with locked_session() as session:
        m = session.render_model(req.range, req.mode, req.indicators, req.viewport)
    return m["tooltip"](req.label, req.index)


@router.post("/render")
def render(req: ChartReq):
    with locked_session() as session:
        if not session.bars:
            raise HTTPException(409, "No data loaded")
        png = session.render_png(req.range, req.mode, req.indicators, req.viewport)
    return Response(content=png, media_type="image/png")
