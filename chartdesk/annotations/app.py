from typing import Literal, Optional
from fastapi import APIRouter, Response
from pydantic import BaseModel

from chartdesk.session import ChartSession, locked_session
from .shapes import ToolMode, shape_list

router = APIRouter(prefix="/annotations")


class ToolReq(BaseModel):
    tool: ToolMode


class PointerReq(BaseModel):
    event: Literal["down", "move", "up", "leave"]
    x: float
    y: float


class KeyReq(BaseModel):
    key: str


class CaptureReq(BaseModel):
    capture_id: int
    event: Literal["input", "key", "blur"]
    key: Optional[str] = None
    value: Optional[str] = None


def _state(session: ChartSession):
    st = session.annotations.state
    cap = st.capture
    return {
        "tool": st.tool.value,
        "phase": st.phase.value,
        "shapes": shape_list.dump_python(list(st.shapes), mode="json"),
        "capture": None if cap is None else {"capture_id": cap.capture_id, "anchor": list(cap.anchor)},
    }


@router.get("")
def get_annotations():
    with locked_session() as session:
        return _state(session)


@router.delete("")
def clear_annotations():
    with locked_session() as session:
        session.annotations.reset()
        return _state(session)


@router.post("/tool")
def select_tool(req: ToolReq):
    with locked_session() as session:
        session.annotations.select_tool(req.tool)
        return _state(session)


@router.post("/pointer")
def pointer(req: PointerReq):
    with locked_session() as session:
        engine = session.annotations
        handler = {"down": engine.pointer_down, "move": engine.pointer_move,
                   "up": engine.pointer_up, "leave": engine.pointer_leave}[req.event]
        handler(req.x, req.y)
        return _state(session)


@router.post("/key")
def key(req: KeyReq):
    with locked_session() as session:
        handled = session.annotations.handle_key(req.key)
        return {"handled": handled, **_state(session)}


@router.post("/capture")
def capture(req: CaptureReq):
    with locked_session() as session:
        engine = session.annotations
        cap = engine.state.capture
        # events for a dismissed or replaced input are dropped
        if cap is not None and cap.capture_id == req.capture_id:
            if req.event == "input":
                engine.capture_input(cap, req.value or "")
            elif req.event == "key":
                engine.capture_key(cap, req.key or "", req.value)
            else:
                engine.capture_blur(cap, req.value)
        return _state(session)


@router.get("/preview.png")
def preview():
    with locked_session() as session:
        png = session.surface.to_png()
    return Response(content=png, media_type="image/png")
