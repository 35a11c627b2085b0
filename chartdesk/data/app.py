from typing import Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from chartdesk.config import get_settings
from chartdesk.errors import InvalidFileTypeError, StructuralError
from chartdesk.session import locked_session

router = APIRouter(prefix="/data")


class LoadReq(BaseModel):
    filename: str
    text: str


@router.post("/load")
def load(req: LoadReq):
    if len(req.text.encode("utf-8")) > get_settings().max_upload_bytes:
        raise HTTPException(413, "File too large")
    with locked_session() as session:
        try:
            upload = session.load(req.filename, req.text)
        except InvalidFileTypeError as e:
            raise HTTPException(415, str(e))
        except StructuralError as e:
            raise HTTPException(400, f"Error parsing CSV file: {e}")
        report = upload.report
        return {
            "symbol": upload.symbol,
            "bars": len(report.bars),
            "dropped": report.dropped_count,
            "dropped_rows": [{"line": d.line_no, "reason": d.reason} for d in report.dropped],
            "range": session.range,
        }


@router.get("/bars")
def bars(range: Optional[str] = None):
    with locked_session() as session:
        visible = session.visible_bars(range)
        return {
            "symbol": session.symbol,
            "range": range or session.range,
            "bars": [b.model_dump(mode="json", exclude_none=True) for b in visible],
        }
