import os
import logging
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    log_level: str = "INFO"
    chart_width: int = 900
    chart_height: int = 500
    max_upload_bytes: int = 5_000_000


def get_settings() -> Settings:
    return Settings(
        log_level=os.getenv("CHARTDESK_LOG_LEVEL", "INFO").upper(),
        chart_width=int(os.getenv("CHARTDESK_CHART_WIDTH", "900")),
        chart_height=int(os.getenv("CHARTDESK_CHART_HEIGHT", "500")),
        max_upload_bytes=int(os.getenv("CHARTDESK_MAX_UPLOAD_BYTES", "5000000")),
    )


def configure_logging(level: str | None = None) -> None:
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
