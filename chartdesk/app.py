from fastapi import FastAPI

from chartdesk.config import configure_logging
from chartdesk.annotations.app import router as annotations_router
from chartdesk.charts.app import router as charts_router
from chartdesk.data.app import router as data_router

configure_logging()

app = FastAPI(title="Chartdesk API")
app.include_router(data_router)
app.include_router(charts_router)
app.include_router(annotations_router)
