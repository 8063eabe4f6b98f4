from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from src.api.middleware.request_context import RequestContextMiddleware
from src.api.routes import api_router
from src.api.routes.subscribe import get_subscriber_store
from src.config import Settings, get_settings
from src.ops.events import configure_logging
from src.sheets.client import SheetsError
from src.sheets.store import SubscriberStore
from src.web.landing import STATIC_DIR, render_landing_page

logger = logging.getLogger(__name__)

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Mailing List Signup", version="0.1.0")
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origin_list(),
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(api_router)
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


@app.get("/", response_class=HTMLResponse)
async def landing(current: Annotated[Settings, Depends(get_settings)]) -> HTMLResponse:
    return HTMLResponse(render_landing_page(current))


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/health/sheet")
async def health_sheet(
    store: Annotated[SubscriberStore | None, Depends(get_subscriber_store)],
) -> dict[str, str]:
    if store is None:
        raise HTTPException(status_code=503, detail="sheet unavailable")
    try:
        await store.fetch_rows()
    except SheetsError:
        logger.exception("Sheet health check failed")
        raise HTTPException(status_code=503, detail="sheet unavailable") from None
    return {"status": "ok"}
