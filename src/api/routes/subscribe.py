from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.captcha.recaptcha import RecaptchaVerifier
from src.config import Settings, get_settings
from src.handlers.errors import RateLimited, SubscribeError
from src.handlers.subscribe import TokenVerifier, subscribe_email
from src.sheets.store import SheetSubscriberStore, SubscriberStore

router = APIRouter()


def _get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return ""


def get_subscriber_store(settings: Annotated[Settings, Depends(get_settings)]) -> SubscriberStore | None:
    if not settings.sheets_configured():
        return None
    return SheetSubscriberStore.from_settings(settings)


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier | None:
    if not settings.recaptcha_enabled():
        return None
    return RecaptchaVerifier.from_settings(settings)


class SubscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    recaptcha_token: str | None = Field(default=None, alias="recaptchaToken")


def _error_response(exc: SubscribeError, settings: Settings) -> JSONResponse:
    if isinstance(exc, RateLimited) and settings.soft_rate_limit_enabled():
        payload: dict[str, Any] = {"success": False, "rateLimited": True, **exc.to_payload()}
        return JSONResponse(payload, status_code=200)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


@router.post("/subscribe", response_model=None)
async def subscribe(
    payload: SubscribeRequest,
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[SubscriberStore | None, Depends(get_subscriber_store)],
    verifier: Annotated[TokenVerifier | None, Depends(get_token_verifier)],
) -> dict[str, bool] | JSONResponse:
    try:
        await subscribe_email(
            email=payload.email,
            recaptcha_token=payload.recaptcha_token,
            requester_ip=_get_client_ip(request),
            settings=settings,
            store=store,
            verifier=verifier,
        )
    except SubscribeError as exc:
        return _error_response(exc, settings)
    return {"success": True}


@router.api_route(
    "/subscribe",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
async def subscribe_method_not_allowed() -> JSONResponse:
    return JSONResponse({"error": "Method not allowed"}, status_code=405, headers={"Allow": "POST"})
