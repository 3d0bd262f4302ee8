"""JSON read endpoints over the record store plus the email trigger.

Every response uses the ``{data, error}`` envelope. Store failures are
translated to 503 by the exception handler registered in ``create_api_app``.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from pairwatch.models import AlertEvent
from pairwatch.signals.alert import BUY_ACTION

log = structlog.get_logger(__name__)

router = APIRouter()

_NO_STORE = {"Cache-Control": "no-store, max-age=0"}


def envelope(
    data: Any = None, error: str | None = None, status_code: int = 200
) -> JSONResponse:
    return JSONResponse(
        content={"data": data, "error": error},
        status_code=status_code,
        headers=_NO_STORE,
    )


def _float_or_none(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _alert_from_body(body: dict[str, Any]) -> AlertEvent:
    """Build an AlertEvent from a trigger payload.

    Accepts both the stored snapshot keys (``rsiShort``/``rsiLong``) and the
    legacy ``rsi5m``/``rsi1h`` keys.
    """
    rsi_short = _float_or_none(body.get("rsiShort", body.get("rsi5m")))
    rsi_long = _float_or_none(body.get("rsiLong", body.get("rsi1h")))
    return AlertEvent(
        symbol=str(body["symbol"]),
        action=str(body.get("action") or BUY_ACTION),
        rsi_short=rsi_short if rsi_short is not None else 0.0,
        rsi_long=rsi_long if rsi_long is not None else 0.0,
        market_cap=str(body.get("marketCap") or "N/A"),
        token_address=str(
            body.get("tokenAddress") or body.get("tokenContractAddress") or ""
        ),
    )


@router.get("/rsi")
async def get_rsi(request: Request) -> JSONResponse:
    """All indicator snapshots from ``rsi_data``."""
    store = request.app.state.store
    return envelope(await store.get_indicators())


@router.get("/pairs")
async def get_pairs(request: Request) -> JSONResponse:
    """All tracked pair documents."""
    store = request.app.state.store
    return envelope(await store.get_pairs())


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Scheduler loop state and notification backlog."""
    scheduler = request.app.state.scheduler
    dispatcher = request.app.state.dispatcher
    database = request.app.state.database
    return envelope(
        {
            "scheduler": scheduler.get_status(),
            "notifications": {
                "pending": dispatcher.pending,
                "dispatched": dispatcher.dispatched,
            },
            "store_connected": database.is_connected,
        }
    )


@router.post("/send-emails")
async def send_emails(request: Request) -> JSONResponse:
    """Accept an alert payload and deliver it in the background (202)."""
    try:
        body = await request.json()
    except Exception:
        return envelope(error="Invalid JSON body", status_code=400)

    if not isinstance(body, dict) or not body.get("symbol"):
        return envelope(error="Invalid token information provided.", status_code=400)

    try:
        alert = _alert_from_body(body)
    except (TypeError, ValueError) as e:
        return envelope(error=f"Invalid token information provided: {e}", status_code=400)

    request.app.state.dispatcher.dispatch(alert)
    log.info("manual_alert_accepted", symbol=alert.symbol)
    return envelope(
        {"message": "Email alert process triggered successfully."}, status_code=202
    )
