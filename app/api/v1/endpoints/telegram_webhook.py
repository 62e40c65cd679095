# app/api/v1/endpoints/telegram_webhook.py
import hmac
import logging
from typing import Any, Dict, Optional

from aiogram.types import Update
from fastapi import APIRouter, Body, Header, HTTPException, Request, status
from pydantic import ValidationError

from app.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_secret_token(provided: Optional[str], expected: Optional[str]) -> bool:
    """
    Check Telegram's X-Telegram-Bot-Api-Secret-Token header.

    No configured secret means every request is accepted.
    """
    if not expected:
        return True
    if not provided:
        return False
    # constant-time comparison
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    payload: Dict[str, Any] = Body(...),
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
):
    """
    Receive one Telegram update and feed it to the aiogram dispatcher.

    Telegram retries on non-2xx answers, so anything that goes wrong while
    handling the update is logged by the dispatcher and still answered with 200.
    """
    if not verify_secret_token(x_telegram_bot_api_secret_token, settings.TELEGRAM_WEBHOOK_SECRET):
        logger.warning(f"Rejected webhook call with bad secret token (update {payload.get('update_id')})")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid secret token",
        )

    runtime = request.app.state.runtime
    try:
        update = Update.model_validate(payload, context={"bot": runtime.bot})
    except ValidationError as e:
        logger.warning(f"Malformed update: {e.error_count()} validation error(s)")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Malformed update",
        )

    await runtime.dispatcher.feed_update(runtime.bot, update)
    return {"ok": True}
