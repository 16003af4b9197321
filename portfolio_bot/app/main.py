import hmac
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Header, Request, status

from .dependencies import get_chat_service, get_shared_secret
from ..services.chat import ChatService
from .schemas import SessionRead, TelegramUpdate, WebhookResponse

logger = logging.getLogger(__name__)

app = FastAPI(title="Portfolio Bot")

# --- Endpoints ---

@app.post("/webhook", response_model=WebhookResponse)
async def webhook(
    request: Request,
    secret: Optional[str] = None,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
    shared_secret: str = Depends(get_shared_secret),
    service: ChatService = Depends(get_chat_service),
):
    """
    Receives one Telegram update. The shared secret may arrive in the header
    Telegram sets for registered webhooks or in the '?secret=' query.

    Anything past authentication answers 200: Telegram would otherwise
    redeliver an update we can never process.
    """
    provided = x_telegram_bot_api_secret_token or secret
    if not provided or not hmac.compare_digest(provided.encode(), shared_secret.encode()):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    try:
        body = await request.json()
        update = TelegramUpdate.model_validate(body)
    except ValueError as e:
        # ValidationError is a ValueError too
        logger.warning(f"Dropping malformed update: {e}")
        return WebhookResponse(status="ignored")

    event = update.to_event()
    if event is None:
        logger.info(f"Ignoring unsupported update {update.update_id}")
        return WebhookResponse(status="ignored")

    saved = await service.process_event(event, update.sender_profile())
    return WebhookResponse(status="ok" if saved else "failed")


@app.get("/sessions/{identity}", response_model=SessionRead)
def get_session(
    identity: int,
    service: ChatService = Depends(get_chat_service)
):
    """
    Retrieves the stored routing state of one user.
    """
    session = service.get_session(identity)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionRead(
        identity=session.identity,
        status="IN_STEP" if session.in_step else "AT_NODE",
        current_node=session.current_node,
        progress=[frame.model_dump(mode="json") for frame in session.progress or []] or None,
        privileged=session.privileged,
        updated_at=session.updated_at,
    )
