import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from app.api.deps import get_coordinator
from app.core.config import get_settings
from app.schemas.webhook import AssetErrored, MalformedEvent, parse_provider_event
from app.services.lifecycle import EventOutcome, VideoLifecycleCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

@router.post('/{provider}', response_class=PlainTextResponse)
async def provider_webhook(provider: str, request: Request, coordinator: VideoLifecycleCoordinator = Depends(get_coordinator)):
    """Receive provider notifications.

    Malformed bodies get a 400. An unmatched created/ready event gets a 404 so
    the provider's delivery log shows the miss; unmatched errored events are
    acknowledged like any other.
    """
    if provider != get_settings().webhook_provider:
        raise HTTPException(status_code=404, detail=f"Unknown webhook provider: {provider}")
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Webhook body is not valid JSON")
    try:
        event = parse_provider_event(payload)
    except MalformedEvent as e:
        logger.warning("Rejected malformed webhook: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    data = payload.get('data') if isinstance(payload.get('data'), dict) else {}
    logger.info("Webhook received: type=%s asset=%s upload=%s state=%s",
                payload.get('type'), data.get('id'), data.get('upload_id'), data.get('status'))
    if event is None:
        return PlainTextResponse("Webhook processed successfully")

    outcome = await coordinator.handle_provider_event(event)
    if outcome is EventOutcome.MISSED and not isinstance(event, AssetErrored):
        return PlainTextResponse("Video not found", status_code=404)
    return PlainTextResponse("Webhook processed successfully")
