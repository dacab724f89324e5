import logging
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from server.dependencies import get_channel, get_classifier, get_store
from whatsapp.webhook import handle_webhook

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("")
async def webhook_receive(
    request: Request,
    store = Depends(get_store),
    classifier = Depends(get_classifier),
    channel = Depends(get_channel),
) -> JSONResponse:
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        body = {}
    # Classifier, store and Graph API calls all block
    content, status = await run_in_threadpool(handle_webhook, body, store, classifier, channel)
    return JSONResponse(content, status_code=status)
