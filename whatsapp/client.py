"""
Thin client for the WhatsApp Cloud API messages endpoint.

Calls never raise: the caller gets ``(response_body, status_code)`` and
decides what a non-200 means.
"""
import logging
from typing import Dict, Mapping, Optional, Tuple

import requests

from .config import WhatsAppConfig

logger = logging.getLogger(__name__)

GRAPH_URL = "https://graph.facebook.com"
DEFAULT_TIMEOUT = 15
MAX_TEXT_LENGTH = 4096

Result = Tuple[Mapping, int]


def messages_url(cfg: WhatsAppConfig) -> str:
    return f"{GRAPH_URL}/{cfg.VERSION}/{cfg.PHONE_NUMBER_ID}/messages"


def text_message(recipient: str, body: str) -> Dict:
    if len(body) > MAX_TEXT_LENGTH:
        logger.warning(f"Truncating {len(body)}-char message to {MAX_TEXT_LENGTH}")
        body = body[:MAX_TEXT_LENGTH]
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": recipient,
        "type": "text",
        "text": {"preview_url": False, "body": body},
    }


def _error(message: str, status: int) -> Result:
    return {"status": "error", "message": message}, status


def send_whatsapp_text(
    to: str,
    text: str,
    config: Optional[WhatsAppConfig] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Result:
    """
    Send a plain text message.

    Status codes: 200 when the API accepted it, 408 on timeout, 500 when
    unconfigured or unreachable, otherwise whatever the API answered.
    """
    cfg = config or WhatsAppConfig()
    if not cfg.is_configured:
        logger.error("WhatsApp is not configured; dropping outbound message")
        return _error("Missing configuration", 500)
    if not to:
        logger.error("Outbound message has no recipient")
        return _error("Missing recipient", 500)

    try:
        resp = requests.post(
            messages_url(cfg),
            json=text_message(to, text),
            headers={"Authorization": f"Bearer {cfg.ACCESS_TOKEN}"},
            timeout=timeout,
        )
    except requests.Timeout:
        logger.error(f"WhatsApp request to {to} timed out after {timeout}s")
        return _error("Request timed out", 408)
    except requests.RequestException as e:
        logger.error(f"WhatsApp request to {to} failed: {e}")
        return _error("Failed to send message", 500)

    try:
        body = resp.json()
    except ValueError:
        body = {"status": "error", "message": resp.text}

    if resp.status_code != 200:
        logger.error(f"WhatsApp rejected message to {to}: {resp.status_code} {body}")
    return body, resp.status_code
