import logging
from datetime import datetime
from typing import Callable, Mapping, Optional, Sequence, Tuple

import pytz

from reminder_worker.config import config as worker_config
from reminder_worker.errors import ClassificationError, DeliveryError, StoreError
from .handlers import HELP_TEXT, handle_intent

logger = logging.getLogger(__name__)


def extract_message(body: Mapping) -> Optional[Tuple[str, str]]:
    """(sender, text) of the first inbound message, or None for status callbacks and empty payloads."""
    value = (body.get("entry") or [{}])[0].get("changes", [{}])[0].get("value", {})

    if value.get("statuses"):
        return None

    messages = value.get("messages")
    if not messages:
        return None

    msg = messages[0]
    contacts = value.get("contacts", [])
    sender = contacts[0].get("wa_id") if contacts else msg.get("from")
    text = (
        (msg.get("text") or {}).get("body")
        or (msg.get("button") or {}).get("text")
        or ((msg.get("interactive") or {}).get("list_reply") or {}).get("title")
        or ""
    )
    if not sender:
        return None
    return sender, text.strip()


def handle_webhook(
    body: Mapping,
    store,
    classifier: Callable,
    channel,
    now: Optional[datetime] = None,
    tz=None,
    nudge_times: Optional[Sequence[str]] = None,
) -> Tuple[Mapping, int]:
    """
    Process one inbound WhatsApp webhook and answer the sender.

    Always returns 200: WhatsApp retries anything else, and a retried message
    would create the reminder twice.
    """
    now = now or datetime.now(pytz.utc)
    tz = tz or worker_config.tz
    nudge_times = nudge_times or worker_config.NUDGE_TIMES

    try:
        extracted = extract_message(body)
    except (AttributeError, IndexError, TypeError) as e:
        logger.warning(f"Malformed webhook payload: {e}")
        return {"status": "ok"}, 200

    if extracted is None:
        return {"status": "ok"}, 200

    sender, text = extracted
    logger.info(f"Received from {sender}: {text}")

    if not text:
        reply = HELP_TEXT
    else:
        try:
            user_id = store.upsert_user(sender)
        except StoreError as e:
            logger.error(f"Could not register {sender}: {e}")
            reply = "Sorry, something went wrong on our side. Please try again in a moment."
        else:
            try:
                intent = classifier(text, now, tz)
            except ClassificationError as e:
                logger.warning(f"Classification failed for {sender}: {e}")
                reply = HELP_TEXT
            else:
                reply = handle_intent(intent, user_id, store, now, tz, nudge_times)

    logger.info(f"Response generated: {reply}")

    try:
        channel.deliver(sender, reply)
    except DeliveryError as e:
        logger.error(f"Failed to reply to {sender}: {e}")

    return {"status": "ok"}, 200
