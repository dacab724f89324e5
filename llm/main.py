import json
import logging
import time
from datetime import datetime
from typing import Optional

import openai
import pydantic

from reminder_worker.errors import ClassificationError
from reminder_worker.recurrence import localize
from server.enums import IntentAction
from server.schemas import ChatIntent, Intent, intent_adapter
from .config import config
from .prompt import STATIC_SYSTEM_INSTRUCTION

logger = logging.getLogger(__name__)

KNOWN_ACTIONS = {a.value for a in IntentAction}
RETRYABLE_ERRORS = (openai.APIConnectionError, openai.APITimeoutError, openai.RateLimitError)


def _get_client() -> openai.OpenAI:
    if not config.OPENAI_API_KEY:
        raise ClassificationError("OPENAI_API_KEY is not configured")
    if config.LLM_BASE_URL:
        return openai.OpenAI(api_key=config.OPENAI_API_KEY, base_url=config.LLM_BASE_URL)
    return openai.OpenAI(api_key=config.OPENAI_API_KEY)


def parse_intent(payload: dict, tz) -> Intent:
    """
    Validate raw classifier JSON into the closed intent union.

    Unknown actions fall back to chat; known actions with bad fields raise
    ``ClassificationError``. Naive datetimes are read as local time in ``tz``.
    """
    if not isinstance(payload, dict):
        raise ClassificationError(f"Classifier returned {type(payload).__name__}, expected an object")

    action = str(payload.get("action") or "").upper()
    if action not in KNOWN_ACTIONS:
        logger.info(f"Unknown action {payload.get('action')!r}, falling back to chat")
        return ChatIntent(action="CHAT")

    # Drop nulls so optional fields fall back to their defaults
    cleaned = {k: v for k, v in payload.items() if v is not None}
    cleaned["action"] = action

    try:
        intent = intent_adapter.validate_python(cleaned)
    except pydantic.ValidationError as e:
        raise ClassificationError(f"Invalid {action} payload: {e}") from e

    scheduled = getattr(intent, "scheduled_time", None)
    if scheduled is not None and scheduled.tzinfo is None:
        intent.scheduled_time = localize(tz, scheduled)
    return intent


def classify_message(
    text: str,
    now: datetime,
    tz,
    client: Optional[openai.OpenAI] = None,
    max_retries: int = 2,
) -> Intent:
    """
    Ask the LLM what the user wants and return a validated intent.

    Args:
        text: The user's message
        now: Current instant, used to resolve "tomorrow", "at 3pm", ...
        tz: Time zone the user's times are expressed in
        client: Optional pre-built OpenAI client
        max_retries: Retry attempts for transient API errors (default: 2)
    """
    client = client or _get_client()
    local_now = now.astimezone(tz)
    context = f"Current time: {local_now.isoformat()} ({tz.zone})"

    messages = [
        {"role": "system", "content": f"{STATIC_SYSTEM_INSTRUCTION}\n{context}"},
        {"role": "user", "content": text},
    ]

    last_error = None
    for attempt in range(max_retries + 1):
        try:
            logger.info(f"Classifying message: {text[:200]}")
            completion = client.chat.completions.create(
                model=config.LLM_MODEL,
                messages=messages,
                response_format={"type": "json_object"},
            )
            content = completion.choices[0].message.content or ""
            logger.info(f"LLM classification: {content}")
            break
        except RETRYABLE_ERRORS as e:
            last_error = e
            if attempt < max_retries:
                backoff_time = 0.5 * (attempt + 1)
                logger.warning(
                    f"Classifier call failed on attempt {attempt + 1}/{max_retries + 1}: {e}. "
                    f"Retrying in {backoff_time}s..."
                )
                time.sleep(backoff_time)
                continue
            logger.error(f"Classifier failed after {attempt + 1} attempts: {e}")
            raise ClassificationError(str(e)) from e
        except openai.OpenAIError as e:
            logger.error(f"Classifier request failed: {e}")
            raise ClassificationError(str(e)) from e
    else:
        raise ClassificationError(str(last_error) if last_error else "Unknown classifier error")

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Classifier returned invalid JSON: {content[:200]}") from e

    return parse_intent(payload, tz)
