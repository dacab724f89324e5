from typing import Optional
from fastapi import Header, HTTPException
from server.database import SessionLocal
from server.store import ReminderStore
from server.config import config

def get_store() -> ReminderStore:
    return ReminderStore(SessionLocal)

def get_channel():
    from whatsapp.channel import default_channel
    return default_channel()

def get_classifier():
    from llm.main import classify_message
    return classify_message

def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>` when a secret is configured."""
    if not config.CRON_SECRET:
        return
    if authorization != f"Bearer {config.CRON_SECRET}":
        raise HTTPException(status_code=401, detail="Unauthorized")
