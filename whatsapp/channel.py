"""
Delivery channel used by the reminder dispatcher.

``deliver`` either returns (the message was accepted) or raises
``DeliveryError``; a timeout is a failure, never a speculative success.
"""
import logging
from typing import Optional, Protocol

from reminder_worker.config import config as worker_config
from reminder_worker.errors import DeliveryError
from .client import send_whatsapp_text
from .config import WhatsAppConfig

logger = logging.getLogger(__name__)


class Channel(Protocol):
    def deliver(self, address: str, text: str) -> None:
        ...


class WhatsAppChannel:
    def __init__(self, config: Optional[WhatsAppConfig] = None, timeout: Optional[float] = None) -> None:
        self.config = config or WhatsAppConfig()
        self.timeout = timeout if timeout is not None else worker_config.DELIVERY_TIMEOUT_SECONDS

    def deliver(self, address: str, text: str) -> None:
        result, status_code = send_whatsapp_text(address, text, config=self.config, timeout=self.timeout)
        if status_code != 200:
            raise DeliveryError(f"WhatsApp returned {status_code}: {result}")


def default_channel() -> WhatsAppChannel:
    channel = WhatsAppChannel()
    channel.config.log_missing()
    return channel
