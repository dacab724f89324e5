import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# whatsapp/.env wins over the process environment when present
package_env = Path(__file__).resolve().parent / ".env"
if package_env.exists():
    load_dotenv(dotenv_path=package_env, override=True)
else:
    load_dotenv()

DEFAULT_GRAPH_VERSION = "v21.0"


class WhatsAppConfig:
    """Cloud API credentials; explicit arguments override the environment."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        version: Optional[str] = None,
        phone_number_id: Optional[str] = None,
    ) -> None:
        self.ACCESS_TOKEN = access_token or os.getenv("ACCESS_TOKEN")
        self.VERSION = version or os.getenv("VERSION") or DEFAULT_GRAPH_VERSION
        self.PHONE_NUMBER_ID = phone_number_id or os.getenv("PHONE_NUMBER_ID")

    @property
    def missing(self):
        return [
            name for name, value in (("ACCESS_TOKEN", self.ACCESS_TOKEN), ("PHONE_NUMBER_ID", self.PHONE_NUMBER_ID))
            if not value
        ]

    @property
    def is_configured(self) -> bool:
        return not self.missing

    def log_missing(self) -> None:
        if self.missing:
            logger.warning(f"⚠️  WhatsApp messaging disabled: missing {', '.join(self.missing)}")
