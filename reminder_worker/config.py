import os
from pathlib import Path
from typing import List, Optional
import pytz
from dotenv import load_dotenv

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env.dev"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    load_dotenv()

DEFAULT_TIMEZONE = "Europe/Berlin"
DEFAULT_NUDGE_TIMES = "09:00,18:00"


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ReminderWorkerConfig:
    def __init__(
        self,
        timezone: Optional[str] = None,
        delivery_timeout: Optional[float] = None,
        scheduler_enabled: Optional[bool] = None,
        nudge_times: Optional[List[str]] = None,
    ) -> None:
        self.TIMEZONE = timezone or os.getenv("TIMEZONE", DEFAULT_TIMEZONE)
        self.DELIVERY_TIMEOUT_SECONDS = (
            delivery_timeout
            if delivery_timeout is not None
            else float(os.getenv("DELIVERY_TIMEOUT_SECONDS", "15"))
        )
        self.SCHEDULER_ENABLED = (
            scheduler_enabled
            if scheduler_enabled is not None
            else _as_bool(os.getenv("SCHEDULER_ENABLED"), True)
        )
        raw_nudges = os.getenv("NUDGE_TIMES", DEFAULT_NUDGE_TIMES)
        self.NUDGE_TIMES = nudge_times or [t.strip() for t in raw_nudges.split(",") if t.strip()]

        # Fail at startup, not on the first sweep
        self.tz = pytz.timezone(self.TIMEZONE)


config = ReminderWorkerConfig()
