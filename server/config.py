import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env.dev"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    load_dotenv()

class ServerConfig:
    def __init__(
        self,
        database_url: Optional[str] = None,
        cron_secret: Optional[str] = None,
    ) -> None:
        self.DATABASE_URL = database_url or os.getenv(
            "DATABASE_URL", "postgresql://postgres@localhost:5432/reminderbot"
        )
        # Bearer token the external cron must present on /internals/sweep
        self.CRON_SECRET = cron_secret or os.getenv("CRON_SECRET")

config = ServerConfig()
