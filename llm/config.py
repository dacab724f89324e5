import os
from pathlib import Path
from dotenv import load_dotenv

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env.dev"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=True)
else:
    load_dotenv()

class LLMConfig:
    def __init__(self) -> None:
        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
        self.LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
        # Any OpenAI-compatible endpoint (e.g. Groq) works here
        self.LLM_BASE_URL = os.getenv("LLM_BASE_URL")

config = LLMConfig()
