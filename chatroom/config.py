import os
from functools import lru_cache
from typing import Optional

if os.getenv("ENV", "development") != "production":
    import dotenv
    dotenv.load_dotenv()


class Settings:
    """Runtime configuration, read from the environment.

    Outside production a local ``.env`` file is loaded first.
    """

    def __init__(self):
        self.env: str = os.getenv("ENV", "development")
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
        self.openai_base_url: Optional[str] = os.getenv("OPENAI_BASE_URL") or None
        self.openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o")
        self.db_path: str = os.getenv("DB_PATH", "db.json")
        self.poll_interval: float = float(os.getenv("POLL_INTERVAL", "1.0"))
        self.host: str = os.getenv("HOST", "127.0.0.1")
        self.port: int = int(os.getenv("PORT", "3002"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
