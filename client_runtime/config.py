from __future__ import annotations

from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


class Settings(BaseModel):
    base_url: str = os.getenv("HTTP_CLIENT_BASE_URL", "http://localhost:8000")
    timeout_ms: int = int(os.getenv("HTTP_CLIENT_TIMEOUT_MS", "5000"))
    user_agent: str = os.getenv("HTTP_CLIENT_USER_AGENT", "http-client/0.1")
    audit_log_path: str = os.getenv("HTTP_CLIENT_AUDIT_LOG_PATH", "")
    metrics_enabled: bool = os.getenv("HTTP_CLIENT_METRICS_ENABLED", "true").lower() == "true"


settings = Settings()
