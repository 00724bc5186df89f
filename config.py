import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()


class PlannerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_name: str = "solar_planner"
    advisory_model: str = "gemini-2.5-flash"
    advisory_enabled: bool = True
    google_api_key: str = ""
    cors_origins: List[str] = ["http://localhost:3000"]
    log_level: str = "INFO"
    port: int = 3001


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> PlannerConfig:
    """Read settings from the environment (.env is loaded on import)."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    api_key = os.getenv("GOOGLE_API_KEY", "")
    return PlannerConfig(
        app_name=os.getenv("APP_NAME", "solar_planner"),
        advisory_model=os.getenv("ADVISORY_MODEL", "gemini-2.5-flash"),
        # no key means no remote advisor; recommendations stay rule-based
        advisory_enabled=_flag(os.getenv("ADVISORY_ENABLED", "true")) and bool(api_key),
        google_api_key=api_key,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.environ.get("PORT", 3001)),
    )
