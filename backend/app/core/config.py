from pydantic import BaseModel, ConfigDict
from functools import lru_cache
import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Provider credentials must come from the environment (.env not committed).
    mux_token_id: str = os.getenv("MUX_TOKEN_ID", "")
    mux_token_secret: str = os.getenv("MUX_TOKEN_SECRET", "")
    mux_base_url: str = os.getenv("MUX_BASE_URL", "https://api.mux.com")
    mux_test_assets: bool = _env_flag("MUX_TEST_ASSETS")
    mux_timeout_seconds: float = float(os.getenv("MUX_TIMEOUT_SECONDS", "30"))
    mux_verify_on_startup: bool = _env_flag("MUX_VERIFY_ON_STARTUP")
    webhook_provider: str = os.getenv("WEBHOOK_PROVIDER", "mux")
    # Origin the provider should accept direct uploads from
    frontend_url: str = os.getenv("FRONTEND_URL", "*")
    cors_origins: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./app.db")
    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    model_config = ConfigDict(arbitrary_types_allowed=True)


@lru_cache
def get_settings() -> Settings:
    return Settings()
