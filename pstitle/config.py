from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    api_token: str
    record_count: int
    skip: int
    delay_rate_limit_ms: int
    delay_auth_ms: int
    delay_retrieve_ms: int
    delay_persist_ms: int
    persist_workers: int
    event_timeout_seconds: float
    backend: str
    show_progress: bool
    use_color: bool


BACKENDS = ("threads", "asyncio")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "pstitle"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./pstitle.db"),
        log_level=os.getenv("LOG_LEVEL", "WARNING"),
        api_token=os.getenv("PSTITLE_API_TOKEN", "anonymous"),
        record_count=int(os.getenv("RECORD_COUNT", "50")),
        skip=int(os.getenv("RECORD_SKIP", "0")),
        delay_rate_limit_ms=int(os.getenv("DELAY_RATE_LIMIT_MS", "50")),
        delay_auth_ms=int(os.getenv("DELAY_AUTH_MS", "20")),
        delay_retrieve_ms=int(os.getenv("DELAY_RETRIEVE_MS", "50")),
        delay_persist_ms=int(os.getenv("DELAY_PERSIST_MS", "10")),
        persist_workers=int(os.getenv("PERSIST_WORKERS", "10")),
        event_timeout_seconds=float(os.getenv("EVENT_TIMEOUT_SECONDS", "30")),
        backend=os.getenv("PSTITLE_BACKEND", "threads"),
        show_progress=_env_flag("SHOW_PROGRESS", True),
        # https://no-color.org: any non-empty value disables colour.
        use_color=not os.getenv("NO_COLOR"),
    )
