from dotenv import load_dotenv
from pydantic import BaseModel, Field
import os

load_dotenv()

def _to_bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}

def _to_int(v: str | None, default: int) -> int:
    if v is None or not v.strip():
        return default
    return int(v.strip())

def _to_list(v: str | None, default: list[str]) -> list[str]:
    if v is None or not v.strip():
        return list(default)
    return [x.strip().lower() for x in v.split(",") if x.strip()]

def _to_float(v: str | None, default: float) -> float:
    if v is None or not v.strip():
        return default
    return float(v.strip())


DEFAULT_ALLOWED_HOSTS = ["github", "gitlab"]


class Settings(BaseModel):
    hn_base_url: str = Field(default="https://hacker-news.firebaseio.com/v0/")
    http_timeout: float = Field(default=20.0, gt=0)

    allowed_hosts: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_HOSTS))

    target_count: int = Field(default=30, ge=1)
    max_concurrency: int = Field(default=10, ge=1)
    admission_delay_ms: int = Field(default=10, ge=0)
    preserve_rank_order: bool = Field(default=False)

    cache_ttl_seconds: int = Field(default=30 * 60, ge=0)
    cache_sweep_seconds: int = Field(default=10 * 60, ge=0)

    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/codehn.log")

    @property
    def admission_delay(self) -> float:
        return self.admission_delay_ms / 1000.0


_settings: Settings | None = None

def get_settings() -> Settings:
    global _settings
    if _settings is not None:
        return _settings

    _settings = Settings(
        hn_base_url=os.getenv("HN_BASE_URL", "https://hacker-news.firebaseio.com/v0/"),
        http_timeout=_to_float(os.getenv("HTTP_TIMEOUT"), 20.0),
        allowed_hosts=_to_list(os.getenv("ALLOWED_HOSTS"), DEFAULT_ALLOWED_HOSTS),
        target_count=_to_int(os.getenv("TARGET_COUNT"), 30),
        max_concurrency=_to_int(os.getenv("MAX_CONCURRENCY"), 10),
        admission_delay_ms=_to_int(os.getenv("ADMISSION_DELAY_MS"), 10),
        preserve_rank_order=_to_bool(os.getenv("PRESERVE_RANK_ORDER"), False),
        cache_ttl_seconds=_to_int(os.getenv("CACHE_TTL_SECONDS"), 30 * 60),
        cache_sweep_seconds=_to_int(os.getenv("CACHE_SWEEP_SECONDS"), 10 * 60),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=os.getenv("LOG_FILE", "logs/codehn.log"),
    )
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
