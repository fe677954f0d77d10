from dataclasses import dataclass
import os

DEFAULT_SCHOLAR_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36 "
    "citeanalyzer/1.0"
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    return float(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip() or default


@dataclass(frozen=True)
class Settings:
    log_level: str = _env_str("LOG_LEVEL", "INFO")
    log_format: str = _env_str("LOG_FORMAT", "console")
    log_redact_fields: str = os.getenv("LOG_REDACT_FIELDS", "")
    log_include_http_client: bool = _env_bool("LOG_INCLUDE_HTTP_CLIENT", False)
    scholar_http_user_agent: str = _env_str("SCHOLAR_HTTP_USER_AGENT", DEFAULT_SCHOLAR_USER_AGENT)
    scholar_http_accept_language: str = _env_str("SCHOLAR_HTTP_ACCEPT_LANGUAGE", "en-US,en;q=0.9")
    scholar_http_timeout_seconds: float = _env_float("SCHOLAR_HTTP_TIMEOUT_SECONDS", 30.0)
    extraction_max_publications: int = _env_int("EXTRACTION_MAX_PUBLICATIONS", 100)
    extraction_rate_limit_seconds: float = _env_float("EXTRACTION_RATE_LIMIT_SECONDS", 5.0)
    extraction_retry_attempts: int = _env_int("EXTRACTION_RETRY_ATTEMPTS", 3)
    extraction_max_workers: int = _env_int("EXTRACTION_MAX_WORKERS", 4)
    profile_cache_dir: str = os.getenv("PROFILE_CACHE_DIR", "")


settings = Settings()
