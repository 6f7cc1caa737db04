import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    env: str
    listen_host: str
    listen_port: int
    api_prefix: str
    upstream_base_url: str
    upstream_user_agent: str
    upstream_timeout_seconds: float
    counter_delay_seconds: float
    keep_alive_seconds: int
    log_level: str


def _port(raw: str) -> int:
    port = int(raw)
    if not 0 <= port <= 65535:
        raise ValueError(f"APP_PORT out of range: {port}")
    return port


def _non_negative(name: str, raw: str) -> float:
    value = float(raw)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def _positive(name: str, raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def get_settings() -> Settings:
    env = os.getenv("APP_ENV", "dev").lower()
    listen_host = os.getenv("APP_HOST", "localhost")
    listen_port = _port(os.getenv("APP_PORT", "8080"))
    # "/api/v1/" and "api/v1" both normalize to "/api/v1"
    api_prefix = "/" + os.getenv("APP_API_PREFIX", "/api/v1").strip("/")
    if api_prefix == "/":
        api_prefix = ""
    upstream_base_url = os.getenv("APP_UPSTREAM_BASE_URL", "https://api.github.com").rstrip("/")
    # GitHub rejects requests without a User-Agent
    upstream_user_agent = os.getenv("APP_UPSTREAM_USER_AGENT", "request")
    upstream_timeout_seconds = _positive("APP_UPSTREAM_TIMEOUT", os.getenv("APP_UPSTREAM_TIMEOUT", "10.0"))
    counter_delay_seconds = _non_negative("APP_COUNTER_DELAY", os.getenv("APP_COUNTER_DELAY", "0.0"))
    keep_alive_seconds = int(_non_negative("APP_KEEP_ALIVE", os.getenv("APP_KEEP_ALIVE", "3600")))
    log_level = os.getenv("APP_LOG_LEVEL", "INFO").upper()
    return Settings(
        env=env,
        listen_host=listen_host,
        listen_port=listen_port,
        api_prefix=api_prefix,
        upstream_base_url=upstream_base_url,
        upstream_user_agent=upstream_user_agent,
        upstream_timeout_seconds=upstream_timeout_seconds,
        counter_delay_seconds=counter_delay_seconds,
        keep_alive_seconds=keep_alive_seconds,
        log_level=log_level,
    )
