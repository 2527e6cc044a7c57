"""Runtime configuration helpers for the account exporter."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from africastalking_account.ussd_sessions.errors import ConfigError

DEFAULT_BASE_URL = "https://account.africastalking.com/api/v1"
DEFAULT_HTTP_TIMEOUT = 60.0

ENV_APP_ID = "AFRICASTALKING_APP_ID"
ENV_ACCOUNT_EMAIL = "AFRICASTALKING_ACCOUNT_EMAIL"
ENV_ACCOUNT_PASSWORD = "AFRICASTALKING_ACCOUNT_PASSWORD"
ENV_BASE_URL = "AFRICASTALKING_BASE_URL"
ENV_HTTP_TIMEOUT = "AFRICASTALKING_HTTP_TIMEOUT"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_app_id() -> Optional[str]:
    return _get_env(ENV_APP_ID)


def get_account_email() -> Optional[str]:
    return _get_env(ENV_ACCOUNT_EMAIL)


def get_account_password() -> Optional[str]:
    return _get_env(ENV_ACCOUNT_PASSWORD)


def get_base_url() -> str:
    return (_get_env(ENV_BASE_URL) or DEFAULT_BASE_URL).rstrip("/")


def get_http_timeout() -> float:
    raw = _get_env(ENV_HTTP_TIMEOUT)
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError([f"{ENV_HTTP_TIMEOUT} (not a number: {raw!r})"]) from exc


@lru_cache(maxsize=1)
def config_snapshot() -> dict:
    """Return a cached snapshot of env-driven config, secrets redacted."""
    return {
        "app_id": get_app_id(),
        "account_email": get_account_email(),
        "account_password": "***" if get_account_password() else None,
        "base_url": get_base_url(),
        "http_timeout": get_http_timeout(),
    }


@dataclass
class Settings:
    app_id: Optional[str]
    account_email: Optional[str]
    account_password: Optional[str]
    base_url: str = DEFAULT_BASE_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def require(self) -> "Settings":
        missing: List[str] = []
        if not self.app_id:
            missing.append(ENV_APP_ID)
        if not self.account_email:
            missing.append(ENV_ACCOUNT_EMAIL)
        if not self.account_password:
            missing.append(ENV_ACCOUNT_PASSWORD)
        if missing:
            raise ConfigError(missing)
        return self


def get_settings() -> Settings:
    # Not cached: the password never goes through config_snapshot().
    return Settings(
        app_id=get_app_id(),
        account_email=get_account_email(),
        account_password=get_account_password(),
        base_url=get_base_url(),
        http_timeout=get_http_timeout(),
    )
