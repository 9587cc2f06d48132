"""Order ledger API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from millsync import __version__

from .env import float_env_var, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_LIST_PATH = "/api/order/external/list"
DEFAULT_CREATE_PATH = "/api/order/external/create"
DEFAULT_UPDATE_PATH = "/api/order/external/update"
DEFAULT_TIMEOUT_SECONDS = 15.0
HEALTH_TIMEOUT_SECONDS = 10.0
USER_AGENT = f"millsync/{__version__}"


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Endpoints and transport settings for the remote order ledger."""

    list_path: str
    create_path: str
    update_path: str
    resilience: ResilienceConfig
    health_timeout_seconds: float = HEALTH_TIMEOUT_SECONDS


def build_ledger_resilience(
    base_url: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="ledger",
        base_url=base_url.rstrip("/"),
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=4, per_seconds=1.0),
        default_headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
    )


def get_ledger_config() -> LedgerConfig:
    values = require_env_vars(("MILLSYNC_LEDGER_BASE_URL",))
    timeout = float_env_var("MILLSYNC_LEDGER_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    return LedgerConfig(
        list_path=optional_env_var("MILLSYNC_LEDGER_LIST_PATH") or DEFAULT_LIST_PATH,
        create_path=optional_env_var("MILLSYNC_LEDGER_CREATE_PATH") or DEFAULT_CREATE_PATH,
        update_path=optional_env_var("MILLSYNC_LEDGER_UPDATE_PATH") or DEFAULT_UPDATE_PATH,
        resilience=build_ledger_resilience(
            values["MILLSYNC_LEDGER_BASE_URL"],
            timeout_seconds=timeout,
        ),
    )
