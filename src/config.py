"""
Configuration for the reminder sweep.

Everything the sweep needs is read once per cold start into a frozen
SweepConfig and passed explicitly to the job; nothing below the handler
reads os.environ.

Environment variables:
  • ADALO_APP_ID                  - Adalo app id
  • ADALO_ORDERS_COLLECTION_ID    - Orders collection id
  • ADALO_USERS_COLLECTION_ID     - Users collection id
  • ADALO_API_KEY                 - Adalo API key (or ADALO_SECRET_NAME → {"api_key"})
  • ADALO_BASE_URL                - default https://api.adalo.com/v0
  • TWILIO_SECRET_NAME            - Secrets Manager secret with Twilio credentials (optional)
  • TWILIO_ACCOUNT_SID / TWILIO_AUTH_TOKEN
  • TWILIO_MESSAGING_SERVICE_SID / TWILIO_FROM_NUMBER  (one of them)
  • REMINDER_TIMEZONE             - zone defining "today" (default UTC)
  • DEFAULT_COUNTRY_CODE          - default 1
  • REQUIRE_PAID                  - only remind paid orders (default true)
  • PICKUP_MARKER_FIELD / RETURN_MARKER_FIELD
  • BRAND_NAME                    - SMS prefix (default GetSuited)
  • HTTP_TIMEOUT_SECONDS / ADALO_PAGE_SIZE
  • DRY_RUN                       - log messages instead of sending them
"""

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from utils.logger import get_logger
from utils.secrets import get_secret_json

logger = get_logger("config")

DEFAULT_ADALO_BASE_URL = "https://api.adalo.com/v0"


class ConfigError(RuntimeError):
    """Missing or invalid configuration; fatal before any fetch."""


@dataclass(frozen=True)
class SweepConfig:
    adalo_app_id: str
    orders_collection_id: str
    users_collection_id: str
    adalo_api_key: str
    twilio_account_sid: str
    twilio_auth_token: str
    messaging_service_sid: Optional[str] = None
    from_number: Optional[str] = None
    adalo_base_url: str = DEFAULT_ADALO_BASE_URL
    timezone: str = "UTC"
    country_code: str = "1"
    require_paid: bool = True
    pickup_marker_field: str = "pickup_sms_sent_at"
    return_marker_field: str = "return_sms_sent_at"
    brand: str = "GetSuited"
    request_timeout: float = 10.0
    page_size: int = 100
    dry_run: bool = False

    @property
    def tz(self) -> tzinfo:
        return _zone(self.timezone)


def _zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _twilio_credentials(env: Mapping[str, str]) -> dict:
    secret_name = env.get("TWILIO_SECRET_NAME")
    creds = {
        "account_sid": env.get("TWILIO_ACCOUNT_SID"),
        "auth_token": env.get("TWILIO_AUTH_TOKEN"),
        "messaging_service_sid": env.get("TWILIO_MESSAGING_SERVICE_SID"),
        "from_number": env.get("TWILIO_FROM_NUMBER"),
    }
    if not secret_name:
        return creds

    try:
        secret = get_secret_json(secret_name, env.get("AWS_REGION"))
    except RuntimeError as e:
        raise ConfigError(str(e)) from e

    # Support both "messaging_service_sid" and legacy "msid"
    creds.update(
        {
            "account_sid": secret.get("account_sid") or creds["account_sid"],
            "auth_token": secret.get("auth_token") or creds["auth_token"],
            "messaging_service_sid": (
                secret.get("messaging_service_sid")
                or secret.get("msid")
                or creds["messaging_service_sid"]
            ),
            "from_number": secret.get("from_number") or creds["from_number"],
        }
    )
    return creds


def _adalo_api_key(env: Mapping[str, str]) -> Optional[str]:
    secret_name = env.get("ADALO_SECRET_NAME")
    if not secret_name:
        return env.get("ADALO_API_KEY")
    try:
        secret = get_secret_json(secret_name, env.get("AWS_REGION"))
    except RuntimeError as e:
        raise ConfigError(str(e)) from e
    return secret.get("api_key") or env.get("ADALO_API_KEY")


def load_config(environ: Optional[Mapping[str, str]] = None) -> SweepConfig:
    """
    Build the sweep configuration from the environment (and Secrets Manager).

    Raises ConfigError naming every missing variable, or the first invalid one.
    """
    env = os.environ if environ is None else environ

    twilio = _twilio_credentials(env)
    api_key = _adalo_api_key(env)

    required = {
        "ADALO_APP_ID": env.get("ADALO_APP_ID"),
        "ADALO_ORDERS_COLLECTION_ID": env.get("ADALO_ORDERS_COLLECTION_ID"),
        "ADALO_USERS_COLLECTION_ID": env.get("ADALO_USERS_COLLECTION_ID"),
        "ADALO_API_KEY": api_key,
        "TWILIO_ACCOUNT_SID": twilio["account_sid"],
        "TWILIO_AUTH_TOKEN": twilio["auth_token"],
    }
    missing = [name for name, value in required.items() if not value]
    if not (twilio["messaging_service_sid"] or twilio["from_number"]):
        missing.append("TWILIO_MESSAGING_SERVICE_SID or TWILIO_FROM_NUMBER")

    if missing:
        msg = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(msg)
        raise ConfigError(msg)

    timezone_name = env.get("REMINDER_TIMEZONE") or "UTC"
    try:
        _zone(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Invalid REMINDER_TIMEZONE='{timezone_name}'") from e

    timeout_str = env.get("HTTP_TIMEOUT_SECONDS", "10")
    page_size_str = env.get("ADALO_PAGE_SIZE", "100")
    try:
        request_timeout = float(timeout_str)
        page_size = int(page_size_str)
    except ValueError as e:
        msg = (
            f"Invalid HTTP_TIMEOUT_SECONDS='{timeout_str}' or "
            f"ADALO_PAGE_SIZE='{page_size_str}'. Must be numeric."
        )
        logger.error(msg)
        raise ConfigError(msg) from e
    if page_size <= 0:
        raise ConfigError(f"Invalid ADALO_PAGE_SIZE='{page_size_str}'. Must be positive.")

    country_code = (env.get("DEFAULT_COUNTRY_CODE") or "1").lstrip("+")
    if not country_code.isdigit():
        raise ConfigError(f"Invalid DEFAULT_COUNTRY_CODE='{country_code}'")

    return SweepConfig(
        adalo_app_id=required["ADALO_APP_ID"],
        orders_collection_id=required["ADALO_ORDERS_COLLECTION_ID"],
        users_collection_id=required["ADALO_USERS_COLLECTION_ID"],
        adalo_api_key=api_key,
        twilio_account_sid=twilio["account_sid"],
        twilio_auth_token=twilio["auth_token"],
        messaging_service_sid=twilio["messaging_service_sid"] or None,
        from_number=twilio["from_number"] or None,
        adalo_base_url=(env.get("ADALO_BASE_URL") or DEFAULT_ADALO_BASE_URL).rstrip("/"),
        timezone=timezone_name,
        country_code=country_code,
        require_paid=_flag(env.get("REQUIRE_PAID"), True),
        pickup_marker_field=env.get("PICKUP_MARKER_FIELD") or "pickup_sms_sent_at",
        return_marker_field=env.get("RETURN_MARKER_FIELD") or "return_sms_sent_at",
        brand=env.get("BRAND_NAME") or "GetSuited",
        request_timeout=request_timeout,
        page_size=page_size,
        dry_run=_flag(env.get("DRY_RUN"), False),
    )
