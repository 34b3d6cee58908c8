import json
from datetime import date
from typing import Optional

from config import ConfigError, load_config
from sweep import run_sweep
from utils.adalo_client import AdaloStore, StoreError
from utils.logger import get_logger
from utils.twilio_client import DryRunSender, TwilioSender, build_client

logger = get_logger("reminders")

# Built once per container, on first invocation
_runtime = None


def _build_runtime():
    config = load_config()
    store = AdaloStore(config)
    if config.dry_run:
        sender = DryRunSender()
    else:
        sender = TwilioSender(
            build_client(config),
            messaging_service_sid=config.messaging_service_sid,
            from_number=config.from_number,
        )
    return config, store, sender


def _get_runtime():
    global _runtime
    if _runtime is None:
        _runtime = _build_runtime()
    return _runtime


def _requested_date(event: dict) -> Optional[str]:
    """
    Pull an optional YYYY-MM-DD override from the invocation.

    - EventBridge schedule: no override.
    - HTTP API: ?date=2025-06-01 or a JSON body {"date": "..."}.
    - Direct invoke: {"date": "..."}.
    """
    if not isinstance(event, dict):
        return None

    query = event.get("queryStringParameters") or {}
    if query.get("date"):
        return query["date"]

    body = event.get("body")
    if isinstance(body, str) and body.strip():
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            body = None
    if isinstance(body, dict) and body.get("date"):
        return body["date"]

    return event.get("date") or None


def _response(status_code: int, payload: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def lambda_handler(event, context):
    logger.info(
        "reminders.lambda_start",
        extra={
            "request_id": getattr(context, "aws_request_id", None),
            "source": event.get("source") if isinstance(event, dict) else None,
        },
    )

    # 1) Configuration (fatal before any fetch)
    try:
        config, store, sender = _get_runtime()
    except ConfigError as e:
        logger.error("reminders.config_error", extra={"error": str(e)})
        return _response(500, {"error": "server_misconfigured"})

    # 2) Optional date override
    requested = _requested_date(event)
    as_of = None
    if requested:
        try:
            as_of = date.fromisoformat(str(requested).strip())
        except ValueError as e:
            logger.warning("reminders.invalid_date", extra={"date": requested, "error": str(e)})
            return _response(400, {"error": "invalid_date"})

    # 3) Sweep
    try:
        result = run_sweep(config, store, sender, as_of=as_of)
    except StoreError as e:
        logger.error(
            "reminders.store_fetch_failed",
            extra={"error": str(e), "status": e.status_code},
        )
        return _response(502, {"error": "store_fetch_failed", "detail": str(e)})
    except Exception as e:
        logger.error(
            "reminders.sweep_error",
            extra={"error": str(e)},
            exc_info=True,
        )
        return _response(500, {"error": "sweep_failed"})

    return _response(200, {"ok": True, **result.to_dict()})
