# utils/twilio_client.py

import logging
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from utils.logger import get_logger, mask_phone

logger = get_logger("twilio_client")


def build_client(config) -> TwilioClient:
    """
    Build a Twilio client from the sweep configuration.
    """
    client = TwilioClient(config.twilio_account_sid, config.twilio_auth_token)
    logger.info("Twilio client initialized successfully")
    return client


class TwilioSender:
    """
    Sends one SMS per call and reports success as a bool.

    Uses the Messaging Service when one is configured, otherwise the
    plain `from_` number. A failed send is logged and not retried.
    """

    def __init__(
        self,
        client,
        messaging_service_sid: Optional[str] = None,
        from_number: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if not (messaging_service_sid or from_number):
            raise RuntimeError("No messaging_service_sid or from_number set")

        self.client = client
        self.messaging_service_sid = messaging_service_sid
        self.from_number = from_number
        self.log = logger or get_logger("twilio_client")

    def send(self, to: str, body: str) -> bool:
        payload = {"to": to, "body": body}
        if self.messaging_service_sid:
            # Twilio expects "messaging_service_sid", not "msid"
            payload["messaging_service_sid"] = self.messaging_service_sid
        else:
            payload["from_"] = self.from_number

        try:
            resp = self.client.messages.create(**payload)
        except TwilioRestException as e:
            self.log.error(
                "twilio.send_rejected",
                extra={"to": mask_phone(to), "status": e.status, "code": e.code, "error": e.msg},
            )
            return False
        except Exception as e:
            self.log.error(
                "twilio.send_error",
                extra={"to": mask_phone(to), "error": str(e)},
                exc_info=True,
            )
            return False

        self.log.info(
            "twilio.sent",
            extra={"sid": getattr(resp, "sid", "<no-sid>"), "to": mask_phone(to)},
        )
        return True


class DryRunSender:
    """Logs the message instead of sending it; always reports success."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or get_logger("twilio_client")

    def send(self, to: str, body: str) -> bool:
        self.log.info(
            "twilio.dry_run",
            extra={"to": mask_phone(to), "body_preview": body[:80]},
        )
        return True
