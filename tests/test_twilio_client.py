import pytest
from twilio.base.exceptions import TwilioRestException

from utils.twilio_client import DryRunSender, TwilioSender

# Target under test: src/utils/twilio_client.TwilioSender


class StubTwilioMsg:
    def __init__(self, sid="SMXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"):
        self.sid = sid


class StubMessages:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    # Twilio SDK uses .messages.create(...)
    def create(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.sent.append(kwargs)
        return StubTwilioMsg()


class StubTwilioClient:
    def __init__(self, error=None):
        self.messages = StubMessages(error)


def test_send_uses_messaging_service_when_configured():
    client = StubTwilioClient()
    sender = TwilioSender(client, messaging_service_sid="MGxxx", from_number="+15550000000")

    assert sender.send("+15550001111", "hello") is True
    assert client.messages.sent == [
        {"to": "+15550001111", "body": "hello", "messaging_service_sid": "MGxxx"}
    ]


def test_send_falls_back_to_from_number():
    client = StubTwilioClient()
    sender = TwilioSender(client, from_number="+15550000000")

    assert sender.send("+15550001111", "hello") is True
    assert client.messages.sent[0]["from_"] == "+15550000000"
    assert "messaging_service_sid" not in client.messages.sent[0]


def test_twilio_rejection_reports_failure():
    error = TwilioRestException(400, "https://api.twilio.com/Messages", msg="Invalid 'To'", code=21211)
    sender = TwilioSender(StubTwilioClient(error), messaging_service_sid="MGxxx")

    assert sender.send("+15550001111", "hello") is False


def test_unexpected_error_reports_failure():
    sender = TwilioSender(StubTwilioClient(ConnectionError("reset")), messaging_service_sid="MGxxx")

    assert sender.send("+15550001111", "hello") is False


def test_sender_requires_an_origin():
    with pytest.raises(RuntimeError):
        TwilioSender(StubTwilioClient())


class StubLogger:
    def __init__(self):
        self.records = []

    def info(self, msg, extra=None):
        self.records.append((msg, extra))


def test_dry_run_sender_logs_without_sending():
    log = StubLogger()
    sender = DryRunSender(logger=log)

    assert sender.send("+15550001111", "hello") is True
    assert sender.send("+15550002222", "again") is True
    assert log.records[0] == ("twilio.dry_run", {"to": "+1******1111", "body_preview": "hello"})
    assert len(log.records) == 2
    assert not hasattr(sender, "sent")
