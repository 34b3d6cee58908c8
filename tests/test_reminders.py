import json
from dataclasses import replace

import pytest

import reminders
from config import ConfigError, SweepConfig
from utils.adalo_client import StoreError
from utils.twilio_client import DryRunSender

# Target under test: src/reminders.lambda_handler
# We monkeypatch:
#  - reminders._build_runtime (config, store, sender)
#  - reminders.load_config for the misconfiguration path


class StubStore:
    def __init__(self, orders=None, users=None, fail=False):
        self.orders = orders or []
        self.users = users or []
        self.fail = fail
        self.patches = []

    def list_orders(self):
        if self.fail:
            raise StoreError("Adalo GET orders failed: 500 - boom", status_code=500)
        return [dict(o) for o in self.orders]

    def list_users(self):
        return list(self.users)

    def patch_order(self, order_id, fields):
        self.patches.append((order_id, fields))


class StubSender:
    def __init__(self):
        self.sent = []

    def send(self, to, body):
        self.sent.append((to, body))
        return True


CONFIG = SweepConfig(
    adalo_app_id="app",
    orders_collection_id="orders",
    users_collection_id="users",
    adalo_api_key="key",
    twilio_account_sid="ACxxx",
    twilio_auth_token="tok",
    messaging_service_sid="MGxxx",
)

ORDERS = [
    {
        "id": 1,
        "isPaid": True,
        "Item Pick Up Date": "2025-06-01",
        "Renter": [10],
        "Lister": [],
    }
]
USERS = [{"id": 10, "Mobile Number": "5550001111", "sms_opt_in": True}]


@pytest.fixture
def runtime(monkeypatch):
    store = StubStore(ORDERS, USERS)
    sender = StubSender()
    monkeypatch.setattr(reminders, "_runtime", None)
    monkeypatch.setattr(reminders, "_build_runtime", lambda: (CONFIG, store, sender))
    return store, sender


def test_http_query_date(runtime):
    store, sender = runtime
    event = {"queryStringParameters": {"date": "2025-06-01"}, "body": None}

    resp = reminders.lambda_handler(event, None)

    assert resp["statusCode"] == 200
    body = json.loads(resp["body"])
    assert body == {
        "ok": True,
        "date": "2025-06-01",
        "pickupRemindersSent": 1,
        "returnRemindersSent": 0,
    }
    assert sender.sent[0][0] == "+15550001111"
    assert len(store.patches) == 1


def test_direct_invoke_and_json_body_date(runtime):
    _, sender = runtime

    resp = reminders.lambda_handler({"date": "2025-06-02"}, None)
    assert json.loads(resp["body"])["pickupRemindersSent"] == 0

    resp = reminders.lambda_handler({"body": json.dumps({"date": "2025-06-01"})}, None)
    assert json.loads(resp["body"])["pickupRemindersSent"] == 1
    assert len(sender.sent) == 1


def test_scheduled_event_uses_today(runtime):
    event = {"source": "aws.events", "detail-type": "Scheduled Event", "detail": {}}

    resp = reminders.lambda_handler(event, None)

    assert resp["statusCode"] == 200
    assert "date" in json.loads(resp["body"])


def test_invalid_date_is_400(runtime):
    _, sender = runtime

    resp = reminders.lambda_handler({"queryStringParameters": {"date": "06/01/2025"}}, None)

    assert resp["statusCode"] == 400
    assert json.loads(resp["body"]) == {"error": "invalid_date"}
    assert sender.sent == []


def test_store_failure_is_distinct_error(monkeypatch):
    store = StubStore(fail=True)
    sender = StubSender()
    monkeypatch.setattr(reminders, "_runtime", None)
    monkeypatch.setattr(reminders, "_build_runtime", lambda: (CONFIG, store, sender))

    resp = reminders.lambda_handler({"date": "2025-06-01"}, None)

    assert resp["statusCode"] == 502
    assert json.loads(resp["body"])["error"] == "store_fetch_failed"
    assert sender.sent == []
    assert store.patches == []


def test_unexpected_sweep_error_is_500(monkeypatch):
    class BrokenStore(StubStore):
        def list_orders(self):
            raise ValueError("boom")

    store = BrokenStore()
    sender = StubSender()
    monkeypatch.setattr(reminders, "_runtime", (CONFIG, store, sender))

    resp = reminders.lambda_handler({}, None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"error": "sweep_failed"}
    assert sender.sent == []
    assert store.patches == []


def test_misconfiguration_is_500(monkeypatch):
    def fake_load_config():
        raise ConfigError("Missing required environment variables: ADALO_APP_ID")

    monkeypatch.setattr(reminders, "_runtime", None)
    monkeypatch.setattr(reminders, "load_config", fake_load_config)

    resp = reminders.lambda_handler({"date": "2025-06-01"}, None)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"error": "server_misconfigured"}


def test_dry_run_runtime_uses_dry_run_sender(monkeypatch):
    monkeypatch.setattr(reminders, "load_config", lambda: replace(CONFIG, dry_run=True))

    config, store, sender = reminders._build_runtime()

    assert config.dry_run is True
    assert isinstance(sender, DryRunSender)
    assert store.base == "https://api.adalo.com/v0/apps/app/collections"
