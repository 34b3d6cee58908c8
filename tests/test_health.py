import json

import health
from utils import __version__


def test_health_ok():
    resp = health.lambda_handler({"rawPath": "/healthz"}, None)
    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"status": "ok"}


def test_version(monkeypatch):
    monkeypatch.delenv("APP_VERSION", raising=False)
    resp = health.lambda_handler({"rawPath": "/version"}, None)
    assert json.loads(resp["body"]) == {"version": __version__}

    monkeypatch.setenv("APP_VERSION", "2025.06.01")
    resp = health.lambda_handler({"rawPath": "/version"}, None)
    assert json.loads(resp["body"]) == {"version": "2025.06.01"}
