import pytest

import utils.secrets as secrets

# Target under test: src/utils/secrets.get_secret_json
# boto3 is replaced so no AWS call is made.


class StubSecretsManager:
    def __init__(self, secret_string):
        self.secret_string = secret_string

    def get_secret_value(self, SecretId):
        return {"SecretString": self.secret_string}


def _fake_boto3(secret_string):
    class FakeBoto3:
        def client(self, name, region_name=None):
            assert name == "secretsmanager"
            return StubSecretsManager(secret_string)

    return FakeBoto3()


def test_get_secret_json(monkeypatch):
    monkeypatch.setattr(secrets, "boto3", _fake_boto3('{"account_sid": "ACxxx"}'))
    assert secrets.get_secret_json("rentals/twilio", "us-east-1") == {"account_sid": "ACxxx"}


@pytest.mark.parametrize("payload", ["", "not json", "[1, 2]"])
def test_get_secret_json_rejects_bad_payloads(monkeypatch, payload):
    monkeypatch.setattr(secrets, "boto3", _fake_boto3(payload))
    with pytest.raises(RuntimeError):
        secrets.get_secret_json("rentals/twilio", "us-east-1")
