import json
import os
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.logger import get_logger

logger = get_logger("secrets")


def get_secret_json(secret_name: str, region_name: Optional[str] = None) -> dict:
    """
    Fetch a JSON secret from AWS Secrets Manager.

    Expects the secret value to be a JSON object, e.g. for Twilio:

        {
          "account_sid": "...",
          "auth_token": "...",
          "messaging_service_sid": "MG..."
        }

    Raises RuntimeError if the secret cannot be read or is not a JSON object.
    """
    region_name = region_name or os.getenv("AWS_REGION", "us-east-1")

    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    try:
        resp = client.get_secret_value(SecretId=secret_name)
    except (ClientError, BotoCoreError) as e:
        msg = f"Unable to read secret '{secret_name}': {e}"
        logger.error(msg)
        raise RuntimeError(msg) from e

    secret_str = resp.get("SecretString")
    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise RuntimeError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "secrets.invalid_json",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise RuntimeError(f"Secret '{secret_name}' is not valid JSON") from e

    if not isinstance(data, dict):
        raise RuntimeError(f"Secret '{secret_name}' must be a JSON object")

    return data
