import json
import os

from utils import __version__
from utils.logger import log


def lambda_handler(event, context):
    path = event.get("rawPath") or event.get("path") or "/"
    log("health.check", path=path, method=event.get("requestContext", {}).get("http", {}).get("method", "GET"))

    if path.endswith("/version"):
        body = {"version": os.getenv("APP_VERSION", __version__)}
    else:
        body = {"status": "ok"}

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
