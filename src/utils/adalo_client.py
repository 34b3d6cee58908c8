"""
Adalo collections API client: the Order and User record store.

    GET   {base}/apps/{app_id}/collections/{collection_id}?offset=&limit=
    PATCH {base}/apps/{app_id}/collections/{collection_id}/{record_id}

Adalo sometimes answers a list call with {"records": [...]} and sometimes
with a bare list; both are accepted.
"""

from typing import Any, Dict, List, Optional

import requests

from utils.logger import get_logger

logger = get_logger("adalo")


class StoreError(RuntimeError):
    """The record store was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _records(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get("records") or []
    raise StoreError(f"Unexpected list payload type: {type(payload).__name__}")


class AdaloStore:
    def __init__(self, config, session: Optional[requests.Session] = None):
        self.base = f"{config.adalo_base_url}/apps/{config.adalo_app_id}/collections"
        self.orders_collection = config.orders_collection_id
        self.users_collection = config.users_collection_id
        self.timeout = config.request_timeout
        self.page_size = config.page_size

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {config.adalo_api_key}",
                "Content-Type": "application/json",
            }
        )

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreError(f"Adalo {method} {url} failed: {e}") from e

        if not resp.ok:
            raise StoreError(
                f"Adalo {method} {url} failed: {resp.status_code} - {resp.text[:200]}",
                status_code=resp.status_code,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"Adalo {method} {url} returned invalid JSON") from e

    def _list(self, collection_id: str) -> List[Dict[str, Any]]:
        url = f"{self.base}/{collection_id}"
        records: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page = _records(
                self._request(
                    "GET", url, params={"offset": offset, "limit": self.page_size}
                )
            )
            records.extend(page)
            if len(page) < self.page_size:
                break
            offset += len(page)

        logger.info(
            "adalo.list_complete",
            extra={"collection_id": collection_id, "count": len(records)},
        )
        return records

    def list_orders(self) -> List[Dict[str, Any]]:
        return self._list(self.orders_collection)

    def list_users(self) -> List[Dict[str, Any]]:
        return self._list(self.users_collection)

    def patch_order(self, order_id: str, fields: Dict[str, Any]) -> None:
        """Partial update; fields not named here are left untouched by Adalo."""
        url = f"{self.base}/{self.orders_collection}/{order_id}"
        self._request("PATCH", url, json=fields)
