"""
Remote error log storage on urBackend.

Each synced session becomes one record in the ``error_logs`` collection.
The collection is provisioned on demand: if the first write reports it
missing, the schema is created and the write is retried once.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import requests

from errlocal.exceptions import BackendError
from errlocal.state import SessionState

logger = logging.getLogger(__name__)

# Field -> type, as accepted by the collection provisioning endpoint
ERROR_LOG_SCHEMA = {
    "command": "String",
    "error": "String",
    "errorType": "String",
    "hints": "String",
    "finalExplanation": "String",
    "timestamp": "String",
    "status": "String",
    "solution": "String",
}


class LogBackend(Protocol):
    def create(self, record: dict[str, Any]) -> str: ...

    def list(self) -> list[dict[str, Any]]: ...

    def update(self, record_id: str, patch: dict[str, Any]) -> None: ...


def build_record(state: SessionState) -> dict[str, Any]:
    """Flatten a session into the record stored remotely."""
    analysis = state.analysis
    return {
        "command": state.command,
        "error": state.error,
        "errorType": analysis.error_type,
        "hints": json.dumps(analysis.hints),
        "finalExplanation": analysis.final_explanation,
        "timestamp": state.timestamp,
        "status": "OPEN",
    }


def _is_missing_collection(response: requests.Response) -> bool:
    if response.status_code == 404:
        return True
    return "collection" in response.text.lower() and "not found" in response.text.lower()


class UrBackendClient:
    """Thin client for the urBackend data API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.urbackend.bitbros.in",
        collection: str = "error_logs",
        timeout: float = 30.0,
    ):
        if not api_key:
            raise BackendError("Missing URBACKEND_API_KEY")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.collection = collection
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "x-api-key": api_key})

    @property
    def collection_url(self) -> str:
        return f"{self.base_url}/api/data/{self.collection}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"Network error talking to backend: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response) -> None:
        if not response.ok:
            raise BackendError(
                f"API Error ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )

    def ensure_schema(self) -> bool:
        """
        Create the collection if it does not exist.

        Returns:
            True if the backend accepted the schema (or it already existed).
        """
        response = self._request(
            "POST",
            f"{self.base_url}/api/collections",
            json={"name": self.collection, "schema": ERROR_LOG_SCHEMA},
        )
        # 409: already provisioned
        if response.ok or response.status_code == 409:
            return True
        logger.warning(
            "Schema provisioning for '%s' failed (%s): %s",
            self.collection,
            response.status_code,
            response.text[:200],
        )
        return False

    def create(self, record: dict[str, Any]) -> str:
        response = self._request("POST", self.collection_url, json=record)
        if not response.ok and _is_missing_collection(response):
            try:
                self.ensure_schema()
            except BackendError as e:
                logger.warning("Schema provisioning failed: %s", e)
            response = self._request("POST", self.collection_url, json=record)

        self._raise_for_status(response)
        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(f"Invalid response from backend: {e}") from e

        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            data = data["data"]
        record_id = (data.get("_id") or data.get("id")) if isinstance(data, dict) else None
        if not record_id:
            raise BackendError("Backend response did not include a record id")
        return str(record_id)

    def list(self) -> list[dict[str, Any]]:
        response = self._request("GET", self.collection_url)
        self._raise_for_status(response)
        try:
            data = response.json()
        except ValueError as e:
            raise BackendError(f"Invalid response from backend: {e}") from e

        if isinstance(data, dict) and isinstance(data.get("data"), list):
            data = data["data"]
        if not isinstance(data, list):
            raise BackendError("Unexpected API response format")
        return data

    def update(self, record_id: str, patch: dict[str, Any]) -> None:
        response = self._request("PUT", f"{self.collection_url}/{record_id}", json=patch)
        self._raise_for_status(response)


def recent_records(records: list[dict[str, Any]], limit: int = 5) -> list[dict[str, Any]]:
    """Return the ``limit`` most recent records, newest first."""
    ordered = sorted(records, key=lambda r: str(r.get("timestamp") or ""), reverse=True)
    return ordered[:limit]
