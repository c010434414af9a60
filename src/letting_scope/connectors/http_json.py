"""Calibration dataset served as JSON over HTTP (e.g. ``/rent-data.json``)."""

from __future__ import annotations

import json
from pathlib import Path

import httpx

from .base import DatasetConnector, DatasetResult


class HttpDatasetConnector(DatasetConnector):
    """
    Fetches a JSON array of lettings from a URL.

    Pass ``client`` to reuse a configured ``httpx.Client`` (tests inject one
    backed by ``httpx.MockTransport``); otherwise a short-lived client is
    opened per fetch.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def source_name(self) -> str:
        return "http_json"

    def fetch(self) -> DatasetResult:
        """Fetch and normalize the dataset."""
        try:
            resp = self._get()
        except httpx.HTTPError as e:
            return self._failed(f"{self.url}: {e!s}")

        if resp.status_code != 200:
            return self._failed(f"{self.url}: HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            return self._failed(f"{self.url}: invalid JSON ({e!s})")

        records, raw, errors = self._normalize(data)
        return DatasetResult(records=records, raw_payloads=raw, source=self.source_name, errors=errors)

    def _get(self) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if self._client is not None:
            return self._client.get(self.url, headers=headers)
        with httpx.Client(timeout=self.timeout_seconds, follow_redirects=True) as client:
            return client.get(self.url, headers=headers)

    def _failed(self, error: str) -> DatasetResult:
        return DatasetResult(records=[], raw_payloads=[], source=self.source_name, errors=[error])


class FileDatasetConnector(DatasetConnector):
    """Reads the same JSON shape from a local file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    @property
    def source_name(self) -> str:
        return "file_json"

    def fetch(self) -> DatasetResult:
        """Load and normalize the dataset file."""
        if not self.path.exists():
            return DatasetResult(
                records=[],
                raw_payloads=[],
                source=self.source_name,
                errors=[f"Dataset not found: {self.path}"],
            )
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            return DatasetResult(
                records=[],
                raw_payloads=[],
                source=self.source_name,
                errors=[f"{self.path}: {e!s}"],
            )
        records, raw, errors = self._normalize(data)
        return DatasetResult(records=records, raw_payloads=raw, source=self.source_name, errors=errors)
