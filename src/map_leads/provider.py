"""Apify Google Places client."""

from __future__ import annotations

import logging
from typing import Any

from requests import Session
from requests.exceptions import RequestException

from .errors import ProviderError
from .models import ProviderRun


def build_search_query(keyword: str, city: str, country: str) -> str:
    """Compose the free-text query handed to the places actor."""
    return f"{keyword} in {city}, {country}"


class ApifyPlacesClient:
    """Starts the places actor synchronously and reads its default dataset."""

    def __init__(
        self,
        *,
        session: Session,
        token: str,
        actor_id: str,
        base_url: str,
        wait_seconds: int,
        timeout: float,
        logger: logging.Logger,
    ) -> None:
        self._session = session
        self._token = token
        self._actor_id = actor_id
        self._base_url = base_url.rstrip("/")
        self._wait_seconds = wait_seconds
        self._timeout = timeout
        self._logger = logger

    def start_run(self, query: str, max_results: int) -> ProviderRun:
        body = {
            "searchStringsArray": [query],
            "maxCrawledPlacesPerSearch": max_results,
            "language": "en",
            "exportPlaceUrls": False,
            "includeHistogram": False,
            "includeOpeningHours": False,
            "includePeopleAlsoSearch": False,
        }
        self._logger.info("Starting places run for %r (max %d)", query, max_results)
        try:
            response = self._session.post(
                f"{self._base_url}/acts/{self._actor_id}/runs",
                params={"token": self._token, "waitForFinish": self._wait_seconds},
                json=body,
                timeout=self._timeout,
            )
        except RequestException as exc:
            raise ProviderError(f"Apify request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ProviderError(f"Apify error [{response.status_code}]: {response.text}")

        payload = self._decode(response)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            data = {}
        run_id = data.get("id")
        dataset_id = data.get("defaultDatasetId")
        return ProviderRun(
            run_id=run_id if isinstance(run_id, str) and run_id else None,
            dataset_id=dataset_id if isinstance(dataset_id, str) and dataset_id else None,
        )

    def fetch_items(self, dataset_id: str) -> list[Any]:
        try:
            response = self._session.get(
                f"{self._base_url}/datasets/{dataset_id}/items",
                params={"token": self._token, "format": "json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
        except RequestException as exc:
            raise ProviderError(f"Apify dataset {dataset_id} failed: {exc}") from exc

        items = self._decode(response)
        if not isinstance(items, list):
            self._logger.warning("Dataset %s returned %s, expected a list", dataset_id, type(items).__name__)
            return []
        return items

    @staticmethod
    def _decode(response: Any) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"Apify returned malformed JSON: {exc}") from exc
