"""Blocking HTTP client for the remote CRM's REST API.

Provides:
- ConfigurationError: raised when credentials are missing outside tests
- ClientConfig: frozen connection settings built once and passed around
- RemoteCRMClient: start/limit pagination and single-record lookups

Transport failures are retried with tenacity (exponential backoff). A
non-success HTTP status or a body with ``success: false`` is logged and
ends pagination for that collection without a retry.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.crm_sync.config import Settings

logger = structlog.get_logger(__name__)

TEST_API_TOKEN = "test-api-token"
TEST_COMPANY_DOMAIN = "test.pipedrive.com"

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class ConfigurationError(RuntimeError):
    """Required remote CRM settings are missing."""


# ── Configuration ───────────────────────────────────────────────────────────


class ClientConfig(BaseModel):
    """Immutable connection settings for one remote CRM account."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    api_token: str
    headers: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_HEADERS))
    page_size: int = Field(default=100, gt=0)
    timeout: float = 30.0
    max_attempts: int = Field(default=3, ge=1)

    @field_validator("base_url", "api_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @classmethod
    def from_settings(cls, settings: Settings) -> ClientConfig:
        """Build a config from application settings.

        In the test environment, missing credentials are replaced with dummy
        values so no real account is needed.

        Raises:
            ConfigurationError: API token or company domain is blank.
        """
        api_token = settings.API_TOKEN.strip()
        domain = settings.COMPANY_DOMAIN.strip()

        if settings.is_test():
            api_token = api_token or TEST_API_TOKEN
            domain = domain or TEST_COMPANY_DOMAIN

        if not api_token:
            raise ConfigurationError("Missing API_TOKEN (or PIPEDRIVE_API_TOKEN) setting")
        if not domain:
            raise ConfigurationError(
                "Missing COMPANY_DOMAIN (or PIPEDRIVE_COMPANY_DOMAIN) setting"
            )

        return cls(
            base_url=f"https://{domain}/api/v1",
            api_token=api_token,
            page_size=settings.PAGE_SIZE,
            timeout=settings.HTTP_TIMEOUT,
            max_attempts=settings.HTTP_MAX_ATTEMPTS,
        )


# ── Client ──────────────────────────────────────────────────────────────────


class RemoteCRMClient:
    """Read-only client for remote CRM collections.

    Args:
        config: Connection settings.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._http = httpx.Client(
            base_url=config.base_url,
            headers=config.headers,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def __enter__(self) -> RemoteCRMClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._config.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )

    def _get(self, path: str, **params: Any) -> httpx.Response:
        """GET path with the API token, retrying transport failures."""
        query = {"api_token": self._config.api_token, **params}
        return self._retrying()(self._http.get, path, params=query)

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any] | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def iter_pages(self, collection: str) -> Iterator[list[dict[str, Any]]]:
        """Yield successive pages of records from /<collection>.

        Stops quietly (after logging) on transport failure, a non-success
        response, or when the API reports no more items.

        Args:
            collection: Remote collection path, e.g. "persons".

        Yields:
            Lists of raw record dicts, one per page.
        """
        start = 0
        limit = self._config.page_size

        while True:
            try:
                response = self._get(f"/{collection}", start=start, limit=limit)
            except httpx.TransportError as exc:
                logger.error(
                    "remote.transport_failed",
                    collection=collection,
                    start=start,
                    error=str(exc),
                )
                return

            body = self._decode(response)
            if not response.is_success or body is None or body.get("success") is False:
                logger.error(
                    "remote.fetch_failed",
                    collection=collection,
                    start=start,
                    status_code=response.status_code,
                    error=(body or {}).get("error"),
                )
                return

            records = body.get("data")
            if not records:
                logger.debug("remote.page_empty", collection=collection, start=start)
                return

            logger.debug(
                "remote.page_fetched",
                collection=collection,
                start=start,
                count=len(records),
            )
            yield records

            pagination = (body.get("additional_data") or {}).get("pagination") or {}
            if not pagination.get("more_items_in_collection"):
                return
            start = pagination.get("next_start") or start + limit

    def fetch_one(self, collection: str, remote_id: int) -> dict[str, Any] | None:
        """GET /<collection>/<id>; None when the record can't be fetched."""
        try:
            response = self._get(f"/{collection}/{remote_id}")
        except httpx.TransportError as exc:
            logger.warning(
                "remote.lookup_failed",
                collection=collection,
                remote_id=remote_id,
                error=str(exc),
            )
            return None

        body = self._decode(response)
        if not response.is_success or body is None or not body.get("success", True):
            logger.warning(
                "remote.lookup_failed",
                collection=collection,
                remote_id=remote_id,
                status_code=response.status_code,
            )
            return None

        data = body.get("data")
        return data if isinstance(data, dict) else None
