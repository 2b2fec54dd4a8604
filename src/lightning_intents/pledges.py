"""Async client for the campaign pledge API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from lightning_intents.config import DEFAULT_SETTINGS, Settings
from lightning_intents.exceptions import PledgeRequestError
from lightning_intents.models import PledgeIntent, PledgeStatusSnapshot
from lightning_intents.poller import StatusFetcher

logger = logging.getLogger(__name__)


class PledgeClient:
    """Create pledge intents and read their settlement status.

    Usage:
        async with PledgeClient("https://api.example.com") as pledges:
            intent = await pledges.create_event_pledge("evt_1", 2100)
            async for event in track_pledge(intent.pledge_id,
                                            pledges.status_fetcher(intent.pledge_id)):
                ...
    """

    def __init__(
        self,
        base_url: str | None = None,
        settings: Settings | None = None,
        **httpx_kwargs: Any,
    ):
        """
        Args:
            base_url: Pledge API root. Defaults to settings.pledge_api_base_url.
            settings: Policy (timeout, base URL). Defaults to built-in values.
            **httpx_kwargs: Additional kwargs passed to httpx.AsyncClient
                (e.g. headers carrying the caller's session).
        """
        settings = settings or DEFAULT_SETTINGS
        self._base_url = (base_url or settings.pledge_api_base_url).rstrip("/")
        if not self._base_url:
            raise ValueError("PledgeClient requires a base_url")
        self._httpx_kwargs = dict(httpx_kwargs)
        self._httpx_kwargs.setdefault("timeout", settings.http_timeout_seconds)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> PledgeClient:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, **self._httpx_kwargs)
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        client = self._ensure_client()
        url = f"{self._base_url}{path}"
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise PledgeRequestError(url, str(e)) from e

        if not response.is_success:
            raise PledgeRequestError(
                url, f"HTTP {response.status_code}", response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise PledgeRequestError(url, "response is not JSON") from e

        # The API wraps payloads as {"data": {...}}
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        if not isinstance(body, dict):
            raise PledgeRequestError(url, "response is not a JSON object")
        return body

    async def create_event_pledge(self, event_id: str, amount_sats: int) -> PledgeIntent:
        """Create a pledge towards an event's campaign."""
        _check_amount(amount_sats)
        data = await self._request(
            "POST",
            f"/v1/events/{quote(event_id, safe='')}/campaign/pledges",
            json={"amountSats": amount_sats},
        )
        return _intent(data)

    async def create_profile_pledge(self, username: str, amount_sats: int) -> PledgeIntent:
        """Create a pledge towards a user's profile campaign."""
        _check_amount(amount_sats)
        data = await self._request(
            "POST",
            f"/v1/users/{quote(username, safe='')}/campaign/pledges",
            json={"amountSats": amount_sats},
        )
        return _intent(data)

    async def get_status(self, pledge_id: str) -> PledgeStatusSnapshot:
        path = f"/v1/campaign-pledges/{quote(pledge_id, safe='')}/status"
        data = await self._request("GET", path)
        try:
            return PledgeStatusSnapshot.from_json(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PledgeRequestError(f"{self._base_url}{path}", f"malformed status: {e}") from e

    def status_fetcher(self, pledge_id: str) -> StatusFetcher:
        """Zero-argument fetch function for track_pledge."""

        async def fetch() -> PledgeStatusSnapshot:
            return await self.get_status(pledge_id)

        return fetch

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None


def _check_amount(amount_sats: int) -> None:
    if isinstance(amount_sats, bool) or not isinstance(amount_sats, int) or amount_sats <= 0:
        raise ValueError(f"amount_sats must be a positive integer, got {amount_sats!r}")


def _intent(data: dict[str, Any]) -> PledgeIntent:
    try:
        intent = PledgeIntent.from_json(data)
    except (KeyError, TypeError, ValueError) as e:
        raise PledgeRequestError("", f"malformed pledge intent: {e}") from e
    logger.info("Created pledge %s for %d sats", intent.pledge_id, intent.amount_sats)
    return intent
