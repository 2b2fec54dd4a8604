"""LNURL-pay resolver: Lightning Address in, payable BOLT11 invoice out.

Two sequential round-trips, no retries:

    1. GET https://{domain}/.well-known/lnurlp/{local}  -> callback + bounds
    2. GET {callback}?amount={millisats}                -> {"pr": "lnbc..."}

The amount is checked against the advertised bounds between the two, so a
request that the recipient would reject never reaches its callback.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from lightning_intents.bolt11 import invoice_amount_msat
from lightning_intents.config import DEFAULT_SETTINGS, Settings
from lightning_intents.exceptions import (
    InvoiceMissingError,
    InvoiceRequestFailedError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from lightning_intents.models import InvoiceResult, LightningAddress, LnurlPayMetadata
from lightning_intents.units import (
    sats_to_millisats,
    sendable_bounds,
    validate_amount_in_range,
)

logger = logging.getLogger(__name__)


def _parse_metadata_response(url: str, response: httpx.Response) -> LnurlPayMetadata:
    if not response.is_success:
        logger.warning("LNURL endpoint %s returned %s", url, response.status_code)
        raise UpstreamUnavailableError(
            url, f"HTTP {response.status_code}", response.status_code
        )

    data = _json_object(response)
    if data is None:
        raise UpstreamUnavailableError(url, "response is not a JSON object")

    metadata = LnurlPayMetadata.from_json(data)
    if metadata.is_error:
        raise UpstreamRejectedError(
            metadata.reason or "Lightning address returned an error"
        )
    if not metadata.callback:
        raise UpstreamUnavailableError(url, "response has no callback URL")
    return metadata


def _check_bounds(
    metadata: LnurlPayMetadata, amount_sats: int, settings: Settings
) -> None:
    min_sats, max_sats = sendable_bounds(
        metadata.min_sendable_msat, metadata.max_sendable_msat, settings
    )
    validate_amount_in_range(amount_sats, min_sats, max_sats)


def build_callback_url(callback: str, amount_sats: int) -> str:
    """Set (or overwrite) the amount query parameter, in millisats.

    Raises:
        UpstreamUnavailableError: If the callback is not an absolute http(s) URL.
    """
    try:
        url = httpx.URL(callback)
    except (httpx.InvalidURL, TypeError) as e:
        raise UpstreamUnavailableError(callback, f"invalid callback URL: {e}") from e
    if url.scheme not in ("http", "https") or not url.host:
        raise UpstreamUnavailableError(callback, "callback URL is not absolute")
    return str(url.copy_set_param("amount", str(sats_to_millisats(amount_sats))))


def _parse_invoice_response(
    url: str,
    response: httpx.Response,
    amount_sats: int,
    address: str,
    metadata: LnurlPayMetadata,
) -> InvoiceResult:
    if not response.is_success:
        logger.warning("LNURL callback %s returned %s", url, response.status_code)
        raise InvoiceRequestFailedError(
            url, f"HTTP {response.status_code}", response.status_code
        )

    data = _json_object(response)
    if data is None:
        raise InvoiceRequestFailedError(url, "response is not a JSON object")

    if str(data.get("status") or "").upper() == "ERROR":
        raise UpstreamRejectedError(data.get("reason") or "Failed to generate invoice")

    pr = data.get("pr")
    if not isinstance(pr, str) or not pr:
        raise InvoiceMissingError(url)

    success_action = data.get("successAction")

    encoded = invoice_amount_msat(pr)
    if encoded is not None and encoded != sats_to_millisats(amount_sats):
        logger.warning(
            "Invoice from %s encodes %s msat, requested %s msat",
            url,
            encoded,
            sats_to_millisats(amount_sats),
        )

    return InvoiceResult(
        payment_request=pr,
        amount_sats=amount_sats,
        recipient_address=address,
        description=metadata.description,
        success_action=success_action if isinstance(success_action, dict) else None,
    )


def _json_object(response: httpx.Response) -> dict[str, Any] | None:
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _client_kwargs(settings: Settings, httpx_kwargs: dict[str, Any]) -> dict[str, Any]:
    kwargs = dict(httpx_kwargs)
    kwargs.setdefault("timeout", settings.http_timeout_seconds)
    kwargs.setdefault("follow_redirects", True)
    return kwargs


class LnurlPayResolver:
    """Synchronous Lightning Address resolver.

    Usage:
        resolver = LnurlPayResolver()
        result = resolver.request_invoice("alice@wallet.example", 500)
        print(result.payment_request)
    """

    def __init__(self, settings: Settings | None = None, **httpx_kwargs: Any):
        """
        Args:
            settings: Policy (fallback bounds, timeout). Defaults to built-in values.
            **httpx_kwargs: Additional kwargs passed to httpx.Client.
        """
        self._settings = settings or DEFAULT_SETTINGS
        self._httpx_kwargs = _client_kwargs(self._settings, httpx_kwargs)

    def request_invoice(self, lightning_address: str, amount_sats: int) -> InvoiceResult:
        """Resolve the address and request an invoice for amount_sats.

        Raises:
            InvalidAddressFormatError: The address is not local@domain.
            UpstreamUnavailableError: The well-known lookup failed.
            UpstreamRejectedError: Either endpoint answered status ERROR.
            AmountOutOfRangeError: amount_sats is outside the advertised bounds.
            InvoiceRequestFailedError: The callback request failed.
            InvoiceMissingError: The callback answered without an invoice.
        """
        address = LightningAddress.parse(lightning_address)

        with httpx.Client(**self._httpx_kwargs) as client:
            url = address.well_known_url
            try:
                response = client.get(url)
            except httpx.HTTPError as e:
                logger.warning("LNURL endpoint %s unreachable: %s", url, e)
                raise UpstreamUnavailableError(url, str(e)) from e
            metadata = _parse_metadata_response(url, response)

            _check_bounds(metadata, amount_sats, self._settings)

            callback_url = build_callback_url(metadata.callback, amount_sats)
            try:
                response = client.get(callback_url)
            except httpx.HTTPError as e:
                logger.warning("LNURL callback %s unreachable: %s", callback_url, e)
                raise InvoiceRequestFailedError(callback_url, str(e)) from e

            return _parse_invoice_response(
                callback_url, response, amount_sats, lightning_address, metadata
            )


class AsyncLnurlPayResolver:
    """Async Lightning Address resolver.

    Usage:
        async with AsyncLnurlPayResolver() as resolver:
            result = await resolver.request_invoice("alice@wallet.example", 500)
    """

    def __init__(self, settings: Settings | None = None, **httpx_kwargs: Any):
        self._settings = settings or DEFAULT_SETTINGS
        self._httpx_kwargs = _client_kwargs(self._settings, httpx_kwargs)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AsyncLnurlPayResolver:
        self._client = httpx.AsyncClient(**self._httpx_kwargs)
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(**self._httpx_kwargs)
        return self._client

    async def request_invoice(
        self, lightning_address: str, amount_sats: int
    ) -> InvoiceResult:
        """Async version of LnurlPayResolver.request_invoice."""
        address = LightningAddress.parse(lightning_address)
        client = self._ensure_client()

        url = address.well_known_url
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning("LNURL endpoint %s unreachable: %s", url, e)
            raise UpstreamUnavailableError(url, str(e)) from e
        metadata = _parse_metadata_response(url, response)

        _check_bounds(metadata, amount_sats, self._settings)

        callback_url = build_callback_url(metadata.callback, amount_sats)
        try:
            response = await client.get(callback_url)
        except httpx.HTTPError as e:
            logger.warning("LNURL callback %s unreachable: %s", callback_url, e)
            raise InvoiceRequestFailedError(callback_url, str(e)) from e

        return _parse_invoice_response(
            callback_url, response, amount_sats, lightning_address, metadata
        )

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
