"""FastAPI routes exposing the resolver and the wallet-invite notifier.

Requires the optional extra: pip install lightning-intents[api]

Usage:
    app = FastAPI()
    app.include_router(
        build_router(resolver, notifier, current_user=get_session_user),
        prefix="/v1",
    )
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from lightning_intents.exceptions import (
    AmountOutOfRangeError,
    AuthenticationRequiredError,
    InvalidAddressFormatError,
    InvalidNotifyRequestError,
    MissingEmailError,
    NotifyError,
    PaymentError,
    RecipientNotFoundError,
    UpstreamRejectedError,
)
from lightning_intents.notify import UserProfile, WalletInviteNotifier
from lightning_intents.resolver import AsyncLnurlPayResolver

logger = logging.getLogger(__name__)


class InvoiceResponse(BaseModel):
    invoice: str
    amountSats: int
    recipientAddress: str
    description: Optional[str] = None
    successAction: Optional[dict] = None


class NotifyResponse(BaseModel):
    success: bool
    status: str
    message: Optional[str] = None


_NOTIFY_ERROR_STATUS = {
    AuthenticationRequiredError: status.HTTP_401_UNAUTHORIZED,
    InvalidNotifyRequestError: status.HTTP_400_BAD_REQUEST,
    RecipientNotFoundError: status.HTTP_404_NOT_FOUND,
    MissingEmailError: 422,
}


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def payment_error_response(error: PaymentError) -> JSONResponse:
    """Map a resolver failure to its HTTP response."""
    if isinstance(error, AmountOutOfRangeError):
        return _error(
            status.HTTP_400_BAD_REQUEST,
            str(error),
            minSendable=error.min_sats,
            maxSendable=error.max_sats,
        )
    if isinstance(error, (InvalidAddressFormatError, UpstreamRejectedError)):
        return _error(status.HTTP_400_BAD_REQUEST, str(error))
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(error))


async def _json_body(request: Request) -> Optional[dict[str, Any]]:
    """Request body as a JSON object, or None if it is not one."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _anonymous() -> Optional[UserProfile]:
    return None


def build_router(
    resolver: AsyncLnurlPayResolver,
    notifier: WalletInviteNotifier | None = None,
    current_user: Callable[..., Optional[UserProfile] | Awaitable[Optional[UserProfile]]] = _anonymous,
) -> APIRouter:
    """Build the invoice and notify routes around the given collaborators.

    current_user is a FastAPI dependency returning the caller's profile,
    or None when the caller is not authenticated.
    """
    router = APIRouter()

    @router.post(
        "/lightning/invoice",
        response_model=InvoiceResponse,
        status_code=status.HTTP_200_OK,
        summary="Request an invoice for a Lightning Address",
        tags=["lightning"],
    )
    async def create_invoice(request: Request):
        """Resolve a Lightning Address over LNURL-pay and return a BOLT11 invoice."""
        body = await _json_body(request)
        if body is None:
            return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")

        address = body.get("lightningAddress")
        amount_sats = body.get("amountSats")
        if not address or not isinstance(address, str):
            return _error(status.HTTP_400_BAD_REQUEST, "Lightning address is required")
        if not _is_positive_int(amount_sats):
            return _error(status.HTTP_400_BAD_REQUEST, "Valid amount in sats is required")

        try:
            result = await resolver.request_invoice(address, amount_sats)
        except PaymentError as e:
            logger.info("Invoice request for %s failed: %s", address, e)
            return payment_error_response(e)
        return result.to_dict()

    if notifier is None:
        return router

    @router.post(
        "/wallet/notify",
        response_model=NotifyResponse,
        status_code=status.HTTP_200_OK,
        summary="Invite a user to set up a wallet",
        tags=["wallet"],
    )
    async def notify_wallet_invite(
        request: Request,
        sender: Optional[UserProfile] = Depends(current_user),
    ):
        body = await _json_body(request)
        if body is None:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"success": False, "status": "error", "message": "Invalid JSON body"},
            )

        recipient = body.get("recipientUsername")
        try:
            outcome = await notifier.notify(
                sender, recipient if isinstance(recipient, str) else ""
            )
        except NotifyError as e:
            code = _NOTIFY_ERROR_STATUS.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
            return JSONResponse(
                status_code=code,
                content={"success": False, "status": "error", "message": str(e)},
            )
        return {"success": True, "status": outcome.status, "message": outcome.message}

    return router
