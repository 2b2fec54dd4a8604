"""lightning-intents — payment intent lifecycle for Lightning flows.

Turns a Lightning Address into a payable invoice over LNURL-pay, tracks
settlement of a pledge invoice with a coarsening poll schedule, and keeps
side-effecting notifications from firing twice for the same pair.

Usage:
    import lightning_intents

    # Module-level convenience using a default resolver
    result = lightning_intents.request_invoice("alice@wallet.example", 500)
    print(result.payment_request)

    # Or construct the pieces explicitly
    from lightning_intents import AsyncLnurlPayResolver, PledgeClient, track_pledge

    async with AsyncLnurlPayResolver() as resolver:
        result = await resolver.request_invoice("alice@wallet.example", 500)
"""

from lightning_intents.config import DEFAULT_SETTINGS, Settings, load_settings
from lightning_intents.dedup import NotificationDedupCache, dedupe_key
from lightning_intents.exceptions import (
    AmountOutOfRangeError,
    AuthenticationRequiredError,
    ConfigError,
    InvalidAddressFormatError,
    InvalidNotifyRequestError,
    InvoiceMissingError,
    InvoiceRequestFailedError,
    LightningIntentsError,
    MissingEmailError,
    NotifyError,
    PaymentError,
    PledgeRequestError,
    PollFetchTransientError,
    RecipientNotFoundError,
    UpstreamRejectedError,
    UpstreamUnavailableError,
)
from lightning_intents.models import (
    InvoiceResult,
    LightningAddress,
    LnurlPayMetadata,
    PledgeIntent,
    PledgeStatus,
    PledgeStatusSnapshot,
)
from lightning_intents.notify import NotifyOutcome, UserProfile, WalletInviteNotifier
from lightning_intents.pledges import PledgeClient
from lightning_intents.poller import (
    PledgeTracker,
    PollEvent,
    PollSession,
    StopReason,
    next_interval_ms,
    track_pledge,
)
from lightning_intents.resolver import AsyncLnurlPayResolver, LnurlPayResolver
from lightning_intents.units import (
    millisats_to_sats,
    sats_to_millisats,
    validate_amount_in_range,
)

__version__ = "0.1.0"

__all__ = [
    # Resolver
    "LnurlPayResolver",
    "AsyncLnurlPayResolver",
    "request_invoice",
    # Units
    "sats_to_millisats",
    "millisats_to_sats",
    "validate_amount_in_range",
    # Models
    "LightningAddress",
    "LnurlPayMetadata",
    "InvoiceResult",
    "PledgeStatus",
    "PledgeStatusSnapshot",
    "PledgeIntent",
    # Pledges
    "PledgeClient",
    "PledgeTracker",
    "PollEvent",
    "PollSession",
    "StopReason",
    "next_interval_ms",
    "track_pledge",
    # Notifications
    "NotificationDedupCache",
    "dedupe_key",
    "WalletInviteNotifier",
    "UserProfile",
    "NotifyOutcome",
    # Config
    "Settings",
    "DEFAULT_SETTINGS",
    "load_settings",
    # Exceptions
    "LightningIntentsError",
    "ConfigError",
    "PaymentError",
    "InvalidAddressFormatError",
    "UpstreamUnavailableError",
    "UpstreamRejectedError",
    "AmountOutOfRangeError",
    "InvoiceRequestFailedError",
    "InvoiceMissingError",
    "PledgeRequestError",
    "PollFetchTransientError",
    "NotifyError",
    "AuthenticationRequiredError",
    "InvalidNotifyRequestError",
    "RecipientNotFoundError",
    "MissingEmailError",
]

# Module-level convenience using a default resolver
_default_resolver: LnurlPayResolver | None = None


def _get_default_resolver() -> LnurlPayResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = LnurlPayResolver(settings=load_settings())
    return _default_resolver


def request_invoice(lightning_address: str, amount_sats: int) -> InvoiceResult:
    """Convenience: resolve a Lightning Address and request an invoice."""
    return _get_default_resolver().request_invoice(lightning_address, amount_sats)
