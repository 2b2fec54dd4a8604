"""lightning-intents exceptions."""

from __future__ import annotations


class LightningIntentsError(Exception):
    """Base exception for lightning-intents."""


class ConfigError(LightningIntentsError):
    """A configuration value could not be parsed."""

    def __init__(self, name: str, value: object):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for {name}: {value!r}")


# ── LNURL-pay resolution ─────────────────────────────────────────────────


class PaymentError(LightningIntentsError):
    """Base for failures while turning a Lightning Address into an invoice."""

    retryable: bool = False


class InvalidAddressFormatError(PaymentError):
    """Lightning Address is not of the form local-part@domain."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Invalid lightning address format: {address!r}")


class UpstreamUnavailableError(PaymentError):
    """The well-known LNURL endpoint could not be reached or returned garbage."""

    retryable = True

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"LNURL endpoint unavailable ({url}): {reason}")


class UpstreamRejectedError(PaymentError):
    """The recipient's service answered with status ERROR.

    The reason is the recipient's own text and is passed through verbatim.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class AmountOutOfRangeError(PaymentError):
    """Requested amount is outside the sendable range of the recipient."""

    def __init__(self, min_sats: int, max_sats: int, amount_sats: int | None = None):
        self.min_sats = min_sats
        self.max_sats = max_sats
        self.amount_sats = amount_sats
        super().__init__(f"Amount must be between {min_sats} and {max_sats} sats")


class InvoiceRequestFailedError(PaymentError):
    """The LNURL callback could not be reached or returned a non-2xx status."""

    retryable = True

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to generate invoice ({url}): {reason}")


class InvoiceMissingError(PaymentError):
    """The callback answered successfully but did not include a `pr` field."""

    retryable = True

    def __init__(self, url: str):
        self.url = url
        super().__init__("No invoice received from lightning address")


# ── Pledges ──────────────────────────────────────────────────────────────


class PledgeRequestError(LightningIntentsError):
    """A request to the pledge API failed."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Pledge request failed ({url}): {reason}")


class PollFetchTransientError(LightningIntentsError):
    """A single status fetch failed. Polling carries on."""

    def __init__(self, pledge_id: str, reason: str):
        self.pledge_id = pledge_id
        self.reason = reason
        super().__init__(f"Status fetch for pledge {pledge_id} failed: {reason}")


# ── Notifications ────────────────────────────────────────────────────────


class NotifyError(LightningIntentsError):
    """Base for wallet-invite notification failures."""


class AuthenticationRequiredError(NotifyError):
    """No caller identity is available."""

    def __init__(self) -> None:
        super().__init__("Authentication required")


class InvalidNotifyRequestError(NotifyError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class RecipientNotFoundError(NotifyError):
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Recipient user not found: {username}")


class MissingEmailError(NotifyError):
    """Sender or recipient has no email on file."""

    def __init__(self, role: str, username: str):
        self.role = role
        self.username = username
        super().__init__(f"{role.capitalize()} has no email on file")
