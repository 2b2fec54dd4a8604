"""Value objects for Lightning Address resolution and pledge tracking."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from lightning_intents.exceptions import InvalidAddressFormatError

logger = logging.getLogger(__name__)

PLAIN_TEXT_METADATA = "text/plain"


@dataclass(frozen=True)
class LightningAddress:
    """A parsed local-part@domain Lightning Address."""

    local: str
    domain: str

    @classmethod
    def parse(cls, address: str) -> LightningAddress:
        """Split on the first "@".

        Raises:
            InvalidAddressFormatError: If there is no "@" or either side is empty.
        """
        if not isinstance(address, str):
            raise InvalidAddressFormatError(repr(address))
        local, sep, domain = address.strip().partition("@")
        if not sep or not local or not domain:
            raise InvalidAddressFormatError(address)
        return cls(local=local, domain=domain)

    @property
    def well_known_url(self) -> str:
        return f"https://{self.domain}/.well-known/lnurlp/{self.local}"

    def __str__(self) -> str:
        return f"{self.local}@{self.domain}"


@dataclass(frozen=True)
class LnurlPayMetadata:
    """Body of the well-known LNURL-pay response.

    min/max_sendable_msat are None when the endpoint omits them.
    """

    callback: str
    min_sendable_msat: int | None
    max_sendable_msat: int | None
    raw_metadata: str | list | None
    status: str = "OK"
    reason: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status.upper() == "ERROR"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> LnurlPayMetadata:
        status = str(data.get("status") or "OK")
        callback = data.get("callback")
        return cls(
            callback=callback if isinstance(callback, str) else "",
            min_sendable_msat=_optional_int(data.get("minSendable")),
            max_sendable_msat=_optional_int(data.get("maxSendable")),
            raw_metadata=data.get("metadata"),
            status=status,
            reason=data.get("reason") if status.upper() == "ERROR" else None,
        )

    @property
    def description(self) -> str | None:
        return extract_description(self.raw_metadata)


@dataclass(frozen=True)
class InvoiceResult:
    """A payable invoice obtained for a Lightning Address."""

    payment_request: str
    amount_sats: int
    recipient_address: str
    description: str | None = None
    success_action: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing JSON shape."""
        return {
            "invoice": self.payment_request,
            "amountSats": self.amount_sats,
            "recipientAddress": self.recipient_address,
            "description": self.description,
            "successAction": self.success_action,
        }


class PledgeStatus(str, Enum):
    """Pledge states reported by the status endpoint.

    Only PENDING is non-terminal. Unknown values from the server are
    kept as plain strings on the snapshot and treated as terminal.
    """

    PENDING = "pending"
    SETTLED = "settled"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class PledgeStatusSnapshot:
    """One reading of a pledge's status."""

    status: str
    amount_sats: int
    settled_at: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == PledgeStatus.PENDING.value

    @property
    def is_terminal(self) -> bool:
        return not self.is_pending

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PledgeStatusSnapshot:
        return cls(
            status=str(data["status"]),
            amount_sats=int(data.get("amountSats") or 0),
            settled_at=data.get("settledAt"),
        )


@dataclass(frozen=True)
class PledgeIntent:
    """A freshly created pledge: the invoice to pay and the id to track."""

    pledge_id: str
    invoice: str
    amount_sats: int
    expires_at: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PledgeIntent:
        return cls(
            pledge_id=str(data["pledgeId"]),
            invoice=str(data["invoice"]),
            amount_sats=int(data["amountSats"]),
            expires_at=data.get("expiresAt"),
        )


def extract_description(metadata: str | list | None) -> str | None:
    """Find the text/plain entry in LNURL metadata.

    Metadata is either a JSON-encoded list of [type, value] pairs or an
    already decoded list. Anything unparseable yields None.
    """
    if not metadata:
        return None

    entries: Any = metadata
    if isinstance(metadata, str):
        try:
            entries = json.loads(metadata)
        except json.JSONDecodeError:
            logger.debug("Unparseable LNURL metadata: %r", metadata[:200])
            return None

    if not isinstance(entries, list):
        return None

    for entry in entries:
        if (
            isinstance(entry, (list, tuple))
            and len(entry) >= 2
            and entry[0] == PLAIN_TEXT_METADATA
        ):
            value = entry[1]
            return value if isinstance(value, str) and value else None
    return None


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
