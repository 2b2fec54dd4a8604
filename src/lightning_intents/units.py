"""Satoshi / millisatoshi conversion and amount range validation.

LNURL-pay speaks millisatoshis on the wire while callers think in sats.
Every conversion between the two goes through this module.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lightning_intents.exceptions import AmountOutOfRangeError

if TYPE_CHECKING:
    from lightning_intents.config import Settings

MSATS_PER_SAT = 1000

# Used when the LNURL endpoint does not advertise bounds.
DEFAULT_MIN_SENDABLE_SATS = 1
DEFAULT_MAX_SENDABLE_SATS = 1_000_000_000


def sats_to_millisats(sats: int) -> int:
    return sats * MSATS_PER_SAT


def millisats_to_sats(millisats: int) -> int:
    """Convert millisats to sats, flooring any sub-sat remainder."""
    return millisats // MSATS_PER_SAT


def validate_amount_in_range(amount_sats: int, min_sats: int, max_sats: int) -> None:
    """Verify an amount is within [min_sats, max_sats]. Raises if not.

    Raises:
        AmountOutOfRangeError: carrying both bounds so the caller can
            re-prompt with a valid range.
    """
    if amount_sats < min_sats or amount_sats > max_sats:
        raise AmountOutOfRangeError(min_sats, max_sats, amount_sats)


def sendable_bounds(
    min_sendable_msat: int | None,
    max_sendable_msat: int | None,
    settings: Settings | None = None,
) -> tuple[int, int]:
    """Turn optional wire bounds (millisats) into a (min, max) pair in sats.

    A missing or zero bound falls back to the configured default.
    """
    default_min = settings.default_min_sendable_sats if settings else DEFAULT_MIN_SENDABLE_SATS
    default_max = settings.default_max_sendable_sats if settings else DEFAULT_MAX_SENDABLE_SATS

    min_sats = millisats_to_sats(min_sendable_msat) if min_sendable_msat else default_min
    max_sats = millisats_to_sats(max_sendable_msat) if max_sendable_msat else default_max
    return min_sats, max_sats
