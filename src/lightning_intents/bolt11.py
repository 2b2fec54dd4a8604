"""Read the amount encoded in a BOLT11 invoice's human-readable part.

Only the prefix is inspected (ln + network + amount + multiplier + "1").
Signatures and tagged fields are not decoded, so this is advisory: it lets
the resolver notice a callback that issued an invoice for the wrong amount.
"""

from __future__ import annotations

import re

_HRP_RE = re.compile(
    r'^ln(?P<network>bcrt|bc|tbs|tb|sb)'
    r'(?P<amount>\d+)?'
    r'(?P<multiplier>[munp])?'
    r'1',
    re.IGNORECASE,
)

# Millisatoshis per unit of each multiplier (1 BTC = 1e11 msat).
_MSAT_PER_UNIT = {
    "": 100_000_000_000,
    "m": 100_000_000,
    "u": 100_000,
    "n": 100,
}


def invoice_amount_msat(bolt11: str) -> int | None:
    """Return the invoice amount in millisatoshis.

    None for any-amount invoices, unparseable strings, and pico amounts
    that are not a whole number of millisatoshis.
    """
    if not bolt11:
        return None

    match = _HRP_RE.match(bolt11.strip().lower())
    if not match or match.group("amount") is None:
        return None

    amount = int(match.group("amount"))
    multiplier = match.group("multiplier") or ""

    if multiplier == "p":
        # 1 pico-BTC is a tenth of a millisatoshi
        if amount % 10:
            return None
        return amount // 10

    return amount * _MSAT_PER_UNIT[multiplier]
