"""Wallet-invite notifications, enqueued at most once per pair per window."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from lightning_intents.dedup import NotificationDedupCache
from lightning_intents.exceptions import (
    AuthenticationRequiredError,
    InvalidNotifyRequestError,
    MissingEmailError,
    RecipientNotFoundError,
)

logger = logging.getLogger(__name__)

WALLET_INVITE_JOB = "send-wallet-invite-email"


@dataclass(frozen=True)
class UserProfile:
    id: str
    username: str
    name: str | None = None
    email: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.username


@dataclass(frozen=True)
class NotifyOutcome:
    status: str
    message: str

    @property
    def sent(self) -> bool:
        return self.status == "sent"


UserLookup = Callable[[str], Awaitable["UserProfile | None"]]
JobEnqueuer = Callable[[str, dict[str, Any]], Awaitable[Any]]


def wallet_invite_payload(sender: UserProfile, recipient: UserProfile) -> dict[str, Any]:
    return {
        "recipientUsername": recipient.username,
        "recipientEmail": recipient.email,
        "recipientName": recipient.display_name,
        "senderName": sender.display_name,
        "senderUsername": sender.username,
        "senderEmail": sender.email,
    }


class WalletInviteNotifier:
    """Asks a user without a wallet to set one up, on behalf of a sender.

    Args:
        cache: Dedup cache shared by all request handlers of the process.
        lookup_user: Coroutine function resolving a username to a profile.
        enqueue: Coroutine function taking (job_name, payload).
    """

    def __init__(
        self,
        cache: NotificationDedupCache,
        lookup_user: UserLookup,
        enqueue: JobEnqueuer,
    ):
        self._cache = cache
        self._lookup_user = lookup_user
        self._enqueue = enqueue

    async def notify(
        self, sender: UserProfile | None, recipient_username: str
    ) -> NotifyOutcome:
        """Enqueue a wallet-invite email unless one went out recently.

        Raises:
            InvalidNotifyRequestError: recipient_username is blank.
            AuthenticationRequiredError: sender is None.
            RecipientNotFoundError: No user with that username.
            MissingEmailError: Sender or recipient has no email.
        """
        if not isinstance(recipient_username, str) or not recipient_username.strip():
            raise InvalidNotifyRequestError("recipientUsername is required")
        if sender is None:
            raise AuthenticationRequiredError()

        if self._cache.is_duplicate(sender.username, recipient_username):
            return NotifyOutcome(
                status="already_notified",
                message=(
                    "Recipient was already notified in the last "
                    f"{self._cache.window_seconds / 3600:g} hours"
                ),
            )

        recipient = await self._lookup_user(recipient_username)
        if recipient is None:
            raise RecipientNotFoundError(recipient_username)
        if not recipient.email:
            raise MissingEmailError("recipient", recipient.username)
        if not sender.email:
            raise MissingEmailError("sender", sender.username)

        await self._enqueue(WALLET_INVITE_JOB, wallet_invite_payload(sender, recipient))
        self._cache.record_notification(sender.username, recipient_username)
        logger.info(
            "Wallet invite queued from %s to %s", sender.username, recipient.username
        )

        return NotifyOutcome(status="sent", message="Wallet invite notification triggered")
