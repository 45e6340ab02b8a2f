from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from auth_api.services._shared.errors import NotificationError


class Notifier(Protocol):
    """
    Port for outbound user notifications (email).

    Implementations raise :class:`NotificationError` when delivery fails.
    """

    def send(self, to: str, subject: str, html: str) -> None: ...


@dataclass(frozen=True, slots=True)
class SentMessage:
    to: str
    subject: str
    html: str


class InMemoryNotifier(Notifier):
    """
    Collect messages in memory instead of delivering them.

    :param fail: Raise :class:`NotificationError` on every send (for tests of
        failure paths).
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.outbox: list[SentMessage] = []

    def send(self, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise NotificationError("Notification delivery failed.")
        self.outbox.append(SentMessage(to=to, subject=subject, html=html))

    @property
    def last(self) -> SentMessage | None:
        return self.outbox[-1] if self.outbox else None
