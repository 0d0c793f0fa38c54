"""
Токен отмены для долгих операций (end).

Проверяется между шагами пайплайна; шаг, уже ушедший к провайдеру, не прерывается.
"""

from __future__ import annotations

import threading

from party_meetings.common.errors import CancelledError


class CancellationToken:
    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, *, step: str) -> None:
        if self.cancelled:
            raise CancelledError(details={"step": step, "reason": self.reason})


NEVER_CANCELLED = CancellationToken()
