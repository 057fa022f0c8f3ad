"""Single-slot cooperative cancellation for one chat panel."""

from collections.abc import Callable

import structlog

logger = structlog.get_logger()


class CompletionCancelled(Exception):
    """Raised inside the read loop once its token has been cancelled."""


class CancellationToken:
    """Cooperative cancellation flag with synchronous cancel callbacks."""

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` at cancel time, or now if already cancelled."""
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CompletionCancelled()


class CancellationSlot:
    """Holds at most one live token; issuing a new one cancels the old one."""

    def __init__(self) -> None:
        self._token: CancellationToken | None = None

    @property
    def current(self) -> CancellationToken | None:
        return self._token

    @property
    def active(self) -> bool:
        return self._token is not None and not self._token.cancelled

    def issue(self) -> CancellationToken:
        """Cancel whatever is in the slot, then install a fresh token."""
        if self._token is not None:
            if not self._token.cancelled:
                logger.info("Preempting in-flight completion")
            self._token.cancel()
        self._token = CancellationToken()
        return self._token

    def cancel(self) -> bool:
        """Cancel the live token. Returns whether anything was cancelled."""
        token, self._token = self._token, None
        if token is None or token.cancelled:
            return False
        token.cancel()
        return True

    def release(self, token: CancellationToken) -> None:
        """Clear the slot if ``token`` still owns it."""
        if self._token is token:
            self._token = None
