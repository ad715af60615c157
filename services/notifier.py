"""
Best-effort notification dispatch.

A failed or raising send is logged and swallowed: the credential cycle that
triggered the email has already been persisted and stays issued.

With ``deferred=True`` the send runs as a background task so the request
returns without waiting on the email API. The forgot-password endpoint
relies on this to answer in the same time whether or not the account
exists.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from shared.logging import get_logger

log = get_logger(__name__)


class Notifier:
    def __init__(self, deferred: bool = True) -> None:
        self._deferred = deferred
        self._pending: set[asyncio.Task] = set()

    async def dispatch(
        self,
        event: str,
        send: Callable[[], Awaitable[bool]],
        **context: Any,
    ) -> None:
        """Run *send* now or in the background, depending on the mode.

        *context* is attached to the log lines and must not carry secrets.
        """
        if not self._deferred:
            await self._run(event, send, context)
            return

        task = asyncio.create_task(self._run(event, send, context))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(
        self,
        event: str,
        send: Callable[[], Awaitable[bool]],
        context: dict,
    ) -> bool:
        try:
            sent = await send()
        except Exception as e:
            log.error(
                "notification_error",
                notification=event,
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            return False
        if not sent:
            log.warning("notification_not_delivered", notification=event, **context)
        return bool(sent)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every background send still in flight (used at shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
