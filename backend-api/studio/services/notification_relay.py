"""
Notification relay client + background notifier

POSTs the lead JSON to NOTIFY_RELAY_URL (aiohttp, retried on network errors);
mails the studio inbox instead when no relay is configured. Notifications run
as isolated background tasks and never affect the lead outcome.
"""

from typing import Awaitable, Callable, Optional, Set
import asyncio
import logging

import aiohttp
import backoff

from studio.core.config import settings
from studio.services.mail_service import send_lead_notification_email

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Relay answered with an error status"""
    pass


class RelayClient:
    def __init__(self, relay_url: Optional[str] = None, timeout: Optional[float] = None):
        self.relay_url = relay_url if relay_url is not None else settings.NOTIFY_RELAY_URL
        self.timeout = timeout or settings.NOTIFY_TIMEOUT_SECONDS

    # network errors only; a 4xx/5xx answer is final
    @backoff.on_exception(
        backoff.expo,
        (aiohttp.ClientConnectionError, asyncio.TimeoutError),
        max_tries=3,
        max_time=30,
    )
    async def _post(self, payload: dict) -> None:
        async with aiohttp.ClientSession() as session:
            async with session.post(
                self.relay_url,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                if resp.status >= 400:
                    error_text = await resp.text()
                    raise RelayError(f"Relay answered {resp.status}: {error_text[:200]}")

    async def notify(self, payload: dict) -> None:
        if self.relay_url:
            await self._post(payload)
            logger.info(f"[relay] lead {payload.get('referenceCode')} relayed")
            return
        await send_lead_notification_email(payload)


class BackgroundNotifier:
    """Runs notifications as tasks whose failures are only logged."""

    def __init__(self, send: Callable[[dict], Awaitable[None]]):
        self._send = send
        self._tasks: Set[asyncio.Task] = set()

    def schedule(self, payload: dict) -> asyncio.Task:
        task = asyncio.create_task(self._run(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, payload: dict) -> None:
        try:
            await self._send(payload)
        except Exception as e:
            logger.warning(f"[relay] notification for {payload.get('referenceCode')} failed: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for outstanding notifications (shutdown, tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
