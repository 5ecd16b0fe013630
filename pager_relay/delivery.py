"""
Delivery of normalized messages to the PagerMon collector

Each message gets its own asyncio task. A failed POST is retried with
exponential backoff (1s, 2s, 4s, ... 512s) up to ten times, then dropped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Set

import httpx

from .models import DeliveryAttempt, PagingMessage
from .utils.validators import messages_url

logger = logging.getLogger(__name__)

USER_AGENT = "pager-relay"
DEFAULT_TIMEOUT = 30.0

@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff"""
    max_retries: int = 10
    base_delay_ms: int = 1000

    def delay_ms(self, retry_count: int) -> int:
        """Delay before the retry that follows ``retry_count`` earlier retries"""
        return (2 ** retry_count) * self.base_delay_ms

    def should_retry(self, retry_count: int) -> bool:
        return retry_count < self.max_retries


class DeliverySender:
    """Posts PagingMessages to <hostname>/api/messages without blocking the caller"""

    def __init__(self, hostname: str, apikey: str,
                 client: Optional[httpx.AsyncClient] = None,
                 retry_policy: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.url = messages_url(hostname)
        self.headers = {
            "X-Requested-With": "XMLHttpRequest",
            "User-Agent": USER_AGENT,
            "apikey": apikey,
        }
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT)
        self._tasks: Set[asyncio.Task] = set()
        self._stats = {
            'messages_sent': 0,
            'messages_failed': 0,
            'attempts': 0,
            'retries_scheduled': 0
        }

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def stats(self) -> dict:
        stats = self._stats.copy()
        stats['in_flight'] = self.in_flight
        return stats

    def send(self, message: PagingMessage) -> asyncio.Task:
        """Schedule delivery of a message and return immediately"""
        task = asyncio.get_running_loop().create_task(
            self.deliver(message), name=f"deliver_{message.address}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def deliver(self, message: PagingMessage) -> bool:
        """Deliver one message, retrying until success or the retry bound

        Returns True if the collector accepted the message.
        """
        attempt = DeliveryAttempt(message=message)
        while True:
            error = await self._post(message)
            if error is None:
                self._stats['messages_sent'] += 1
                logger.debug(f"Message for {message.address} delivered")
                return True

            logger.warning(f"Message failed to deliver. {error}")
            if not self.retry_policy.should_retry(attempt.retry_count):
                self._stats['messages_failed'] += 1
                logger.warning(
                    f"Message failed to deliver after {attempt.retry_count} retries, giving up"
                )
                return False

            attempt.scheduled_delay_ms = self.retry_policy.delay_ms(attempt.retry_count)
            attempt.retry_count += 1
            self._stats['retries_scheduled'] += 1
            logger.warning(f"Retrying in {attempt.scheduled_delay_ms} ms")
            await self._sleep(attempt.scheduled_delay_ms / 1000)

    async def _post(self, message: PagingMessage) -> Optional[str]:
        """POST once; returns None on success or a description of the failure"""
        self._stats['attempts'] += 1
        try:
            response = await self._client.post(
                self.url, headers=self.headers, data=message.as_form()
            )
        except httpx.HTTPError as e:
            return f"{type(e).__name__}: {e}"

        if not response.is_success:
            return f"HTTP {response.status_code} from {self.url}"
        return None

    async def drain(self):
        """Wait for every in-flight delivery, retries included"""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    self._stats['messages_failed'] += 1
                    logger.error(f"Delivery task died, message dropped: {result!r}",
                                 exc_info=result)

    async def aclose(self):
        """Cancel pending deliveries and close the HTTP client"""
        pending = [task for task in self._tasks if not task.done()]
        if pending:
            logger.info(f"Cancelling {len(pending)} pending deliveries")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()
