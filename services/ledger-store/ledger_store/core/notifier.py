"""
Ledger Store — Toast notifications

Callers of the ledger turn each outcome into a Toast. The Notifier keeps the
latest ones for polling and, when a Redis client is configured, publishes
them on a pub/sub channel for live UIs.
"""
import logging
from collections import deque
from typing import Literal

import redis.asyncio as aioredis
from pydantic import BaseModel

from ledger_store.core.errors import LedgerError

logger = logging.getLogger(__name__)


class Toast(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class Notifier:
    def __init__(self, redis: aioredis.Redis | None = None, channel: str = "ledger:toasts", history: int = 50):
        self._redis = redis
        self.channel = channel
        self._recent: deque[Toast] = deque(maxlen=history)

    @property
    def recent(self) -> list[Toast]:
        """Newest first."""
        return list(self._recent)

    async def push(self, toast: Toast) -> Toast:
        self._recent.appendleft(toast)
        log = logger.warning if toast.variant == "destructive" else logger.info
        log("Toast [%s]: %s", toast.title, toast.description)
        if self._redis is not None:
            try:
                await self._redis.publish(self.channel, toast.model_dump_json())
            except Exception as exc:
                # Toast delivery must not affect the ledger outcome
                logger.warning("Toast publish to %s failed: %s", self.channel, exc)
        return toast

    async def success(self, title: str, description: str) -> Toast:
        return await self.push(Toast(title=title, description=description))

    async def failure(self, error: LedgerError) -> Toast:
        return await self.push(Toast(title=error.title, description=error.message, variant="destructive"))
