import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

import redis.asyncio as redis
# Import exceptions from the main redis package, not asyncio
from redis import exceptions as redis_exceptions

from messenger_inbox.config.settings import Settings

logger = logging.getLogger(__name__)


class ConversationLockTimeout(Exception):
    """The shared conversation lock could not be obtained in time"""


def create_redis_client(settings: Settings) -> redis.Redis:
    """Redis client used for locks shared between workers"""
    return redis.Redis(
        host=settings.REDIS_HOST,
        port=settings.REDIS_PORT,
        db=settings.REDIS_DB,
        password=settings.REDIS_PASSWORD,
        decode_responses=True,
    )


class ConversationLocks:
    """
    Per-conversation serialization point for the read-then-write unread counter.

    Without Redis the locks are plain asyncio locks, which serialize deliveries
    handled by this process only. With Redis every worker shares one lock per
    conversation.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        expire: int = 30,
        wait_time: int = 10
    ):
        self._redis = redis_client
        self.expire = expire
        self.wait_time = wait_time
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    @property
    def is_distributed(self) -> bool:
        return self._redis is not None

    @asynccontextmanager
    async def hold(self, conversation_id: str) -> AsyncGenerator[None, None]:
        """Hold the lock for one conversation for the duration of the block"""
        if self._redis is not None:
            async with self._hold_shared(conversation_id):
                yield
        else:
            async with self._hold_local(conversation_id):
                yield

    @asynccontextmanager
    async def _hold_local(self, conversation_id: str) -> AsyncGenerator[None, None]:
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._holders[conversation_id] = self._holders.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[conversation_id] -= 1
            # Drop idle locks so the map does not grow with every sender ever seen
            if self._holders[conversation_id] == 0:
                del self._holders[conversation_id]
                del self._locks[conversation_id]

    @asynccontextmanager
    async def _hold_shared(self, conversation_id: str) -> AsyncGenerator[None, None]:
        lock = self._redis.lock(
            f"lock:conversation:{conversation_id}",
            timeout=self.expire,
            blocking_timeout=self.wait_time
        )

        try:
            acquired = await lock.acquire()
        except redis_exceptions.LockError:
            acquired = False

        if not acquired:
            logger.warning(f"🔒 Could not lock conversation {conversation_id} within {self.wait_time}s")
            raise ConversationLockTimeout(conversation_id)

        try:
            yield
        finally:
            try:
                await lock.release()
            except redis_exceptions.LockError:
                # Lock expired while the block was still running
                logger.warning(f"Lock for conversation {conversation_id} expired before release")

    def active_count(self) -> int:
        """Number of conversations currently held or awaited in this process"""
        return len(self._locks)
