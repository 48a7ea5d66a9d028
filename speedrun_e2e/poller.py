"""
Status polling for a single intent.

One ``poll_until`` call tracks one intent ID from "not indexed yet" to a
stopping status or until the attempt budget runs out. Timings are taken
from this process's own observations, never from the remote record.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Optional, Union

from .api import SpeedrunApiClient
from .exceptions import IntentNotIndexedError
from .models import IntentRecord, IntentStatus

# Consecutive 404s tolerated before the intent is reported as not indexed
MAX_NOT_FOUND_ATTEMPTS = 5

DEFAULT_TARGET_STATUSES = (IntentStatus.FULFILLED, IntentStatus.SETTLED)


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


@dataclass
class IntentStatusResult:
    """
    Final observation of a polling session.

    ``time_to_fulfill`` is set only when ``fulfilled`` was observed;
    ``time_to_settle`` and ``total_time`` only when both ``fulfilled`` and
    ``settled`` were. All durations are in milliseconds.
    """
    intent: Optional[IntentRecord]
    attempts: int = 0
    exhausted: bool = False
    fulfilled_at: Optional[datetime] = None
    settled_at: Optional[datetime] = None
    time_to_fulfill: Optional[int] = None
    time_to_settle: Optional[int] = None
    total_time: Optional[int] = None

    @property
    def status(self) -> Optional[str]:
        return self.intent.status if self.intent else None


class StatusPoller:
    """Polls the status API until an intent settles, the budget runs out, or it is never indexed."""

    def __init__(
        self,
        api: SpeedrunApiClient,
        clock: Optional[Callable[[], int]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        max_not_found: int = MAX_NOT_FOUND_ATTEMPTS,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            api: Status API client
            clock: Monotonic clock in integer milliseconds
            sleep: Coroutine function taking seconds, defaults to asyncio.sleep
            max_not_found: Consecutive 404s before IntentNotIndexedError
            logger: Optional logger instance
        """
        self.api = api
        self.clock = clock or _monotonic_ms
        self.sleep = sleep or asyncio.sleep
        self.max_not_found = max_not_found
        self.logger = logger or logging.getLogger(__name__)

    async def poll_until(
        self,
        intent_id: str,
        target_statuses: Iterable[Union[str, IntentStatus]] = DEFAULT_TARGET_STATUSES,
        max_attempts: int = 60,
        interval_ms: int = 5000,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ) -> IntentStatusResult:
        """
        Poll until a target status other than ``fulfilled`` is seen.

        ``fulfilled`` is recorded but never stops polling: the loop keeps
        going towards ``settled`` until ``max_attempts`` is used up.

        Args:
            intent_id: Intent to track
            target_statuses: Statuses that end polling (``fulfilled`` excepted)
            max_attempts: Maximum number of API queries
            interval_ms: Pause between queries
            logger: Per-call logger, e.g. a transfer-prefixed adapter

        Returns:
            IntentStatusResult with the last observation and timings

        Raises:
            IntentNotIndexedError: After MAX_NOT_FOUND_ATTEMPTS consecutive 404s
            StatusApiError: If the API itself fails
        """
        log = logger or self.logger
        targets = {s.value if isinstance(s, IntentStatus) else str(s) for s in target_statuses}

        start = self.clock()
        intent: Optional[IntentRecord] = None
        previous_status: Optional[str] = None
        not_found = 0
        attempts = 0
        fulfilled_ms: Optional[int] = None
        settled_ms: Optional[int] = None
        result = IntentStatusResult(intent=None)

        while attempts < max_attempts:
            observed = await self.api.get_intent(intent_id)
            attempts += 1
            now = self.clock()

            if observed is None:
                not_found += 1
                log.debug(f"Intent {intent_id} not found yet ({not_found}/{self.max_not_found})")
                if not_found >= self.max_not_found:
                    raise IntentNotIndexedError(intent_id, not_found)
            else:
                intent = observed
                not_found = 0
                if previous_status is None:
                    log.info(f"⏳ Intent found in API with status: {intent.status}")

                if intent.status != previous_status:
                    if previous_status is not None:
                        log.info(f"🔁 Intent status changed: {previous_status} → {intent.status}")
                    previous_status = intent.status

                    if intent.status == IntentStatus.FULFILLED.value and fulfilled_ms is None:
                        fulfilled_ms = now
                        result.fulfilled_at = datetime.now(timezone.utc)
                        log.info("👌 Intent fulfilled!")
                    elif intent.status == IntentStatus.SETTLED.value and settled_ms is None:
                        settled_ms = now
                        result.settled_at = datetime.now(timezone.utc)

                if intent.status in targets and intent.status != IntentStatus.FULFILLED.value:
                    break

            if attempts < max_attempts:
                await self.sleep(interval_ms / 1000)
        else:
            result.exhausted = True

        result.intent = intent
        result.attempts = attempts

        if fulfilled_ms is not None:
            result.time_to_fulfill = fulfilled_ms - start
            if settled_ms is not None:
                result.time_to_settle = settled_ms - fulfilled_ms
                result.total_time = settled_ms - start

        return result
