"""Admission queue bounding how many issues are processed at once.

Admitted issues are handed to a dispatcher coroutine over an
asyncio.Queue channel; the dispatcher starts one task per job. Issues
arriving while the service is at capacity wait in a FIFO pending list
and are promoted as active jobs complete.

An issue identifier is in at most one of `active` and `pending` at any
time. A forced admission (manual `/auto-fix` trigger) skips the capacity
check, so `active` may temporarily exceed the limit. A forced admission
of an issue that is already pending moves it out of the pending list.
Each completed job promotes the head of the pending list.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set

from src.autofix.webhook.models import IssueRef, RepositoryRef, make_issue_id

logger = logging.getLogger(__name__)


ProcessFn = Callable[[IssueRef, RepositoryRef], Awaitable[Any]]


class EnqueueResult(str, Enum):
    """Outcome of an enqueue request."""

    ADMITTED = "admitted"
    QUEUED = "queued"
    DUPLICATE = "duplicate"


@dataclass
class ProcessingRecord:
    """An issue that is active or waiting for a slot."""

    issue_id: str
    issue: IssueRef
    repository: RepositoryRef
    start_time: Optional[float] = None


class AdmissionQueue:
    """Bounded admission with a FIFO overflow list.

    Attributes:
        max_concurrent: Capacity for non-forced admissions.
        active: In-flight records keyed by issue identifier.
        pending: Records waiting for capacity, oldest first.
    """

    def __init__(self, process: ProcessFn, max_concurrent: int):
        if max_concurrent <= 0:
            raise ValueError("max_concurrent must be positive")
        self._process = process
        self.max_concurrent = max_concurrent
        self.active: Dict[str, ProcessingRecord] = {}
        self.pending: Deque[ProcessingRecord] = deque()
        self._channel: "asyncio.Queue[ProcessingRecord]" = asyncio.Queue()
        self._tasks: Set[asyncio.Task] = set()
        self._dispatcher: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def active_count(self) -> int:
        return len(self.active)

    @property
    def pending_count(self) -> int:
        return len(self.pending)

    @property
    def is_running(self) -> bool:
        return self._dispatcher is not None and not self._dispatcher.done()

    def enqueue(
        self,
        issue: IssueRef,
        repository: RepositoryRef,
        force: bool = False,
    ) -> EnqueueResult:
        """Admit an issue, park it in pending, or reject it as a duplicate.

        Args:
            issue: Issue snapshot to process.
            repository: Repository the issue belongs to.
            force: Admit immediately even when at capacity.

        Returns:
            How the request was handled.
        """
        issue_id = make_issue_id(issue, repository)

        if issue_id in self.active:
            logger.warning("Issue %s is already being processed", issue_id)
            return EnqueueResult.DUPLICATE

        queued = next(
            (record for record in self.pending if record.issue_id == issue_id), None
        )
        if queued is not None:
            if not force:
                logger.info("Issue %s is already queued", issue_id)
                return EnqueueResult.DUPLICATE
            self.pending.remove(queued)
            logger.info("Manual trigger promoting queued issue %s", issue_id)

        record = ProcessingRecord(
            issue_id=issue_id, issue=issue, repository=repository
        )

        if not force and len(self.active) >= self.max_concurrent:
            self.pending.append(record)
            self._idle.clear()
            logger.info(
                "Max concurrent issues reached, queuing %s",
                issue_id,
                extra={"pending": len(self.pending)},
            )
            return EnqueueResult.QUEUED

        self._admit(record)
        return EnqueueResult.ADMITTED

    def _admit(self, record: ProcessingRecord) -> None:
        record.start_time = time.time()
        self.active[record.issue_id] = record
        self._idle.clear()
        self._channel.put_nowait(record)

    async def start(self) -> None:
        """Start the dispatcher. Safe to call more than once."""
        if self.is_running:
            return
        self._dispatcher = asyncio.create_task(self._dispatch_loop())
        logger.info("Admission queue started (max concurrent: %d)", self.max_concurrent)

    async def stop(self) -> None:
        """Stop the dispatcher. In-flight jobs are left to finish on their own."""
        if self._dispatcher is None:
            return
        self._dispatcher.cancel()
        try:
            await self._dispatcher
        except asyncio.CancelledError:
            pass
        self._dispatcher = None

    async def _dispatch_loop(self) -> None:
        while True:
            record = await self._channel.get()
            task = asyncio.create_task(self._run(record))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, record: ProcessingRecord) -> None:
        try:
            await self._process(record.issue, record.repository)
        except Exception:
            logger.exception("Unhandled error processing %s", record.issue_id)
        finally:
            self._complete(record)

    def _complete(self, record: ProcessingRecord) -> None:
        self.active.pop(record.issue_id, None)
        if record.start_time is not None:
            logger.debug(
                "Released %s after %.2fs",
                record.issue_id,
                time.time() - record.start_time,
            )

        if self.pending:
            nxt = self.pending.popleft()
            logger.info("Promoting queued issue %s", nxt.issue_id)
            self._admit(nxt)

        if not self.active and not self.pending:
            self._idle.set()

    async def wait_until_idle(self) -> None:
        """Wait until no issue is active or pending."""
        await self._idle.wait()

    async def drain(self, timeout: float = 30.0, poll_interval: float = 1.0) -> bool:
        """Wait for active jobs to finish, up to `timeout` seconds.

        Returns:
            True if nothing was active when the wait ended.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while self.active and loop.time() < deadline:
            logger.info("Waiting for %d active issue(s) to complete", len(self.active))
            await asyncio.sleep(poll_interval)

        if self.active:
            abandoned: List[str] = list(self.active)
            logger.warning(
                "Shutdown timeout reached, abandoning %d issue(s): %s",
                len(abandoned),
                ", ".join(abandoned),
            )
            return False
        return True
