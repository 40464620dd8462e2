"""
BACKGROUND SCHEDULER

Fire-and-forget runner for work that must not delay a response
(neighbour-month preloading):
- Tasks run on the current event loop via asyncio.create_task
- Exceptions land in a dead-letter list and the error log, never the caller
- A name that is still running is not started twice
- drain() awaits outstanding work, shutdown() cancels it
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Dict, List, Optional, Set

logger = logging.getLogger(__name__)

MAX_DEAD_LETTERS = 50


class BackgroundScheduler:
    """
    Tracks background tasks so they can be awaited or cancelled later.

    Features:
    - Strong references to running tasks (not garbage-collected mid-flight)
    - Per-name pending view for tests and the CLI
    - Bounded dead-letter channel
    """

    def __init__(self, config: Dict = None):
        self.config = config or {}
        self.max_dead_letters = self.config.get('max_dead_letters', MAX_DEAD_LETTERS)

        self._tasks: Set[asyncio.Task] = set()
        self.dead_letters: List[Dict] = []

        self.submitted = 0
        self.completed = 0
        self.failed = 0
        self.cancelled = 0
        self.skipped = 0
        self.last_submit_time = None

    def submit(self, coro: Awaitable, name: str = None) -> asyncio.Task:
        """
        Schedule a coroutine without awaiting it.

        A named task that is still running absorbs later submissions under
        the same name: the new coroutine is closed and the running task
        is returned. Must be called from inside a running event loop.
        """
        if name is not None:
            running = self._find(name)
            if running is not None:
                coro.close()
                self.skipped += 1
                logger.debug(f"[SCHEDULER] {name} already running, skipped")
                return running

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

        self.submitted += 1
        self.last_submit_time = datetime.now()
        logger.debug(f"[SCHEDULER] Submitted {task.get_name()}")
        return task

    def _find(self, name: str) -> Optional[asyncio.Task]:
        for task in self._tasks:
            if task.get_name() == name and not task.done():
                return task
        return None

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)

        if task.cancelled():
            self.cancelled += 1
            return

        error = task.exception()
        if error is None:
            self.completed += 1
            return

        self.failed += 1
        logger.error(f"[SCHEDULER] Background task {task.get_name()} failed: {error!r}")
        self.dead_letters.append({
            'task': task.get_name(),
            'error': repr(error),
            'at': datetime.now().isoformat(),
        })
        del self.dead_letters[:-self.max_dead_letters]

    @property
    def pending(self) -> List[str]:
        return sorted(task.get_name() for task in self._tasks)

    async def drain(self):
        """Wait until every submitted task (including ones they submit) finishes."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self):
        """Cancel outstanding tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"[SCHEDULER] Cancelled {len(tasks)} background tasks")

    def get_stats(self) -> Dict:
        return {
            'submitted': self.submitted,
            'completed': self.completed,
            'failed': self.failed,
            'cancelled': self.cancelled,
            'skipped': self.skipped,
            'pending': self.pending,
            'dead_letters': len(self.dead_letters),
            'last_submit_time': self.last_submit_time.isoformat() if self.last_submit_time else None,
        }
