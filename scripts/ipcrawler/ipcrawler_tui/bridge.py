"""Thread-safe event mailbox between producers and the dashboard loop.

Any number of threads may call the send methods at once. Each call builds
one immutable event and appends it to a bounded FIFO under a single
condition lock; the dashboard loop is the only reader. Sends never wait on
the reader: when the buffer is full the configured overflow policy drops
either the oldest queued event or the incoming one. ``Quit`` is never
dropped. Once the bridge is closed every send is discarded.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Any

from ipcrawler_tui.events import (
    Event,
    Key,
    LogAppended,
    MetricsUpdated,
    Quit,
    Resize,
    Tick,
    ToolFinished,
    ToolStarted,
    WorkflowStarted,
    WorkflowUpdated,
)

logger = logging.getLogger(__name__)

DROP_OLDEST = "drop_oldest"
DROP_NEWEST = "drop_newest"
OVERFLOW_POLICIES = (DROP_OLDEST, DROP_NEWEST)


def _freeze(args: Any) -> Any:
    # anything else is left for the store to normalise
    if isinstance(args, list):
        return tuple(args)
    return args


class EventBridge:
    def __init__(self, capacity: int = 4096, overflow: str = DROP_OLDEST):
        if overflow not in OVERFLOW_POLICIES:
            raise ValueError(f"unknown overflow policy: {overflow}")
        self.capacity = max(1, int(capacity))
        self.overflow = overflow
        self.accepted = 0
        self.dropped = 0
        self._queue: deque = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._overflowing = False

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)

    # -- producer side -----------------------------------------------

    def put(self, event: Event) -> bool:
        with self._cond:
            if self._closed:
                logger.debug("bridge closed, discarding %s", type(event).__name__)
                return False
            if len(self._queue) >= self.capacity:
                if isinstance(event, Quit):
                    self._evict_oldest()
                elif self.overflow == DROP_NEWEST or not self._evict_oldest():
                    self._note_drop(event)
                    return False
            else:
                self._overflowing = False
            self._queue.append(event)
            self.accepted += 1
            self._cond.notify()
            return True

    def _evict_oldest(self) -> bool:
        """Drop the oldest non-Quit event; False when only quit requests are queued."""
        for index, queued in enumerate(self._queue):
            if not isinstance(queued, Quit):
                del self._queue[index]
                self._note_drop(queued)
                return True
        return False

    def _note_drop(self, event) -> None:
        self.dropped += 1
        if not self._overflowing:
            self._overflowing = True
            logger.warning(
                "event buffer full (%s), dropping events with %s policy",
                self.capacity,
                self.overflow,
            )
        else:
            logger.debug("dropped %s", type(event).__name__)

    def workflow_started(self, workflow_id: Any, description: Any = "", started_at: Any = None, **meta: Any) -> None:
        self.put(WorkflowStarted(
            workflow_id=workflow_id,
            description=description,
            started_at=started_at if started_at is not None else datetime.now().astimezone(),
            meta=meta,
        ))

    def workflow_updated(
        self,
        workflow_id: Any,
        status: Any = None,
        description: Any = None,
        duration: Any = None,
        progress: Any = None,
        error: Any = None,
        **meta: Any,
    ) -> None:
        self.put(WorkflowUpdated(
            workflow_id=workflow_id,
            status=status,
            description=description,
            duration=duration,
            progress=progress,
            error=error,
            meta=meta,
        ))

    def tool_started(self, name: Any, workflow_id: Any = "", args: Any = ()) -> None:
        self.put(ToolStarted(name=name, workflow_id=workflow_id, args=_freeze(args)))

    def tool_finished(
        self,
        name: Any,
        workflow_id: Any = "",
        status: Any = "completed",
        duration: Any = None,
        output: Any = "",
        error: Any = None,
        args: Any = None,
    ) -> None:
        self.put(ToolFinished(
            name=name,
            workflow_id=workflow_id,
            status=status,
            duration=duration,
            output=output,
            error=error,
            args=_freeze(args),
        ))

    def log_appended(self, level: Any, message: Any, category: Any = "", timestamp: Any = None, **fields: Any) -> None:
        self.put(LogAppended(
            level=level,
            message=message,
            category=category,
            timestamp=timestamp if timestamp is not None else datetime.now().astimezone(),
            fields=fields,
        ))

    def metrics_updated(
        self,
        cpu_percent: Any = None,
        memory_percent: Any = None,
        disk_percent: Any = None,
        load: Any = None,
    ) -> None:
        self.put(MetricsUpdated(
            cpu_percent=cpu_percent,
            memory_percent=memory_percent,
            disk_percent=disk_percent,
            load=load,
        ))

    def resize(self, width: int, height: int) -> None:
        self.put(Resize(width=width, height=height))

    def key(self, key: str) -> None:
        self.put(Key(key=key))

    def tick(self) -> None:
        self.put(Tick())

    def request_quit(self, reason: str = "") -> None:
        self.put(Quit(reason=reason))

    # -- consumer side -----------------------------------------------

    def get(self, timeout: float | None = None):
        """Return the next event, or None on timeout or once closed and empty."""
        with self._cond:
            self._cond.wait_for(lambda: self._queue or self._closed, timeout)
            if self._queue:
                return self._queue.popleft()
            return None

    def drain(self, limit: int | None = None) -> list:
        with self._cond:
            count = len(self._queue) if limit is None else min(limit, len(self._queue))
            return [self._queue.popleft() for _ in range(count)]

    def close(self) -> None:
        with self._cond:
            if not self._closed:
                logger.debug("bridge closed with %s queued events", len(self._queue))
            self._closed = True
            self._cond.notify_all()
