"""Single-threaded cooperative scheduler.

Animations are plain generators that ``yield`` a delay in milliseconds each
time they want to suspend. The scheduler resumes them in due-time order,
interleaved with periodic timers (the matrix rain tick). Nothing runs in
parallel: a task runs until its next ``yield``.

With ``realtime=False`` the clock is virtual and jumps straight to the next
due event, which is what export and tests use. ``realtime=True`` actually
sleeps until each event is due, for live presentation.
"""
from __future__ import annotations

import heapq
import itertools
import time
from typing import Any, Callable, Generator, List, Optional, Tuple, Union

from logging_utils import get_logger

logger = get_logger(__name__)

Animation = Generator[float, None, Any]


class Task:
    def __init__(self, gen: Animation, name: str = "task") -> None:
        self.gen = gen
        self.name = name
        self.done = False
        self.cancelled = False
        self.result: Any = None
        self.exception: Optional[BaseException] = None

    def cancel(self) -> None:
        if self.done:
            return
        self.cancelled = True
        self.done = True
        self.gen.close()

    def step(self) -> Optional[float]:
        """Run until the next suspension; return its delay or ``None`` when finished."""
        try:
            delay = next(self.gen)
        except StopIteration as stop:
            self.done = True
            self.result = stop.value
            return None
        except Exception as exc:
            self.done = True
            self.exception = exc
            return None
        return max(0.0, float(delay or 0.0))


class Timer:
    def __init__(self, interval_ms: float, callback: Callable[[], None], name: str = "timer") -> None:
        self.interval_ms = max(1.0, float(interval_ms))
        self.callback = callback
        self.name = name
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


Handle = Union[Task, Timer]


class Scheduler:
    def __init__(
        self,
        *,
        realtime: bool = False,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        self.realtime = realtime
        self.sleeper = sleeper
        self.now = 0.0
        self._queue: List[Tuple[float, int, Handle]] = []
        self._seq = itertools.count()

    def spawn(self, gen: Animation, name: str = "task") -> Task:
        task = Task(gen, name)
        self._push(self.now, task)
        return task

    def call_every(self, interval_ms: float, callback: Callable[[], None], name: str = "timer") -> Timer:
        """Invoke ``callback`` every ``interval_ms`` until the timer is cancelled."""
        timer = Timer(interval_ms, callback, name)
        self._push(self.now + timer.interval_ms, timer)
        return timer

    def run_until_complete(self, gen: Animation, name: str = "task") -> Any:
        """Drive the scheduler until ``gen`` finishes; re-raise its error if it failed."""
        task = self.spawn(gen, name)
        while not task.done:
            if not self._queue:
                raise RuntimeError(f"scheduler drained before '{name}' completed")
            self._dispatch_next()
        if task.exception is not None:
            raise task.exception
        return task.result

    def advance(self, ms: float) -> None:
        """Run every event due within the next ``ms`` milliseconds."""
        deadline = self.now + max(0.0, ms)
        while self._queue and self._queue[0][0] <= deadline:
            self._dispatch_next()
        self._wait_until(deadline)

    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if not _is_dead(handle))

    # ------------------------------------------------------------------

    def _push(self, due: float, handle: Handle) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), handle))

    def _wait_until(self, due: float) -> None:
        if due <= self.now:
            return
        if self.realtime:
            self.sleeper((due - self.now) / 1000.0)
        self.now = due

    def _dispatch_next(self) -> None:
        due, _, handle = heapq.heappop(self._queue)
        if _is_dead(handle):
            return
        self._wait_until(due)
        if isinstance(handle, Timer):
            handle.callback()
            if not handle.cancelled:
                self._push(due + handle.interval_ms, handle)
            return
        delay = handle.step()
        if delay is not None:
            self._push(self.now + delay, handle)
        elif handle.exception is not None:
            logger.debug("Task '%s' failed: %s", handle.name, handle.exception)


def _is_dead(handle: Handle) -> bool:
    if isinstance(handle, Timer):
        return handle.cancelled
    return handle.done
