"""Deferred tasks that run once their deadline, counted in seconds, has passed."""

from __future__ import annotations

import time
from typing import Callable

from .log import debug

Task = Callable[[], object]


def _check_timeout(timeout: int) -> int:
    if not 0 <= timeout <= 255:
        raise ValueError(f"timeout must be between 0 and 255 seconds, got {timeout}")
    return timeout


class TaskTimer:
    """Holds scheduled tasks; ``tick`` runs those whose deadline has passed.

    The owner is expected to call ``tick`` about once a second.
    """

    def __init__(self, default_timeout: int = 5, clock: Callable[[], float] = time.monotonic) -> None:
        self._default_timeout = _check_timeout(default_timeout)
        self._clock = clock
        self._tasks: dict[int, tuple[float, Task]] = {}
        self._highest_id = 0

    @property
    def default_timeout(self) -> int:
        """Seconds a task waits when scheduled without an explicit timeout."""
        return self._default_timeout

    @default_timeout.setter
    def default_timeout(self, timeout: int) -> None:
        self._default_timeout = _check_timeout(timeout)

    def schedule(self, task: Task, timeout: int | None = None) -> int:
        """Schedule ``task`` to run after ``timeout`` seconds; return its identifier."""
        seconds = self._default_timeout if timeout is None else _check_timeout(timeout)
        self._highest_id += 1
        self._tasks[self._highest_id] = (self._clock() + seconds, task)
        debug(f"task_timer scheduled: {id(self):#x} {self._highest_id}")
        return self._highest_id

    def cancel(self, identifier: int) -> None:
        """Drop the task with ``identifier``; unknown identifiers are ignored."""
        self._tasks.pop(identifier, None)
        debug(f"task_timer cancelled: {id(self):#x} {identifier}")

    def tick(self) -> list[int]:
        """Run every task whose deadline has passed; return their identifiers."""
        now = self._clock()
        finished = []
        for identifier, (deadline, task) in list(self._tasks.items()):
            if deadline < now:
                task()
                finished.append(identifier)
                debug(f"task_timer called: {id(self):#x} {identifier}")
        for identifier in finished:
            self._tasks.pop(identifier, None)
        if not self._tasks:
            self._highest_id = 0
        return finished

    def __len__(self) -> int:
        return len(self._tasks)