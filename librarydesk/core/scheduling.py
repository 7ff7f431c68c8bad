from __future__ import annotations

import threading
from typing import Callable, List

from librarydesk.core.logger import get_logger

logger = get_logger("scheduling")


class TaskHandle:
    def cancel(self) -> None:
        raise NotImplementedError

    @property
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler:
    """
    Timer source for the session monitor.

    `call_every` runs fn every `interval` seconds (first run after one
    interval). `call_later` runs fn once after `delay` seconds. Both return a
    handle whose cancel() guarantees fn is not started afterwards.
    """

    def call_every(self, interval: float, fn: Callable[[], None], *, name: str = "task") -> TaskHandle:
        raise NotImplementedError

    def call_later(self, delay: float, fn: Callable[[], None], *, name: str = "task") -> TaskHandle:
        raise NotImplementedError

    def shutdown(self) -> None:
        return None


class _ThreadTask(TaskHandle):
    def __init__(self, *, interval: float, fn: Callable[[], None], repeat: bool, name: str):
        self.interval = max(0.0, float(interval))
        self.fn = fn
        self.repeat = repeat
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, name=f"librarydesk-{name}", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stop.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=2.0)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def _loop(self) -> None:
        # Event.wait returns True once cancelled; a cancelled task never fires.
        while not self._stop.wait(self.interval):
            try:
                self.fn()
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Scheduled task {self._thread.name} failed: {e}")
            if not self.repeat:
                self._stop.set()


class ThreadScheduler(Scheduler):
    """One daemon thread per task, stopped through a threading.Event."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: List[_ThreadTask] = []

    def call_every(self, interval: float, fn: Callable[[], None], *, name: str = "task") -> TaskHandle:
        if float(interval) <= 0:
            raise ValueError("interval must be positive")
        return self._start(_ThreadTask(interval=interval, fn=fn, repeat=True, name=name))

    def call_later(self, delay: float, fn: Callable[[], None], *, name: str = "task") -> TaskHandle:
        return self._start(_ThreadTask(interval=delay, fn=fn, repeat=False, name=name))

    def _start(self, task: _ThreadTask) -> _ThreadTask:
        with self._lock:
            self._tasks = [t for t in self._tasks if not t.cancelled]
            self._tasks.append(task)
        task.start()
        return task

    def shutdown(self) -> None:
        with self._lock:
            tasks, self._tasks = self._tasks, []
        for t in tasks:
            t.cancel()
