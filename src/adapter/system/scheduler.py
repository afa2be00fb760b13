"""Thread-backed implementation of SchedulerPort.

Each pending task is a daemon ``threading.Timer`` keyed by caller-supplied
string. Scheduling under an existing key cancels the earlier timer, so at most
one task per key is ever pending. Tasks are not persisted: anything still
pending when the process exits is lost.
"""

import logging
import threading
from datetime import timedelta
from typing import Callable

logger = logging.getLogger(__name__)


class TimerScheduler:
    def __init__(self):
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._closed = False

    def schedule(self, key: str, delay: timedelta, action: Callable[[], None]) -> None:
        timer = threading.Timer(delay.total_seconds(), self._run, args=(key, action))
        timer.daemon = True
        with self._lock:
            if self._closed:
                logger.warning("Scheduler is shut down, task dropped", extra={"taskKey": key})
                return
            previous = self._timers.pop(key, None)
            if previous:
                previous.cancel()
            self._timers[key] = timer
            timer.start()
        logger.debug("Task scheduled", extra={"taskKey": key, "delaySeconds": delay.total_seconds()})

    def cancel(self, key: str) -> bool:
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            logger.info("Scheduler shut down", extra={"cancelledTasks": len(timers)})

    def pending_keys(self) -> list[str]:
        with self._lock:
            return list(self._timers)

    def _run(self, key: str, action: Callable[[], None]) -> None:
        with self._lock:
            # Only the timer currently registered under key removes the entry.
            if self._timers.get(key) is threading.current_thread():
                del self._timers[key]
        try:
            action()
        except Exception as e:
            # No caller to propagate to on the timer thread.
            logger.error("Scheduled task failed", extra={"taskKey": key, "error": str(e)}, exc_info=True)
