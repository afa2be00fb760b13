"""In-memory implementation of SchedulerPort driven by a FakeClock."""

from datetime import datetime, timedelta
from typing import Callable

from adapter.fake.clock import FakeClock


class FakeScheduler:
    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.pending: dict[str, tuple[datetime, Callable[[], None]]] = {}
        self.is_shut_down = False

    def schedule(self, key: str, delay: timedelta, action: Callable[[], None]) -> None:
        self.pending[key] = (self.clock.now() + delay, action)

    def cancel(self, key: str) -> bool:
        return self.pending.pop(key, None) is not None

    def shutdown(self) -> None:
        self.pending.clear()
        self.is_shut_down = True

    def due_at(self, key: str) -> datetime | None:
        entry = self.pending.get(key)
        return entry[0] if entry else None

    def run_due(self) -> int:
        """Run every task whose due time has passed. Return how many ran."""
        now = self.clock.now()
        due = [key for key, (at, _) in self.pending.items() if at <= now]
        for key in due:
            _, action = self.pending.pop(key)
            action()
        return len(due)
