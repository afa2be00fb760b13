"""Port definition for deferred, cancellable tasks."""

from datetime import timedelta
from typing import Callable, Protocol


class SchedulerPort(Protocol):
    def schedule(self, key: str, delay: timedelta, action: Callable[[], None]) -> None:
        """Run action once after delay. A pending task under the same key is replaced."""
        ...

    def cancel(self, key: str) -> bool:
        """Cancel the pending task under key. Return True if one was pending."""
        ...

    def shutdown(self) -> None:
        """Cancel every pending task."""
        ...
