"""Delayed-action scheduling and debouncing.

The analysis code never sleeps or starts timers itself: it asks a
``Scheduler`` to run an action later and keeps the returned handle so the
action can be cancelled. The desktop shell plugs in a Qt timer based
scheduler; tests drive a ``ManualScheduler`` by hand.
"""

from abc import ABC, abstractmethod
from typing import Callable


class ScheduledCall:
    """Handle for an action scheduled to run later."""

    def __init__(self, action: Callable[[], None], due_ms: float = 0.0):
        self._action = action
        self.due_ms = due_ms
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        """Prevent the action from running (no effect once it has run)."""
        if not self._done:
            self._cancelled = True

    def run(self) -> None:
        """Run the action unless it was cancelled or has already run."""
        if not self.pending:
            return
        self._done = True
        self._action()


class Scheduler(ABC):
    """Runs actions after a delay."""

    @abstractmethod
    def schedule(self, delay_ms: float, action: Callable[[], None]) -> ScheduledCall:
        """Schedule an action.

        Args:
            delay_ms: Delay before running, in milliseconds.
            action: Callable taking no arguments.

        Returns:
            Handle whose ``cancel()`` stops the action.
        """


class ImmediateScheduler(Scheduler):
    """Runs every action synchronously, ignoring the delay."""

    def schedule(self, delay_ms: float, action: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(action)
        call.run()
        return call


class ManualScheduler(Scheduler):
    """Scheduler driven by an explicit clock, for tests and headless use."""

    def __init__(self):
        self._now_ms = 0.0
        self._calls: list[ScheduledCall] = []

    @property
    def now_ms(self) -> float:
        return self._now_ms

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self._calls if call.pending)

    def schedule(self, delay_ms: float, action: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(action, due_ms=self._now_ms + max(0.0, delay_ms))
        self._calls.append(call)
        return call

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward and run every action now due.

        Returns:
            Number of actions that ran.
        """
        self._now_ms += delta_ms
        due = [call for call in self._calls if call.pending and call.due_ms <= self._now_ms]
        due.sort(key=lambda call: call.due_ms)
        for call in due:
            call.run()
        self._calls = [call for call in self._calls if call.pending]
        return len(due)

    def run_all(self) -> int:
        """Run every pending action regardless of its due time."""
        if not self._calls:
            return 0
        latest = max(call.due_ms for call in self._calls)
        return self.advance(max(0.0, latest - self._now_ms))


class Debouncer:
    """Collapse bursts of triggers into one delayed action.

    Each ``trigger`` cancels the previously scheduled action and schedules
    the new one, so only the last action of a burst runs.
    """

    def __init__(self, scheduler: Scheduler, delay_ms: float):
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._pending: ScheduledCall | None = None

    @property
    def delay_ms(self) -> float:
        return self._delay_ms

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.pending

    def trigger(self, action: Callable[[], None]) -> ScheduledCall:
        self.cancel()
        self._pending = self._scheduler.schedule(self._delay_ms, action)
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
