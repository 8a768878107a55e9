"""Scheduler backed by the Qt event loop."""

from typing import Callable

from PyQt6.QtCore import QObject, QTimer

from residuescope.models.scheduler import ScheduledCall, Scheduler


class _TimerCall(ScheduledCall):
    """ScheduledCall that also stops its single-shot timer on cancel."""

    def __init__(self, action: Callable[[], None], timer: QTimer):
        super().__init__(action)
        self._timer = timer

    def cancel(self) -> None:
        # A fired timer is already scheduled for deletion
        if not self.pending:
            return
        super().cancel()
        self._timer.stop()
        self._timer.deleteLater()


class QtScheduler(Scheduler):
    """Runs actions on the GUI thread after a delay using single-shot QTimers."""

    def __init__(self, parent: QObject | None = None):
        self._parent = parent

    def schedule(self, delay_ms: float, action: Callable[[], None]) -> ScheduledCall:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        call = _TimerCall(action, timer)

        def _fire():
            timer.deleteLater()
            call.run()

        timer.timeout.connect(_fire)
        timer.start(max(0, int(delay_ms)))
        return call
