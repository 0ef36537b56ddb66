"""Countdown and repeating timers running on daemon threads."""
import logging
import threading
from typing import Callable

from ielts_mock.models.session import TimerState
from ielts_mock.utils.time_utils import format_countdown

logger = logging.getLogger(__name__)


class CountdownTimer:
    """One-second countdown that fires ``on_expire`` exactly once."""

    def __init__(
        self,
        total_seconds: int,
        on_expire: Callable[[], None] | None = None,
        interval: float = 1.0,
    ) -> None:
        self.total_seconds = max(0, int(total_seconds))
        self.time_remaining = self.total_seconds
        self.is_time_up = False
        self.interval = interval
        self._on_expire = on_expire
        self._fired = False
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def tick(self) -> None:
        """Advance the countdown by one second."""
        fire = False
        with self._lock:
            if self.time_remaining > 0:
                self.time_remaining -= 1
            if self.time_remaining == 0 and not self._fired:
                self.is_time_up = True
                self._fired = True
                fire = True
        if fire and self._on_expire is not None:
            try:
                self._on_expire()
            except Exception:
                logger.exception("Timer expiry handler failed")

    def start(self) -> None:
        if self._thread is not None:
            return

        def _worker() -> None:
            while not self._stop.wait(self.interval):
                self.tick()
                if self.is_time_up:
                    break

        self._thread = threading.Thread(target=_worker, name="exam_countdown", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def state(self) -> TimerState:
        with self._lock:
            return TimerState(
                timeRemainingSeconds=self.time_remaining,
                isTimeUp=self.is_time_up,
                totalDurationSeconds=self.total_seconds,
                display="Time Up!" if self.is_time_up else format_countdown(self.time_remaining),
            )


class RepeatingTask:
    """Run ``func`` every ``interval`` seconds until stopped; errors are logged."""

    def __init__(self, interval: float, func: Callable[[], None], name: str = "repeating_task") -> None:
        self.interval = interval
        self._func = func
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_once(self) -> None:
        try:
            self._func()
        except Exception:
            logger.exception("%s failed", self._name)

    def start(self) -> None:
        if self._thread is not None:
            return

        def _worker() -> None:
            while not self._stop.wait(self.interval):
                self.run_once()

        self._thread = threading.Thread(target=_worker, name=self._name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
