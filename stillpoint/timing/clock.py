"""Wall-clock anchored session countdown.

Elapsed time is always re-derived as ``now - start_epoch_ms``; ticks only
decide *when* the value is refreshed, never *what* it is. A tick that fires
late, or several missed ticks coalesced into one, still produce the right
remaining time.
"""

import logging
import time
from enum import Enum, auto
from typing import Callable

from ..presets import Preset
from .events import SessionFinished

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def now_ms() -> float:
    """Current wall-clock time in epoch milliseconds."""
    return time.time() * 1000.0


class ClockState(Enum):
    """Lifecycle of a single session run."""

    IDLE = auto()  # No run
    RUNNING = auto()  # Counting down
    PAUSED = auto()  # Frozen, start reference recomputed on resume
    COMPLETED = auto()  # Reached zero on its own
    STOPPED = auto()  # Ended by stop(); transient, settles to IDLE


class SessionClock:
    """Countdown for one session run, anchored to absolute time."""

    def __init__(self, clock: Clock | None = None):
        self._now = clock or now_ms

        self._state = ClockState.IDLE
        self._preset: Preset | None = None
        self._start_epoch_ms: float = 0
        self._total_seconds = 0
        self._remaining_seconds = 0
        self._paused_elapsed_ms: float = 0
        self._finished: SessionFinished | None = None

    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def preset(self) -> Preset | None:
        return self._preset

    @property
    def is_running(self) -> bool:
        return self._state == ClockState.RUNNING

    @property
    def is_active(self) -> bool:
        """True while a run is in progress (running or paused)."""
        return self._state in (ClockState.RUNNING, ClockState.PAUSED)

    @property
    def start_epoch_ms(self) -> float:
        return self._start_epoch_ms

    @property
    def total_seconds(self) -> int:
        return self._total_seconds

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def elapsed_seconds(self) -> int:
        return self._total_seconds - self._remaining_seconds

    @property
    def last_finished(self) -> SessionFinished | None:
        """The finish record of the most recent run, if it has ended."""
        return self._finished

    def start(self, preset: Preset) -> bool:
        """Begin counting down a preset.

        Returns:
            False when the preset has no duration; the clock stays idle.
        """
        if self.is_active:
            raise RuntimeError("Session already in progress")

        total = preset.total_seconds
        if total <= 0:
            logger.warning("Preset %s has no duration; not starting", preset.id)
            self._state = ClockState.IDLE
            return False

        self._preset = preset
        self._total_seconds = total
        self._remaining_seconds = total
        self._start_epoch_ms = self._now()
        self._finished = None
        self._state = ClockState.RUNNING
        return True

    def pause_resume(self) -> ClockState:
        """Toggle between running and paused.

        Pausing reads the wall clock and freezes the elapsed time at that
        instant; a run whose time is already up completes instead. Resuming
        moves the start reference forward so the paused interval is excluded
        from elapsed time.

        Returns:
            The new state. COMPLETED means the finish record is waiting in
            ``last_finished``.
        """
        if self._state == ClockState.RUNNING:
            now = self._now()
            self._paused_elapsed_ms = max(0.0, now - self._start_epoch_ms)
            self._refresh(now)
            if self._remaining_seconds == 0:
                self._complete()
            else:
                self._state = ClockState.PAUSED
        elif self._state == ClockState.PAUSED:
            self._start_epoch_ms = self._now() - self._paused_elapsed_ms
            self._state = ClockState.RUNNING
        return self._state

    def tick(self) -> SessionFinished | None:
        """Refresh remaining time from the wall clock.

        Returns:
            SessionFinished the first time remaining reaches zero, else None
        """
        if self._state != ClockState.RUNNING:
            return None

        self._refresh()

        if self._remaining_seconds == 0:
            return self._complete()
        return None

    def stop(self) -> SessionFinished | None:
        """End the run and return to idle.

        Returns:
            SessionFinished for a running or paused run. None when the run
            already completed (its record was emitted by tick()) or when
            nothing was running.
        """
        if self._state == ClockState.RUNNING:
            self._refresh()

        finished = None
        if self.is_active:
            self._state = ClockState.STOPPED
            self._finished = SessionFinished(
                preset=self._preset,
                actual_duration_seconds=self._total_seconds - self._remaining_seconds,
                completed=self._remaining_seconds == 0,
            )
            finished = self._finished

        self._state = ClockState.IDLE
        return finished

    def _complete(self) -> SessionFinished:
        self._state = ClockState.COMPLETED
        self._finished = SessionFinished(
            preset=self._preset,
            actual_duration_seconds=self._total_seconds,
            completed=True,
        )
        return self._finished

    def _refresh(self, now: float | None = None) -> None:
        now = self._now() if now is None else now
        elapsed = int((now - self._start_epoch_ms) // 1000)
        self._remaining_seconds = max(0, self._total_seconds - max(0, elapsed))
