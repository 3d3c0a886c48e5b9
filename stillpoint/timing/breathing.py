"""Breathing phase cycling for breathing-pattern presets.

The current phase is a function of time since the session's start reference:
``completed_cycles = elapsed // cycle_length`` and the phase is whichever
window contains ``elapsed % cycle_length``. Nothing is accumulated between
evaluations, so a late or skipped evaluation lands on the correct phase.
"""

from dataclasses import dataclass
from enum import Enum

from ..presets import BreathingPattern


class BreathingPhase(str, Enum):
    INHALE = "inhale"
    HOLD1 = "hold1"
    EXHALE = "exhale"
    HOLD2 = "hold2"

    @property
    def instruction(self) -> str:
        """Text shown to the meditator for this phase."""
        if self == BreathingPhase.INHALE:
            return "Breathe In"
        if self == BreathingPhase.EXHALE:
            return "Breathe Out"
        return "Hold"


@dataclass(frozen=True)
class PhaseChanged:
    phase: BreathingPhase
    duration_seconds: int
    completed_cycles: int


@dataclass(frozen=True)
class BreathingCycleState:
    phase_index: int
    phase_start_epoch_ms: float
    completed_cycles: int


def build_phases(pattern: BreathingPattern | None) -> list[tuple[BreathingPhase, int]]:
    """Ordered (phase, seconds) list with zero-length phases removed."""
    if pattern is None:
        return []
    phases = [
        (BreathingPhase.INHALE, pattern.inhale),
        (BreathingPhase.HOLD1, pattern.hold1),
        (BreathingPhase.EXHALE, pattern.exhale),
        (BreathingPhase.HOLD2, pattern.hold2),
    ]
    return [(phase, int(seconds)) for phase, seconds in phases if seconds > 0]


class BreathingCycler:
    """Tracks which breathing phase a running session is in."""

    def __init__(self, pattern: BreathingPattern | None):
        self.phases = build_phases(pattern)
        self._cycle_ms = sum(seconds for _, seconds in self.phases) * 1000
        self._state: BreathingCycleState | None = None

    @property
    def is_inert(self) -> bool:
        return not self.phases

    @property
    def state(self) -> BreathingCycleState | None:
        return self._state

    @property
    def current_phase(self) -> BreathingPhase | None:
        if self._state is None:
            return None
        return self.phases[self._state.phase_index][0]

    def reset(self, start_epoch_ms: float) -> None:
        """Place the cycler at the first phase of the first cycle."""
        if self.is_inert:
            self._state = None
            return
        self._state = BreathingCycleState(
            phase_index=0,
            phase_start_epoch_ms=start_epoch_ms,
            completed_cycles=0,
        )

    def locate(self, now_ms: float, start_epoch_ms: float) -> BreathingCycleState | None:
        """Compute the cycle state at ``now_ms`` for a run anchored at ``start_epoch_ms``."""
        if self.is_inert:
            return None

        elapsed_ms = max(0.0, now_ms - start_epoch_ms)
        cycles = int(elapsed_ms // self._cycle_ms)
        cycle_start = start_epoch_ms + cycles * self._cycle_ms
        offset = elapsed_ms - cycles * self._cycle_ms

        boundary = 0
        for index, (_, seconds) in enumerate(self.phases):
            if offset < boundary + seconds * 1000:
                return BreathingCycleState(
                    phase_index=index,
                    phase_start_epoch_ms=cycle_start + boundary,
                    completed_cycles=cycles,
                )
            boundary += seconds * 1000

        # Float rounding at the very end of a cycle
        return BreathingCycleState(
            phase_index=0,
            phase_start_epoch_ms=cycle_start + self._cycle_ms,
            completed_cycles=cycles + 1,
        )

    def evaluate(self, now_ms: float, start_epoch_ms: float) -> PhaseChanged | None:
        """Re-derive the phase and report a transition if one happened.

        When several boundaries were crossed since the previous evaluation
        only the phase landed on is reported.
        """
        if self.is_inert:
            return None

        previous = self._state
        current = self.locate(now_ms, start_epoch_ms)
        self._state = current

        if previous is not None and (
            previous.phase_index == current.phase_index
            and previous.completed_cycles == current.completed_cycles
        ):
            return None
        if previous is None and current.phase_index == 0 and current.completed_cycles == 0:
            return None

        phase, seconds = self.phases[current.phase_index]
        return PhaseChanged(
            phase=phase,
            duration_seconds=seconds,
            completed_cycles=current.completed_cycles,
        )
