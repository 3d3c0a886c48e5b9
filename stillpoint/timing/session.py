"""Session controller: drives the clock, breathing cycler and guidance together."""

import logging

from ..audio.tones import COMPLETION_TONE, EXHALE_TONE, INHALE_TONE, START_TONE, ToneSink
from ..presets import GUIDED_SCRIPTS, GuidedScript, Preset, find_script
from ..storage.models import CompletedSession, VoiceSettings
from ..storage.recorder import SessionRecorder
from ..tts.base import SpeechSink
from .breathing import BreathingCycler, BreathingPhase, PhaseChanged
from .clock import Clock, ClockState, SessionClock, now_ms
from .events import (
    EventBus,
    GuidanceSpoken,
    Listener,
    RecordingFailed,
    SessionFinished,
    SessionPaused,
    SessionRecorded,
    SessionResumed,
    SessionStarted,
    Subscription,
    TimerTick,
)
from .guidance import DispatchTiming, SpeechCue, dispatch

logger = logging.getLogger(__name__)


class SessionController:
    """Owns one session run at a time.

    The host calls ``tick()`` about once a second and
    ``evaluate_breathing()`` about every 100 ms. Both re-derive their state
    from the clock's start reference, so they may be called late, early or
    repeatedly.
    """

    def __init__(
        self,
        tones: ToneSink,
        speech: SpeechSink,
        recorder: SessionRecorder | None = None,
        scripts: dict[str, GuidedScript] | None = None,
        voice: VoiceSettings | None = None,
        sound_enabled: bool = True,
        timing: DispatchTiming | None = None,
        clock: Clock | None = None,
    ):
        self.tones = tones
        self.speech = speech
        self.recorder = recorder
        self.scripts = GUIDED_SCRIPTS if scripts is None else scripts
        self.voice = voice or VoiceSettings()
        self.sound_enabled = sound_enabled
        self.timing = timing or DispatchTiming()

        self._now = clock or now_ms
        self.clock = SessionClock(self._now)
        self._events = EventBus()

        self._cycler: BreathingCycler | None = None
        self._script: GuidedScript | None = None
        self._fired: frozenset[str] = frozenset()
        self.last_session: CompletedSession | None = None

    # Observers

    def subscribe(self, listener: Listener) -> Subscription:
        """Register for session events; keep the handle to unsubscribe."""
        return self._events.subscribe(listener)

    # State

    @property
    def state(self) -> ClockState:
        return self.clock.state

    @property
    def is_active(self) -> bool:
        return self.clock.is_active

    @property
    def preset(self) -> Preset | None:
        return self.clock.preset

    @property
    def remaining_seconds(self) -> int:
        return self.clock.remaining_seconds

    @property
    def fired(self) -> frozenset[str]:
        """Keys of the prompts spoken so far this run."""
        return self._fired

    @property
    def current_phase(self) -> BreathingPhase | None:
        if self._cycler is None:
            return None
        return self._cycler.current_phase

    @property
    def completed_cycles(self) -> int:
        if self._cycler is None or self._cycler.state is None:
            return 0
        return self._cycler.state.completed_cycles

    def snapshot(self) -> dict:
        """Current run as plain data for display."""
        phase = self.current_phase
        return {
            "state": self.state.name.lower(),
            "preset_id": self.preset.id if self.preset else None,
            "total_seconds": self.clock.total_seconds,
            "remaining_seconds": self.clock.remaining_seconds,
            "elapsed_seconds": self.clock.elapsed_seconds,
            "phase": phase.value if phase else None,
            "instruction": phase.instruction if phase else None,
            "completed_cycles": self.completed_cycles,
        }

    # Lifecycle

    def start(self, preset: Preset) -> bool:
        """Begin a run, stopping any run already in progress.

        Returns:
            False when the preset cannot run (zero duration)
        """
        if self.clock.is_active:
            self.stop()

        if not self.clock.start(preset):
            return False

        self._cycler = BreathingCycler(preset.breathing_pattern)
        self._cycler.reset(self.clock.start_epoch_ms)
        self._script = find_script(preset, self.scripts)
        self._fired = frozenset()
        self.last_session = None

        self._tone(START_TONE)
        logger.info("Session started: %s (%ss)", preset.id, self.clock.total_seconds)
        self._events.publish(SessionStarted(preset=preset, total_seconds=self.clock.total_seconds))
        return True

    def pause_resume(self) -> ClockState:
        """Pause or resume. Pausing after the time ran out completes the run."""
        was_running = self.clock.is_running
        state = self.clock.pause_resume()
        if was_running and state == ClockState.COMPLETED:
            self._complete(self.clock.last_finished)
        elif state == ClockState.PAUSED:
            self._events.publish(SessionPaused(remaining_seconds=self.clock.remaining_seconds))
        elif state == ClockState.RUNNING:
            self._events.publish(SessionResumed(remaining_seconds=self.clock.remaining_seconds))
        return state

    def stop(self) -> CompletedSession | None:
        """End the current run.

        Returns:
            The session handed to the recorder, or None when the run had
            already completed on its own (it was recorded then) or nothing
            was running.
        """
        finished = self.clock.stop()
        self.speech.cancel()
        self._clear_run()

        if finished is None:
            return None
        return self._finish(finished)

    # Scheduled evaluations

    def tick(self) -> TimerTick | None:
        """Refresh the countdown and speak any prompt that is due."""
        if not self.clock.is_running:
            return None

        finished = self.clock.tick()
        tick = TimerTick(
            remaining_seconds=self.clock.remaining_seconds,
            elapsed_seconds=self.clock.elapsed_seconds,
        )
        self._events.publish(tick)

        if finished is not None:
            self._complete(finished)
            return tick

        if self.voice.enabled:
            cue, self._fired = dispatch(
                self._script,
                self.clock.elapsed_seconds,
                self.clock.remaining_seconds,
                self._fired,
                self.timing,
            )
            if cue is not None:
                self._speak(cue)

        return tick

    def evaluate_breathing(self) -> PhaseChanged | None:
        """Re-derive the breathing phase; play a tone on inhale/exhale."""
        if not self.clock.is_running or self._cycler is None:
            return None

        change = self._cycler.evaluate(self._now(), self.clock.start_epoch_ms)
        if change is None:
            return None

        if change.phase == BreathingPhase.INHALE:
            self._tone(INHALE_TONE)
        elif change.phase == BreathingPhase.EXHALE:
            self._tone(EXHALE_TONE)

        self._events.publish(change)
        return change

    # Internals

    def _complete(self, finished: SessionFinished) -> None:
        self._tone(COMPLETION_TONE)
        self.speech.cancel()
        self._clear_run()
        self._finish(finished)

    def _finish(self, finished: SessionFinished) -> CompletedSession:
        session = CompletedSession(
            preset_id=finished.preset.id,
            actual_duration_seconds=finished.actual_duration_seconds,
            completed=finished.completed,
            voice_settings=self.voice,
            sound_enabled=self.sound_enabled,
        )
        self.last_session = session
        logger.info(
            "Session finished: %s after %ss (completed=%s)",
            finished.preset.id,
            finished.actual_duration_seconds,
            finished.completed,
        )
        self._events.publish(finished)

        if self.recorder is not None:
            self.recorder.submit(
                session,
                on_success=lambda session_id: self._events.publish(
                    SessionRecorded(session_id=session_id, completed=session.completed)
                ),
                on_failure=lambda e: self._events.publish(RecordingFailed(error=str(e))),
            )
        return session

    def _clear_run(self) -> None:
        self._cycler = None
        self._script = None
        self._fired = frozenset()

    def _speak(self, cue: SpeechCue) -> None:
        try:
            self.speech.speak(cue.text, self.voice.rate)
        except Exception as e:
            logger.warning("Speech failed: %s", e)
        self._events.publish(GuidanceSpoken(cue=cue))

    def _tone(self, tone: tuple[float, int]) -> None:
        if not self.sound_enabled:
            return
        try:
            self.tones.play_tone(*tone)
        except Exception as e:
            logger.warning("Tone failed: %s", e)
