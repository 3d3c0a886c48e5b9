"""
Tests for the session controller wiring clock, breathing and guidance
"""
from stillpoint.audio.tones import COMPLETION_TONE, EXHALE_TONE, INHALE_TONE, START_TONE
from stillpoint.presets import GUIDED_SCRIPTS, Preset, SessionType
from stillpoint.storage import VoiceSettings
from stillpoint.timing import (
    ClockState,
    GuidanceSpoken,
    PhaseChanged,
    RecordingFailed,
    SessionController,
    SessionFinished,
    SessionRecorded,
    TimerTick,
)
from stillpoint.timing.guidance import CONCLUSION_KEY, INTRO_KEY


def run_seconds(controller, clock, seconds):
    """Advance one second at a time, ticking and evaluating breathing."""
    for _ in range(seconds):
        for _ in range(10):
            clock.advance_ms(100)
            controller.evaluate_breathing()
        controller.tick()


class EventLog:
    def __init__(self, controller):
        self.events = []
        self.subscription = controller.subscribe(self.events.append)

    def of(self, kind):
        return [e for e in self.events if isinstance(e, kind)]


class TestFullRun:
    """A guided breathing session from start to natural completion"""

    def test_runs_to_completion(self, controller, fake_clock, box_breathing, speech, tones, recorder, store):
        log = EventLog(controller)
        assert controller.start(box_breathing)
        assert tones.played[0] == START_TONE

        run_seconds(controller, fake_clock, 300)

        finished = log.of(SessionFinished)
        assert len(finished) == 1
        assert finished[0].completed is True
        assert finished[0].actual_duration_seconds == 300
        assert controller.state == ClockState.COMPLETED
        assert tones.played[-1] == COMPLETION_TONE

        recorder.shutdown(wait=True)
        sessions = store.list_sessions()
        assert len(sessions) == 1
        assert sessions[0].completed is True
        assert sessions[0].actual_duration_seconds == 300
        assert sessions[0].preset_id == "box-breathing"
        assert sessions[0].voice_settings == VoiceSettings(enabled=True, rate=0.8)
        assert len(log.of(SessionRecorded)) == 1

    def test_every_prompt_spoken_once(self, controller, fake_clock, box_breathing, speech):
        log = EventLog(controller)
        controller.start(box_breathing)
        run_seconds(controller, fake_clock, 300)

        script = GUIDED_SCRIPTS["box-breathing"]
        keys = [e.cue.key for e in log.of(GuidanceSpoken)]
        assert keys[0] == INTRO_KEY
        assert keys[-1] == CONCLUSION_KEY
        assert len(keys) == len(set(keys)) == len(script.guidance) + 2

        texts = [text for text, _ in speech.spoken]
        assert texts[0] == script.introduction
        assert all(rate == 0.8 for _, rate in speech.spoken)

    def test_tick_events_count_down(self, controller, fake_clock, mindfulness):
        log = EventLog(controller)
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 5)

        assert [t.remaining_seconds for t in log.of(TimerTick)] == [299, 298, 297, 296, 295]

    def test_completion_cancels_speech(self, controller, fake_clock, mindfulness, speech):
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 300)
        assert speech.cancels >= 1

    def test_no_evaluation_after_completion(self, controller, fake_clock, box_breathing):
        log = EventLog(controller)
        controller.start(box_breathing)
        run_seconds(controller, fake_clock, 300)
        count = len(log.events)

        run_seconds(controller, fake_clock, 20)
        assert len(log.events) == count


class TestStopping:
    def test_stop_midway_records_partial(self, controller, fake_clock, mindfulness, recorder, store):
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 150)

        session = controller.stop()
        assert session.actual_duration_seconds == 150
        assert session.completed is False
        assert controller.state == ClockState.IDLE

        recorder.shutdown(wait=True)
        assert [s.actual_duration_seconds for s in store.list_sessions()] == [150]

    def test_stop_after_completion_records_once(self, controller, fake_clock, mindfulness, recorder, store):
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 305)

        assert controller.stop() is None
        assert controller.last_session.completed is True
        assert controller.last_session.actual_duration_seconds == 300

        recorder.shutdown(wait=True)
        assert len(store.list_sessions()) == 1

    def test_stop_cancels_speech(self, controller, fake_clock, mindfulness, speech):
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 3)
        controller.stop()
        assert speech.cancels == 1

    def test_start_while_active_stops_previous(self, controller, fake_clock, mindfulness, box_breathing, recorder, store):
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 20)
        controller.start(box_breathing)

        assert controller.preset.id == "box-breathing"
        recorder.shutdown(wait=True)
        sessions = store.list_sessions()
        assert len(sessions) == 1
        assert sessions[0].preset_id == "mindfulness-5"
        assert sessions[0].actual_duration_seconds == 20


class TestPause:
    def test_paused_session_is_frozen(self, controller, fake_clock, box_breathing):
        controller.start(box_breathing)
        run_seconds(controller, fake_clock, 10)
        controller.pause_resume()
        phase = controller.current_phase

        log = EventLog(controller)
        run_seconds(controller, fake_clock, 60)
        assert log.events == []
        assert controller.remaining_seconds == 290

        controller.pause_resume()
        controller.tick()
        assert controller.remaining_seconds == 290
        assert controller.current_phase == phase

    def test_pause_after_stalled_ticks(self, controller, fake_clock, mindfulness):
        from stillpoint.timing.events import SessionPaused

        log = EventLog(controller)
        controller.start(mindfulness)
        fake_clock.advance(1)
        controller.tick()
        fake_clock.advance(120)
        controller.pause_resume()

        assert controller.remaining_seconds == 179
        assert log.of(SessionPaused)[0].remaining_seconds == 179

    def test_pause_does_not_replay_breathing_phase(self, controller, fake_clock, box_breathing, tones):
        controller.start(box_breathing)
        fake_clock.advance_ms(7000)
        controller.evaluate_breathing()
        controller.tick()
        fake_clock.advance_ms(1500)
        assert controller.evaluate_breathing().phase.value == "exhale"

        fake_clock.advance_ms(400)
        controller.pause_resume()
        fake_clock.advance(30)
        controller.pause_resume()

        assert controller.evaluate_breathing() is None
        fake_clock.advance_ms(1000)
        assert controller.evaluate_breathing() is None
        assert controller.current_phase.value == "exhale"
        assert tones.played.count(EXHALE_TONE) == 1

    def test_pause_after_time_ran_out_completes(self, controller, fake_clock, mindfulness, tones, recorder, store):
        log = EventLog(controller)
        controller.start(mindfulness)
        fake_clock.advance(305)

        assert controller.pause_resume() == ClockState.COMPLETED
        assert controller.pause_resume() == ClockState.COMPLETED
        assert len(log.of(SessionFinished)) == 1
        assert tones.played[-1] == COMPLETION_TONE
        assert controller.last_session.completed is True

        recorder.shutdown(wait=True)
        assert len(store.list_sessions()) == 1

    def test_pause_resume_publishes(self, controller, mindfulness):
        from stillpoint.timing.events import SessionPaused, SessionResumed

        log = EventLog(controller)
        controller.start(mindfulness)
        controller.pause_resume()
        controller.pause_resume()
        assert len(log.of(SessionPaused)) == 1
        assert len(log.of(SessionResumed)) == 1


class TestBreathingTones:
    def test_inhale_and_exhale_tones(self, controller, fake_clock, box_breathing, tones):
        log = EventLog(controller)
        controller.start(box_breathing)
        run_seconds(controller, fake_clock, 16)

        phases = [e.phase.value for e in log.of(PhaseChanged)]
        assert phases == ["hold1", "exhale", "hold2", "inhale"]
        assert tones.played == [START_TONE, EXHALE_TONE, INHALE_TONE]

    def test_unguided_preset_has_no_phases(self, controller, fake_clock, mindfulness):
        log = EventLog(controller)
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 30)
        assert log.of(PhaseChanged) == []
        assert controller.current_phase is None


class TestSettings:
    def test_voice_disabled(self, fake_clock, speech, tones, box_breathing):
        controller = SessionController(
            tones=tones,
            speech=speech,
            voice=VoiceSettings(enabled=False, rate=1.0),
            clock=fake_clock,
        )
        controller.start(box_breathing)
        run_seconds(controller, fake_clock, 300)
        assert speech.spoken == []

    def test_sound_disabled(self, fake_clock, speech, tones, box_breathing):
        controller = SessionController(
            tones=tones,
            speech=speech,
            sound_enabled=False,
            clock=fake_clock,
        )
        controller.start(box_breathing)
        run_seconds(controller, fake_clock, 300)
        assert tones.played == []

    def test_unscripted_preset_is_silent(self, controller, fake_clock, five_minute_unguided, speech):
        controller.start(five_minute_unguided)
        run_seconds(controller, fake_clock, 300)
        assert speech.spoken == []

    def test_zero_duration_preset_does_not_start(self, controller, tones):
        empty = Preset(
            id="empty",
            name="Empty",
            description="",
            duration_minutes=0,
            type=SessionType.MINDFULNESS,
        )
        assert controller.start(empty) is False
        assert controller.state == ClockState.IDLE
        assert tones.played == []


class FailingStore:
    def record_session(self, session):
        raise IOError("disk full")


class TestFailures:
    def test_recording_failure_is_reported(self, fake_clock, speech, tones, mindfulness):
        from stillpoint.storage import SessionRecorder

        recorder = SessionRecorder(FailingStore())
        controller = SessionController(
            tones=tones, speech=speech, recorder=recorder, clock=fake_clock,
        )
        log = EventLog(controller)
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 300)
        recorder.shutdown(wait=True)

        failures = log.of(RecordingFailed)
        assert len(failures) == 1
        assert "disk full" in failures[0].error
        assert controller.state == ClockState.COMPLETED

    def test_listener_error_does_not_break_tick(self, controller, fake_clock, mindfulness):
        def broken(event):
            raise RuntimeError("boom")

        controller.subscribe(broken)
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 5)
        assert controller.remaining_seconds == 295

    def test_speech_error_degrades(self, fake_clock, tones, mindfulness):
        class BrokenSpeech:
            def speak(self, text, rate):
                raise OSError("no audio")

            def cancel(self):
                pass

        controller = SessionController(tones=tones, speech=BrokenSpeech(), clock=fake_clock)
        controller.start(mindfulness)
        run_seconds(controller, fake_clock, 300)
        assert controller.last_session.completed is True


class TestSubscription:
    def test_unsubscribe_stops_delivery(self, controller, fake_clock, mindfulness):
        events = []
        handle = controller.subscribe(events.append)
        controller.start(mindfulness)
        handle.unsubscribe()
        run_seconds(controller, fake_clock, 3)

        assert len(events) == 1
        assert not handle.active

    def test_context_manager(self, controller, mindfulness):
        events = []
        with controller.subscribe(events.append):
            controller.start(mindfulness)
        controller.stop()
        assert len(events) == 1
