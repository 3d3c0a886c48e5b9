"""Command-line entry point for running and reviewing meditation sessions."""

import argparse
import asyncio
import logging
import signal
from datetime import datetime, timezone
from pathlib import Path

from .audio import create_tone_player
from .audio.tones import stop_tones
from .config import Config, load_config
from .presets import get_preset
from .storage import GoalMetric, GoalType, SessionRecorder, StoreError, VoiceSettings, open_store
from .storage.export import collect_export, export_csv, export_filename, export_json
from .storage.progress import current_streak, goal_progress, new_goal, progress_stats
from .timing import (
    GuidanceSpoken,
    PhaseChanged,
    RecordingFailed,
    SessionController,
    SessionRecorded,
    SessionRunner,
    TimerTick,
)
from .timing.events import SessionEvent, SessionFinished, SessionPaused, SessionResumed
from .timing.guidance import DispatchTiming
from .tts import ConsoleSpeech, MacOSSpeech, create_speech


def format_time(seconds: int) -> str:
    """Format a countdown as m:ss."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins}:{secs:02d}"


class MeditationApp:
    """Terminal host for a single guided session."""

    def __init__(self, config: Config):
        self.config = config
        self.store = open_store(config)
        self.settings = self.store.load_settings()

        self._init_audio()
        self._init_controller()

        self._recorded_id: str | None = None

    def _init_audio(self) -> None:
        """Initialize tone and speech sinks."""
        sound_enabled = self.config.sound.enabled and self.settings.sound_enabled
        self.tones = create_tone_player(
            enabled=sound_enabled,
            sample_rate=self.config.sound.sample_rate,
            volume=self.config.sound.volume,
        )
        try:
            self.speech = create_speech(
                engine=self.config.voice.engine,
                voice=self.settings.selected_voice or self.config.voice.voice,
                base_wpm=self.config.voice.base_wpm,
            )
        except ValueError as e:
            print(f"  [Voice] {e}; printing guidance instead", flush=True)
            self.speech = create_speech(engine="console")

    def _init_controller(self) -> None:
        """Initialize the session controller and its recorder."""
        timer = self.config.timer
        self.recorder = SessionRecorder(self.store)
        self.controller = SessionController(
            tones=self.tones,
            speech=self.speech,
            recorder=self.recorder,
            scripts=self.store.load_scripts(),
            voice=VoiceSettings(
                enabled=self.config.voice.enabled and self.settings.voice_enabled,
                rate=self.settings.speech_rate,
            ),
            sound_enabled=self.config.sound.enabled and self.settings.sound_enabled,
            timing=DispatchTiming(
                intro_delay_sec=timer.intro_delay_sec,
                tolerance_sec=timer.guidance_tolerance_sec,
                conclusion_window_sec=timer.conclusion_window_sec,
            ),
        )
        self.runner = SessionRunner(
            self.controller,
            tick_interval=timer.tick_interval_ms / 1000.0,
            breathing_interval=timer.breathing_interval_ms / 1000.0,
        )

    async def run(self, preset_id: str) -> None:
        """Run one session in the terminal until it completes or Ctrl+C."""
        preset = get_preset(preset_id, self.store.load_presets())
        if preset is None:
            print(f"Preset not found: {preset_id}")
            return

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.runner.stop)

        print("\n" + "=" * 60)
        print(f"  {preset.name} · {preset.duration_minutes} min")
        print(f"  {preset.description}")
        print("=" * 60)
        print("(Ctrl+C to end session)\n")

        subscription = self.controller.subscribe(self._print_event)
        try:
            if not self.runner.start(preset):
                print("This preset has no duration.")
                return
            await self.runner.wait()
        finally:
            subscription.unsubscribe()
            self.runner.close()
            stop_tones()
            self.recorder.shutdown(wait=True)
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    def _print_event(self, event: SessionEvent) -> None:
        if isinstance(event, TimerTick):
            print(f"\r  {format_time(event.remaining_seconds)} remaining ", end="", flush=True)
        elif isinstance(event, PhaseChanged):
            print(f"\n  ~ {event.phase.instruction} ({event.duration_seconds}s)", flush=True)
        elif isinstance(event, GuidanceSpoken):
            if not isinstance(self.speech, ConsoleSpeech):
                print(f"\n  Guide: {event.cue.text}", flush=True)
        elif isinstance(event, SessionPaused):
            print("\n  [Session] Paused", flush=True)
        elif isinstance(event, SessionResumed):
            print("\n  [Session] Resumed", flush=True)
        elif isinstance(event, SessionFinished):
            status = "completed" if event.completed else "ended early"
            print(f"\n\n  [Session] {status} after {format_time(event.actual_duration_seconds)}", flush=True)
        elif isinstance(event, SessionRecorded):
            self._recorded_id = event.session_id
            print(f"  [Store] Session saved: {event.session_id}", flush=True)
        elif isinstance(event, RecordingFailed):
            print(f"  [Store] Could not save this session ({event.error})", flush=True)

    def prompt_for_notes(self) -> None:
        """Offer to attach notes to a session that ran to completion."""
        last = self.controller.last_session
        if self._recorded_id is None or last is None or not last.completed:
            return
        try:
            notes = input("\n  Notes on this session (Enter to skip): ").strip()
        except EOFError:
            return
        if notes:
            self.store.update_session_notes(self._recorded_id, notes)
            print("  [Store] Notes saved", flush=True)


def list_presets(config: Config) -> None:
    store = open_store(config)
    print("\nPresets:")
    print("-" * 60)
    for preset in store.load_presets():
        print(f"  {preset.id:<16} {preset.name} ({preset.duration_minutes} min, {preset.type.value})")
        if preset.breathing_pattern:
            p = preset.breathing_pattern
            print(f"  {'':<16} breathe {p.inhale}-{p.hold1}-{p.exhale}-{p.hold2}")
    print()


def list_history(config: Config) -> None:
    """List all recorded sessions."""
    store = open_store(config)
    sessions = store.list_sessions()

    if not sessions:
        print("No recorded sessions found.")
        return

    names = {p.id: p.name for p in store.load_presets()}
    print("\nRecorded Sessions:")
    print("-" * 60)

    for session in sessions:
        when = session.session_date.astimezone().strftime("%Y-%m-%d %H:%M")
        status = "completed" if session.completed else "partial"
        print(f"  {session.id}")
        print(f"    {when} · {names.get(session.preset_id, 'Unknown')} · "
              f"{format_time(session.actual_duration_seconds)} · {status}")
        if session.notes:
            print(f"    Notes: {session.notes}")
        print()


def show_stats(config: Config) -> None:
    store = open_store(config)
    sessions = store.list_sessions()
    stats = progress_stats(sessions)

    print("\nProgress:")
    print("-" * 60)
    print(f"  Sessions:      {stats.total_sessions} ({stats.completed_sessions} completed)")
    print(f"  Minutes:       {stats.total_minutes}")
    print(f"  This week:     {stats.sessions_this_week}")
    print(f"  This month:    {stats.sessions_this_month}")
    print(f"  Streak:        {current_streak(sessions)} days")
    print()


def show_goals(config: Config) -> None:
    store = open_store(config)
    goals = store.list_goals()
    if not goals:
        print("No active goals.")
        return

    sessions = store.list_sessions()
    print("\nGoals:")
    print("-" * 60)
    for goal in goals:
        progress = goal_progress(goal, sessions)
        mark = "✓" if progress.achieved else " "
        print(f"  [{mark}] {goal.id}: {goal.type.value} {goal.target} {goal.metric.value}"
              f" · {progress.value:g}/{goal.target} ({progress.percent:g}%)")
    print()


def show_badges(config: Config) -> None:
    store = open_store(config)
    earned = {ub.badge_id: ub for ub in store.list_user_badges()}

    print("\nBadges:")
    print("-" * 60)
    for badge in store.list_badges():
        if badge.id in earned:
            date = earned[badge.id].earned_date.astimezone().strftime("%Y-%m-%d")
            print(f"  {badge.icon} {badge.name} · earned {date}")
        else:
            print(f"  ·  {badge.name} · {badge.description}")
    print()


def list_voices() -> None:
    try:
        voices = MacOSSpeech.list_voices()
    except OSError as e:
        print(f"  [Voice] Voice list unavailable: {e}")
        return

    print("\nVoices:")
    print("-" * 60)
    for voice in voices:
        print(f"  {voice['name']:<28} {voice['lang']}")
    print()


def export_data(config: Config, fmt: str, output: str | None = None) -> Path:
    store = open_store(config)
    if fmt == "csv":
        content = export_csv(store.list_sessions(), store.load_presets())
    else:
        content = export_json(collect_export(store))

    path = Path(output or export_filename(fmt, datetime.now(timezone.utc)))
    path.write_text(content, encoding="utf-8")
    print(f"Exported to: {path}")
    return path


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Stillpoint guided meditation timer"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--run", "-r",
        type=str,
        metavar="PRESET_ID",
        help="Run a guided session",
    )
    parser.add_argument("--presets", action="store_true", help="List presets")
    parser.add_argument("--history", action="store_true", help="List recorded sessions")
    parser.add_argument("--stats", action="store_true", help="Show progress statistics")
    parser.add_argument("--goals", action="store_true", help="Show active goals")
    parser.add_argument("--badges", action="store_true", help="Show badges")
    parser.add_argument("--voices", action="store_true", help="List macOS voices")
    parser.add_argument(
        "--notes",
        nargs=2,
        metavar=("SESSION_ID", "TEXT"),
        help="Attach notes to a recorded session",
    )
    parser.add_argument(
        "--add-goal",
        nargs=3,
        metavar=("TYPE", "TARGET", "METRIC"),
        help="Create a goal, e.g. --add-goal weekly 60 minutes",
    )
    parser.add_argument("--cancel-goal", type=str, metavar="GOAL_ID", help="Cancel a goal")
    parser.add_argument("--export", choices=["csv", "json"], help="Export recorded data")
    parser.add_argument("--output", "-o", type=str, help="Export file path")
    parser.add_argument("--reset", action="store_true", help="Delete all recorded data")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load configuration
    config = load_config(args.config)

    try:
        if args.presets:
            list_presets(config)
        elif args.history:
            list_history(config)
        elif args.stats:
            show_stats(config)
        elif args.goals:
            show_goals(config)
        elif args.badges:
            show_badges(config)
        elif args.voices:
            list_voices()
        elif args.notes:
            store = open_store(config)
            store.update_session_notes(args.notes[0], args.notes[1])
            print("Notes saved.")
        elif args.add_goal:
            goal_type, target, metric = args.add_goal
            store = open_store(config)
            goal = store.create_goal(new_goal(GoalType(goal_type), int(target), GoalMetric(metric)))
            print(f"Goal created: {goal.id}")
        elif args.cancel_goal:
            open_store(config).cancel_goal(args.cancel_goal)
            print("Goal cancelled.")
        elif args.export:
            export_data(config, args.export, args.output)
        elif args.reset:
            open_store(config).delete_all()
            print("All data deleted.")
        elif args.run:
            app = MeditationApp(config)
            asyncio.run(app.run(args.run))
            app.prompt_for_notes()
            print("\nSession ended. Be well.\n")
        else:
            parser.print_help()
    except (StoreError, ValueError) as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
