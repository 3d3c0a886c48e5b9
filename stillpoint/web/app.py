"""Flask web application for running sessions and reviewing progress."""

import signal
import sys
import threading
import time

from flask import Flask, Response, jsonify, request
from flask_socketio import SocketIO, emit

from ..audio import SilentTonePlayer
from ..config import Config, load_config
from ..presets import get_preset
from ..storage import GoalMetric, GoalType, SessionRecorder, StoreError, VoiceSettings, open_store
from ..storage.export import collect_export, export_csv, export_filename, export_json
from ..storage.progress import (
    calendar_month,
    current_streak,
    goal_progress,
    new_goal,
    progress_stats,
)
from ..timing import (
    GuidanceSpoken,
    PhaseChanged,
    RecordingFailed,
    SessionController,
    SessionFinished,
    SessionRecorded,
    TimerTick,
)
from ..timing.events import SessionEvent
from ..timing.guidance import DispatchTiming


class BrowserSpeech:
    """Speech sink that forwards prompts to the browser's speechSynthesis.

    The browser speaks; cancelling is signalled with a ``speech_cancel`` event.
    """

    def __init__(self, socketio: SocketIO, sid: str):
        self.socketio = socketio
        self.sid = sid

    def speak(self, text: str, rate: float) -> None:
        self.socketio.emit("speech", {"text": text, "rate": rate}, to=self.sid)

    def cancel(self) -> None:
        self.socketio.emit("speech_cancel", {}, to=self.sid)

    def is_speaking(self) -> bool:
        return False


class BrowserTones:
    """Tone sink that asks the browser to play a tone."""

    def __init__(self, socketio: SocketIO, sid: str):
        self.socketio = socketio
        self.sid = sid

    def play_tone(self, frequency_hz: float, duration_ms: int) -> None:
        self.socketio.emit("tone", {"frequency": frequency_hz, "duration": duration_ms}, to=self.sid)


class WebMeditationSession:
    """A live session driven over a socket connection.

    Socket handlers and the ticker thread share one lock so the controller
    is only ever touched by one thread at a time.
    """

    def __init__(self, app: Flask, socketio: SocketIO, sid: str):
        config: Config = app.meditation_config
        settings = app.store.load_settings()

        self.socketio = socketio
        self.sid = sid
        self.lock = threading.Lock()
        self.tick_interval = config.timer.tick_interval_ms / 1000.0
        self.breathing_interval = config.timer.breathing_interval_ms / 1000.0
        self._ticker_running = False

        sound_enabled = config.sound.enabled and settings.sound_enabled
        self.controller = SessionController(
            tones=BrowserTones(socketio, sid) if sound_enabled else SilentTonePlayer(),
            speech=BrowserSpeech(socketio, sid),
            recorder=app.recorder,
            scripts=app.store.load_scripts(),
            voice=VoiceSettings(
                enabled=config.voice.enabled and settings.voice_enabled,
                rate=settings.speech_rate,
            ),
            sound_enabled=sound_enabled,
            timing=DispatchTiming(
                intro_delay_sec=config.timer.intro_delay_sec,
                tolerance_sec=config.timer.guidance_tolerance_sec,
                conclusion_window_sec=config.timer.conclusion_window_sec,
            ),
        )
        self.subscription = self.controller.subscribe(self._forward)

    def start(self, preset) -> bool:
        with self.lock:
            started = self.controller.start(preset)
            spawn = started and not self._ticker_running
            if spawn:
                self._ticker_running = True
        if spawn:
            self.socketio.start_background_task(self._ticker)
        return started

    def pause_resume(self) -> dict:
        with self.lock:
            self.controller.pause_resume()
            return self.controller.snapshot()

    def stop(self) -> None:
        with self.lock:
            self.controller.stop()

    def close(self) -> None:
        self.stop()
        self.subscription.unsubscribe()

    def _ticker(self) -> None:
        """Breathing every breathing_interval, clock every tick_interval.

        Exits as soon as the run is no longer active. The running flag is
        only touched under the lock, so a start racing the exit either sees
        this ticker still serving the new run or spawns a fresh one.
        """
        last_tick = time.monotonic()
        while True:
            self.socketio.sleep(self.breathing_interval)
            with self.lock:
                if not self.controller.is_active:
                    self._ticker_running = False
                    return
                self.controller.evaluate_breathing()
                if time.monotonic() - last_tick >= self.tick_interval:
                    last_tick = time.monotonic()
                    self.controller.tick()

    def _forward(self, event: SessionEvent) -> None:
        if isinstance(event, TimerTick):
            self.socketio.emit("tick", {
                "remaining": event.remaining_seconds,
                "elapsed": event.elapsed_seconds,
            }, to=self.sid)
        elif isinstance(event, PhaseChanged):
            self.socketio.emit("phase", {
                "phase": event.phase.value,
                "instruction": event.phase.instruction,
                "duration": event.duration_seconds,
                "cycles": event.completed_cycles,
            }, to=self.sid)
        elif isinstance(event, GuidanceSpoken):
            self.socketio.emit("guidance", {"key": event.cue.key, "text": event.cue.text}, to=self.sid)
        elif isinstance(event, SessionFinished):
            self.socketio.emit("session_finished", {
                "preset_id": event.preset.id,
                "duration": event.actual_duration_seconds,
                "completed": event.completed,
            }, to=self.sid)
        elif isinstance(event, SessionRecorded):
            self.socketio.emit("session_recorded", {
                "session_id": event.session_id,
                "completed": event.completed,
            }, to=self.sid)
        elif isinstance(event, RecordingFailed):
            self.socketio.emit("notice", {
                "level": "warning",
                "message": "This session could not be saved.",
            }, to=self.sid)


def create_app(config: Config | None = None) -> tuple[Flask, SocketIO]:
    """Create and configure the Flask application."""
    if config is None:
        config = load_config()

    app = Flask(__name__)
    app.config["SECRET_KEY"] = "stillpoint-local"

    socketio = SocketIO(
        app,
        async_mode="threading",
        cors_allowed_origins="*",
    )

    app.meditation_config = config
    app.store = open_store(config)
    app.recorder = SessionRecorder(app.store)
    app.web_sessions = {}  # socket sid → WebMeditationSession

    _register_routes(app)
    _register_socketio_events(socketio, app)

    return app, socketio


def _register_routes(app: Flask) -> None:
    """Register HTTP routes."""

    @app.errorhandler(StoreError)
    def handle_store_error(e):
        return jsonify({"error": str(e)}), 404

    @app.route("/api/presets")
    def api_presets():
        return jsonify([p.to_dict() for p in app.store.load_presets()])

    @app.route("/api/sessions")
    def api_sessions():
        return jsonify([s.to_dict() for s in app.store.list_sessions()])

    @app.route("/api/sessions/<session_id>")
    def api_session_detail(session_id):
        return jsonify(app.store.get_session(session_id).to_dict())

    @app.route("/api/sessions/<session_id>/notes", methods=["PATCH", "PUT"])
    def api_session_notes(session_id):
        data = request.get_json(silent=True) or {}
        notes = str(data.get("notes", ""))
        return jsonify(app.store.update_session_notes(session_id, notes).to_dict())

    @app.route("/api/stats")
    def api_stats():
        sessions = app.store.list_sessions()
        stats = progress_stats(sessions).to_dict()
        stats["streak"] = current_streak(sessions)
        return jsonify(stats)

    @app.route("/api/calendar/<int:year>/<int:month>")
    def api_calendar(year, month):
        if not 1 <= month <= 12:
            return jsonify({"error": "Month must be 1-12"}), 400
        cells = calendar_month(app.store.list_sessions(), year, month)
        return jsonify([
            None if cell is None else {**cell, "sessions": [s.to_dict() for s in cell["sessions"]]}
            for cell in cells
        ])

    @app.route("/api/goals")
    def api_goals():
        sessions = app.store.list_sessions()
        return jsonify([goal_progress(g, sessions).to_dict() for g in app.store.list_goals()])

    @app.route("/api/goals", methods=["POST"])
    def api_goal_create():
        data = request.get_json(silent=True) or {}
        try:
            goal = new_goal(
                GoalType(data.get("type", "daily")),
                int(data.get("target", 10)),
                GoalMetric(data.get("metric", "minutes")),
            )
        except (TypeError, ValueError) as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(app.store.create_goal(goal).to_dict()), 201

    @app.route("/api/goals/<goal_id>", methods=["DELETE"])
    def api_goal_cancel(goal_id):
        return jsonify(app.store.cancel_goal(goal_id).to_dict())

    @app.route("/api/badges")
    def api_badges():
        earned = {ub.badge_id: ub for ub in app.store.list_user_badges()}
        return jsonify([
            {
                **badge.to_dict(),
                "earned_date": earned[badge.id].earned_date.isoformat() if badge.id in earned else None,
            }
            for badge in app.store.list_badges()
        ])

    @app.route("/api/settings")
    def api_settings():
        return jsonify(app.store.load_settings().to_dict())

    @app.route("/api/settings", methods=["PUT"])
    def api_settings_update():
        data = request.get_json(silent=True) or {}
        settings = app.store.load_settings()
        if "speech_rate" in data:
            try:
                rate = float(data["speech_rate"])
            except (TypeError, ValueError):
                return jsonify({"error": "speech_rate must be a number"}), 400
            settings.speech_rate = max(0.5, min(1.5, rate))
        for key in ("voice_enabled", "sound_enabled"):
            if key in data:
                setattr(settings, key, bool(data[key]))
        if "selected_voice" in data:
            settings.selected_voice = data["selected_voice"] or None
        return jsonify(app.store.save_settings(settings).to_dict())

    @app.route("/api/export/<fmt>")
    def api_export(fmt):
        if fmt == "csv":
            body = export_csv(app.store.list_sessions(), app.store.load_presets())
            mimetype = "text/csv"
        elif fmt == "json":
            body = export_json(collect_export(app.store))
            mimetype = "application/json"
        else:
            return jsonify({"error": f"Unknown export format: {fmt}"}), 400
        return Response(
            body,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={export_filename(fmt)}"},
        )

    @app.route("/api/data", methods=["DELETE"])
    def api_delete_all():
        app.store.delete_all()
        return jsonify({"deleted": True})


def _register_socketio_events(socketio: SocketIO, app: Flask) -> None:
    """Register WebSocket event handlers."""

    @socketio.on("disconnect")
    def handle_disconnect():
        web_session = app.web_sessions.pop(request.sid, None)
        if web_session is not None:
            web_session.close()

    @socketio.on("start_session")
    def handle_start_session(data):
        sid = request.sid
        preset = get_preset((data or {}).get("preset_id", ""), app.store.load_presets())
        if preset is None:
            emit("error", {"message": "Unknown preset"})
            return

        web_session = app.web_sessions.get(sid)
        if web_session is None:
            web_session = WebMeditationSession(app, socketio, sid)
            app.web_sessions[sid] = web_session
            print(f"  [Session] New controller for sid={sid[:8]}…", flush=True)

        if not web_session.start(preset):
            emit("error", {"message": "Preset has no duration"})
            return
        emit("session_started", web_session.controller.snapshot())

    @socketio.on("pause_resume")
    def handle_pause_resume():
        web_session = app.web_sessions.get(request.sid)
        if web_session is None:
            emit("error", {"message": "No active session"})
            return
        emit("session_state", web_session.pause_resume())

    @socketio.on("stop_session")
    def handle_stop_session():
        web_session = app.web_sessions.get(request.sid)
        if web_session is None:
            return
        web_session.stop()


def run_web(
    config_path: str | None = None,
    host: str | None = None,
    port: int | None = None,
    debug: bool = False,
) -> None:
    """Run the web application."""
    config = load_config(config_path)
    host = host or config.web.host
    port = port or config.web.port

    print(f"\n{'=' * 50}")
    print("  Stillpoint: starting up...")
    print(f"{'=' * 50}")

    app, socketio = create_app(config)

    print(f"\n  Ready: http://localhost:{port}\n")

    def _shutdown(*_):
        print("\n  Shutting down...", flush=True)
        app.recorder.shutdown(wait=True)
        sys.exit(0)

    # threading mode swallows KeyboardInterrupt
    signal.signal(signal.SIGINT, _shutdown)

    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
