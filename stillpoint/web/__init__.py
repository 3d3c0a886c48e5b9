"""Web interface: JSON routes and live sessions over Socket.IO."""

from .app import create_app, run_web

__all__ = ["create_app", "run_web"]
