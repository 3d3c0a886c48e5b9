"""Background persistence of finished sessions."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from .models import CompletedSession, UserBadge
from .progress import evaluate_badges
from .store import DataStore

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Hands finished sessions to the store on a worker thread.

    Recording is fire-and-forget: a failure is logged and reported through
    ``on_failure`` but never retried, and never raised into the caller.
    After each successful write, newly met badges are awarded.
    """

    def __init__(
        self,
        store: DataStore,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.store = store
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="session-recorder"
        )

    def submit(
        self,
        session: CompletedSession,
        on_success: Callable[[str], None] | None = None,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> Future:
        """Queue a session for recording.

        Returns:
            Future resolving to the stored session id, or None on failure
        """
        def _record() -> str | None:
            try:
                session_id = self.store.record_session(session)
            except Exception as e:
                logger.error("Failed to record session for %s: %s", session.preset_id, e)
                if on_failure is not None:
                    on_failure(e)
                return None

            self.award_badges()
            if on_success is not None:
                on_success(session_id)
            return session_id

        return self._executor.submit(_record)

    def award_badges(self) -> list[UserBadge]:
        """Award every badge the stored history now qualifies for."""
        try:
            sessions = self.store.list_sessions()
            earned = {ub.badge_id for ub in self.store.list_user_badges()}
            awarded = [
                self.store.award_badge(badge.id)
                for badge in evaluate_badges(self.store.list_badges(), sessions, earned)
            ]
        except Exception as e:
            logger.warning("Badge evaluation failed: %s", e)
            return []

        for user_badge in awarded:
            logger.info("Badge earned: %s", user_badge.badge_id)
        return awarded

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
