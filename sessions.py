import logging
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from config import get_settings

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    active = "active"
    warning = "warning"
    expired = "expired"


class InactivityMonitor:
    """Tracks the last activity per session id.

    A session is ``warning`` during the lead window before the timeout and
    ``expired`` once the timeout has passed without activity. Unknown ids are
    reported as expired.
    """

    def __init__(
        self,
        timeout: Optional[timedelta] = None,
        warning_lead: Optional[timedelta] = None,
    ) -> None:
        settings = get_settings()
        self.timeout = timeout or timedelta(minutes=settings.session_timeout_minutes)
        self.warning_lead = warning_lead or timedelta(
            minutes=settings.session_warning_minutes
        )
        if self.warning_lead >= self.timeout:
            raise ValueError("Warning lead must be shorter than the timeout")
        self._last_seen: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def touch(self, session_id: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            self._last_seen[session_id] = now

    def forget(self, session_id: str) -> None:
        with self._lock:
            self._last_seen.pop(session_id, None)

    def state(self, session_id: str, now: Optional[datetime] = None) -> SessionState:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            last_seen = self._last_seen.get(session_id)
        if last_seen is None:
            return SessionState.expired
        idle = now - last_seen
        if idle >= self.timeout:
            return SessionState.expired
        if idle >= self.timeout - self.warning_lead:
            return SessionState.warning
        return SessionState.active

    def expires_at(self, session_id: str) -> Optional[datetime]:
        with self._lock:
            last_seen = self._last_seen.get(session_id)
        return last_seen + self.timeout if last_seen else None

    def sweep(self, now: Optional[datetime] = None) -> list[str]:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            expired = [
                sid
                for sid, last_seen in self._last_seen.items()
                if now - last_seen >= self.timeout
            ]
            for sid in expired:
                del self._last_seen[sid]
        for sid in expired:
            logger.info(f"session_expired: session_id={sid}")
        return expired
