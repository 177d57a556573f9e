"""Client-side session management.

Learn: This is the client's half of the token lifecycle. After a
successful login the token and its *absolute* expiry are persisted to a
TokenStore (the local-storage analogue), and a single timer is armed to
fire at that expiry. When it fires the stored session is wiped and the
on_expire hook runs (the CLI prints "session expired"; a UI would route
to its login view).

The timer is a convenience, not a security boundary: the server rejects
an expired token no matter what the client believes.
"""

from __future__ import annotations

import json
import os
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class StoredSession:
    token: str
    expires_at: float  # unix timestamp, seconds


class TokenStore(Protocol):
    def load(self) -> Optional[StoredSession]: ...

    def save(self, session: StoredSession) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStore:
    """Keeps the session for the life of the process only."""

    def __init__(self) -> None:
        self._session: Optional[StoredSession] = None

    def load(self) -> Optional[StoredSession]:
        return self._session

    def save(self, session: StoredSession) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class FileTokenStore:
    """Persists the session as a small JSON file readable only by its owner."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Optional[StoredSession]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return StoredSession(token=str(data["token"]), expires_at=float(data["expires_at"]))
        except FileNotFoundError:
            return None
        except (ValueError, KeyError, TypeError):
            logger.warning("session.store_corrupt", path=str(self.path))
            self.clear()
            return None

    def save(self, session: StoredSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        # The token must never sit on disk with a wider mode, not even briefly.
        tmp.unlink(missing_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(session)))
        os.replace(tmp, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def _daemon_timer(interval: float, fn: Callable[[], None]) -> Timer:
    timer = threading.Timer(interval, fn)
    timer.daemon = True
    return timer


class SessionManager:
    """Holds the current token and signs the user out when it expires.

    Exactly one expiry timer exists at a time: arming a new one always
    cancels the previous one first.
    """

    def __init__(
        self,
        store: Optional[TokenStore] = None,
        on_expire: Optional[Callable[[], None]] = None,
        clock: Callable[[], float] = time.time,
        timer_factory: TimerFactory = _daemon_timer,
    ) -> None:
        self.store = store if store is not None else MemoryTokenStore()
        self.on_expire = on_expire
        self._clock = clock
        self._timer_factory = timer_factory
        self._timer: Optional[Timer] = None
        self._generation: Optional[object] = None
        self._session: Optional[StoredSession] = None
        self._lock = threading.RLock()

    # ─── Lifecycle ───────────────────────────────────────

    def start(self, token: str, expires_in_seconds: float) -> StoredSession:
        """Store a freshly issued token and arm the expiry timer."""
        session = StoredSession(token=token, expires_at=self._clock() + expires_in_seconds)
        with self._lock:
            self.store.save(session)
            self._session = session
            self._arm(expires_in_seconds)
        logger.debug("session.started", expires_at=session.expires_at)
        return session

    def restore(self) -> Optional[StoredSession]:
        """Pick up a session persisted by an earlier process, if still valid."""
        with self._lock:
            session = self.store.load()
            if session is None:
                return None
            remaining = session.expires_at - self._clock()
            if remaining <= 0:
                self._expire()
                return None
            self._session = session
            self._arm(remaining)
            return session

    def end(self) -> None:
        """Sign out: cancel the timer and forget the token."""
        with self._lock:
            self._cancel()
            self._session = None
            self.store.clear()

    # ─── State ───────────────────────────────────────────

    @property
    def token(self) -> Optional[str]:
        """The current token, or None once it is past its expiry."""
        with self._lock:
            if self._session is None:
                return None
            if self._clock() >= self._session.expires_at:
                return None
            return self._session.token

    @property
    def expires_at(self) -> Optional[float]:
        return self._session.expires_at if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def seconds_remaining(self) -> float:
        if self._session is None:
            return 0.0
        return max(0.0, self._session.expires_at - self._clock())

    # ─── Timer ───────────────────────────────────────────

    def _arm(self, delay: float) -> None:
        self._cancel()
        generation = object()
        self._generation = generation
        timer = self._timer_factory(max(0.0, delay), lambda: self._on_timer(generation))
        self._timer = timer
        timer.start()

    def _cancel(self) -> None:
        self._generation = None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: object) -> None:
        with self._lock:
            # A timer that was replaced while it was about to fire is stale.
            if generation is not self._generation:
                return
            self._timer = None
            self._generation = None
            self._expire()

    def _expire(self) -> None:
        self._session = None
        self.store.clear()
        logger.info("session.expired")
        if self.on_expire is not None:
            self.on_expire()
