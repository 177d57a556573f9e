"""Client session manager tests.

Learn: Time and timers are injected, so these tests never sleep. The
fake timer records whether it was started or cancelled and can be fired
by hand.
"""

import json
import os
import stat

import pytest

from crmdesk.client.session import (
    FileTokenStore,
    MemoryTokenStore,
    SessionManager,
    StoredSession,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, interval, fn):
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fn()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return []


@pytest.fixture
def expired_calls():
    return []


@pytest.fixture
def manager(clock, timers, expired_calls):
    def factory(interval, fn):
        timer = FakeTimer(interval, fn)
        timers.append(timer)
        return timer

    return SessionManager(
        store=MemoryTokenStore(),
        on_expire=lambda: expired_calls.append(True),
        clock=clock,
        timer_factory=factory,
    )


def _live(timers):
    return [t for t in timers if t.started and not t.cancelled]


# ═══════════════════════════════════════════════════════════
# Start / timer
# ═══════════════════════════════════════════════════════════


def test_start_persists_absolute_expiry(manager, clock):
    session = manager.start("tok", 900)
    assert session.expires_at == clock.now + 900
    assert manager.store.load() == session
    assert manager.token == "tok"
    assert manager.is_authenticated


def test_start_arms_exactly_one_timer(manager, timers):
    manager.start("tok", 900)
    assert len(_live(timers)) == 1
    assert timers[0].interval == 900


def test_restart_cancels_previous_timer(manager, timers):
    manager.start("first", 900)
    manager.start("second", 900)
    assert timers[0].cancelled
    assert _live(timers) == [timers[1]]
    assert manager.token == "second"


def test_timer_fire_clears_session(manager, timers, expired_calls):
    manager.start("tok", 900)
    timers[0].fire()
    assert manager.token is None
    assert manager.store.load() is None
    assert expired_calls == [True]


def test_stale_timer_is_ignored(manager, timers, expired_calls):
    """A replaced timer firing late must not end the newer session."""
    manager.start("first", 900)
    manager.start("second", 900)
    timers[0].fire()
    assert manager.token == "second"
    assert expired_calls == []


def test_token_none_once_past_expiry(manager, clock):
    manager.start("tok", 60)
    clock.advance(59)
    assert manager.token == "tok"
    assert manager.seconds_remaining() == pytest.approx(1)
    clock.advance(1)
    assert manager.token is None
    assert not manager.is_authenticated


def test_end_cancels_and_clears(manager, timers, expired_calls):
    manager.start("tok", 900)
    manager.end()
    assert timers[0].cancelled
    assert manager.token is None
    assert manager.expires_at is None
    assert manager.store.load() is None
    assert expired_calls == []


# ═══════════════════════════════════════════════════════════
# Restore
# ═══════════════════════════════════════════════════════════


def test_restore_valid_session(manager, clock, timers):
    manager.store.save(StoredSession(token="old", expires_at=clock.now + 120))
    restored = manager.restore()
    assert restored.token == "old"
    assert manager.token == "old"
    assert _live(timers)[0].interval == pytest.approx(120)


def test_restore_expired_session(manager, clock, timers, expired_calls):
    manager.store.save(StoredSession(token="old", expires_at=clock.now - 1))
    assert manager.restore() is None
    assert manager.store.load() is None
    assert manager.token is None
    assert timers == []
    assert expired_calls == [True]


def test_restore_nothing_stored(manager, expired_calls):
    assert manager.restore() is None
    assert expired_calls == []


# ═══════════════════════════════════════════════════════════
# FileTokenStore
# ═══════════════════════════════════════════════════════════


def test_file_store_round_trip(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = FileTokenStore(path)
    assert store.load() is None

    store.save(StoredSession(token="tok", expires_at=1234.5))
    assert json.loads(path.read_text()) == {"token": "tok", "expires_at": 1234.5}
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert store.load() == StoredSession(token="tok", expires_at=1234.5)

    store.clear()
    assert not path.exists()
    store.clear()


def test_file_store_token_is_private_before_rename(tmp_path, monkeypatch):
    """The temp file already has owner-only permissions when the token lands in it."""
    path = tmp_path / "session.json"
    modes = []
    real_replace = os.replace

    def recording_replace(src, dst):
        modes.append(stat.S_IMODE(os.stat(src).st_mode))
        real_replace(src, dst)

    monkeypatch.setattr("crmdesk.client.session.os.replace", recording_replace)
    old_umask = os.umask(0o022)
    try:
        FileTokenStore(path).save(StoredSession(token="tok", expires_at=1.0))
    finally:
        os.umask(old_umask)

    assert modes == [0o600]
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_file_store_overwrites_stale_temp_file(tmp_path):
    path = tmp_path / "session.json"
    stale = path.with_suffix(".tmp")
    stale.write_text("left over")
    os.chmod(stale, 0o644)

    FileTokenStore(path).save(StoredSession(token="tok", expires_at=1.0))
    assert not stale.exists()
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_file_store_corrupt_file_is_discarded(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")
    store = FileTokenStore(path)
    assert store.load() is None
    assert not path.exists()
