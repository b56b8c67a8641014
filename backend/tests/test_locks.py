"""Tests for the per-user mutation lock."""

from redis.exceptions import ConnectionError as RedisConnectionError

from app import extensions
from app.services.locks import user_mutation_lock


class FakeLock:
    def __init__(self, acquired=True):
        self.acquired = acquired
        self.released = False

    def acquire(self):
        return self.acquired

    def release(self):
        self.released = True


class FakeRedis:
    def __init__(self, lock=None, error=None):
        self._lock = lock
        self._error = error
        self.names = []

    def lock(self, name, timeout=None, blocking_timeout=None):
        if self._error:
            raise self._error
        self.names.append(name)
        return self._lock


class TestUserMutationLock:
    def test_disabled_runs_body(self, app):
        ran = []
        with user_mutation_lock(1):
            ran.append(True)
        assert ran == [True]

    def test_acquires_and_releases(self, app, monkeypatch):
        lock = FakeLock()
        fake = FakeRedis(lock=lock)
        app.config["USER_LOCK_ENABLED"] = True
        monkeypatch.setattr(extensions, "get_redis_client", lambda: fake)

        with user_mutation_lock(7):
            assert not lock.released

        assert fake.names == ["user_lock:7"]
        assert lock.released

    def test_timeout_still_runs_body(self, app, monkeypatch):
        lock = FakeLock(acquired=False)
        app.config["USER_LOCK_ENABLED"] = True
        monkeypatch.setattr(extensions, "get_redis_client", lambda: FakeRedis(lock=lock))

        ran = []
        with user_mutation_lock(7):
            ran.append(True)

        assert ran == [True]
        assert not lock.released

    def test_redis_unavailable_still_runs_body(self, app, monkeypatch):
        app.config["USER_LOCK_ENABLED"] = True
        fake = FakeRedis(error=RedisConnectionError("down"))
        monkeypatch.setattr(extensions, "get_redis_client", lambda: fake)

        ran = []
        with user_mutation_lock(7):
            ran.append(True)

        assert ran == [True]
