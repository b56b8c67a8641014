"""Per-user critical section for progression mutations."""

import logging
from contextlib import contextmanager

from flask import current_app
from redis.exceptions import LockError, RedisError

logger = logging.getLogger(__name__)

USER_LOCK_PREFIX = "user_lock:"


@contextmanager
def user_mutation_lock(user_id: int):
    """Serialize EXP mutations for one user across workers.

    Takes a Redis lock when ``USER_LOCK_ENABLED`` is set. If Redis is
    unavailable or the lock cannot be acquired in time, the body still runs
    and correctness falls back to the row lock on the progression account.
    """
    if not current_app.config.get("USER_LOCK_ENABLED", False):
        yield
        return

    lock = None
    try:
        from app.extensions import get_redis_client

        lock = get_redis_client().lock(
            f"{USER_LOCK_PREFIX}{user_id}",
            timeout=current_app.config.get("USER_LOCK_TIMEOUT", 10),
            blocking_timeout=current_app.config.get("USER_LOCK_BLOCKING_TIMEOUT", 5),
        )
        if not lock.acquire():
            logger.warning(f"Timed out waiting for user lock {user_id}")
            lock = None
    except RedisError as e:
        logger.warning(f"User lock unavailable for {user_id}: {e}")
        lock = None

    try:
        yield
    finally:
        if lock is not None:
            try:
                lock.release()
            except (LockError, RedisError) as e:
                logger.warning(f"Failed to release user lock {user_id}: {e}")
