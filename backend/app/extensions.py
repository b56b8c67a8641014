"""Flask extensions initialization."""

import os

import redis
from flask import current_app, has_app_context
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from jwt.exceptions import PyJWTError

DEFAULT_REDIS_URL = "redis://localhost:6379/0"

# Redis client, shared by the user lock and 5xx tracking
redis_client = None


def get_redis_client():
    """Get or create the Redis client."""
    global redis_client
    if redis_client is None:
        redis_url = os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)
        if has_app_context():
            redis_url = current_app.config.get("REDIS_URL") or redis_url
        redis_client = redis.from_url(redis_url, decode_responses=True)
    return redis_client


def request_user_id() -> str | None:
    """JWT identity of the current request, or None when absent or invalid."""
    try:
        verify_jwt_in_request(optional=True)
        return get_jwt_identity()
    except (JWTExtendedException, PyJWTError):
        return None


def user_or_ip_key() -> str:
    """Rate limit key: the authenticated user when there is one, else the IP.

    Reward claims are keyed per user so several people behind one NAT do
    not share a budget.
    """
    identity = request_user_id()
    if identity is not None:
        return f"user:{identity}"
    return get_remote_address()


# Rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "300 per hour"],
    storage_uri=os.environ.get("REDIS_URL", "memory://"),
)


def init_sentry(app):
    """Initialize Sentry error tracking."""
    sentry_dsn = app.config.get("SENTRY_DSN")
    if not sentry_dsn:
        app.logger.warning("SENTRY_DSN not set, error tracking disabled")
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.redis import RedisIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[
            FlaskIntegration(),
            SqlalchemyIntegration(),
            RedisIntegration(),
        ],
        traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.1),
        environment=os.environ.get("FLASK_ENV", "production"),
        send_default_pii=False,  # login ids and emails stay out of Sentry
    )
    app.logger.info("Sentry initialized")
