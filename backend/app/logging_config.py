"""Structured request logging and 5xx alerting for production."""

import logging
import sys
import time
import uuid

import requests
import structlog
from flask import g, request
from pythonjsonlogger import jsonlogger
from redis.exceptions import RedisError

from app.extensions import get_redis_client, request_user_id

ERROR_COUNT_KEY = "fithub:errors:5xx:count"
ERROR_ALERT_SENT_KEY = "fithub:errors:5xx:alert_sent"

# Requests that hit the progression engine; tagged so EXP changes can be traced
MUTATION_METHODS = ("POST", "PUT", "DELETE")
QUIET_PATHS = ("/health", "/ready")


def send_admin_alert(app, error_count: int, sample_errors: list):
    """Post a high error rate alert to the operator webhook."""
    webhook_url = app.config.get("ALERT_WEBHOOK_URL", "")
    if not webhook_url:
        return

    lines = [f"**FitHub backend**: {error_count} 5xx responses in the last window"]
    lines.extend(f"- {err}" for err in sample_errors[:3])

    try:
        requests.post(webhook_url, json={"content": "\n".join(lines)}, timeout=5)
    except requests.RequestException as e:
        app.logger.warning(f"Failed to send error alert: {e}")


def track_5xx_error(app, path: str, status_code: int):
    """Count 5xx responses per window in Redis; alert once past the threshold."""
    window = app.config.get("ERROR_ALERT_WINDOW", 300)
    threshold = app.config.get("ERROR_ALERT_THRESHOLD", 10)
    cooldown = app.config.get("ERROR_ALERT_COOLDOWN", 600)
    error_key = f"{ERROR_COUNT_KEY}:{int(time.time() // window)}"

    try:
        redis = get_redis_client()
        pipe = redis.pipeline()
        pipe.rpush(error_key, f"{status_code} {request.method} {path}")
        pipe.expire(error_key, window * 2)
        pipe.llen(error_key)
        error_count = pipe.execute()[2]

        if error_count >= threshold and redis.set(
            ERROR_ALERT_SENT_KEY, "1", ex=cooldown, nx=True
        ):
            send_admin_alert(app, error_count, redis.lrange(error_key, 0, 4))
    except RedisError as e:
        app.logger.warning(f"5xx tracking unavailable: {e}")


def setup_logging(app):
    """Configure JSON logging and per-request structlog context."""
    log_level = logging.DEBUG if app.debug else logging.INFO
    slow_ms = app.config.get("SLOW_REQUEST_MS", 1000)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if app.debug
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if not app.debug:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"levelname": "level", "asctime": "timestamp"},
            )
        )
        handler.setLevel(log_level)

        app.logger.handlers = [handler]
        app.logger.setLevel(log_level)

        # Services log under "app.*"; framework noise only above WARNING
        for name, level in (
            ("app", log_level),
            ("werkzeug", logging.WARNING),
            ("sqlalchemy.engine", logging.WARNING),
        ):
            logger = logging.getLogger(name)
            logger.handlers = [handler]
            logger.setLevel(level)

    request_log = structlog.get_logger("fithub.request")

    @app.before_request
    def bind_request_context():
        g.request_id = uuid.uuid4().hex[:8]
        g.request_start_time = time.time()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=g.request_id,
            method=request.method,
            path=request.path,
            remote_addr=request.remote_addr,
        )
        if request.method in MUTATION_METHODS:
            structlog.contextvars.bind_contextvars(user_id=request_user_id())

    @app.after_request
    def log_response(response):
        if not hasattr(g, "request_start_time"):
            return response

        duration_ms = round((time.time() - g.request_start_time) * 1000, 2)
        if request.path not in QUIET_PATHS:
            event = "slow_request" if duration_ms >= slow_ms else "request_completed"
            log = request_log.warning if event == "slow_request" else request_log.info
            log(
                event,
                status_code=response.status_code,
                duration_ms=duration_ms,
                content_length=response.content_length,
            )

        if response.status_code >= 500:
            track_5xx_error(app, request.path, response.status_code)

        return response

    return app
