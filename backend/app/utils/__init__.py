"""Utility functions."""

from app.utils.response import (
    error_response,
    forbidden,
    server_error,
    success_response,
    unauthorized,
    validation_error,
)

__all__ = [
    "success_response",
    "error_response",
    "unauthorized",
    "forbidden",
    "server_error",
    "validation_error",
]
