"""Shared helpers for API routers."""

from .errors import to_http_exception

__all__ = ["to_http_exception"]
