"""Service layer helpers for allocopt."""

from .http import (
    HttpSettings,
    configure_http,
    get_http_session,
    get_http_settings,
    graphql_request,
    http_request,
)
from .logging import JsonFormatter, SensitiveDataFilter, configure_logging

__all__ = [
    "HttpSettings",
    "configure_http",
    "get_http_session",
    "get_http_settings",
    "graphql_request",
    "http_request",
    "JsonFormatter",
    "SensitiveDataFilter",
    "configure_logging",
]
