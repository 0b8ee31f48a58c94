"""HTTP layer for the GraphQL endpoints: the network subgraph and the management server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import GraphQLRequestError


@dataclass(frozen=True)
class HttpSettings:
    """Runtime configuration for HTTP requests."""

    timeout: float  # read timeout, seconds
    connect_timeout: float  # connect timeout, seconds
    retries: int = 0
    backoff_factor: float = 0.0
    status_forcelist: Iterable[int] = (429, 500, 502, 503, 504)


_LOGGER = logging.getLogger("allocopt.http")
_SETTINGS = HttpSettings(timeout=60.0, connect_timeout=10.0)
_SESSION: Session | None = None
# Queries and mutations both travel as POST.
_ALLOWED_METHODS = frozenset({"GET", "POST"})


def _build_retry(settings: HttpSettings) -> Retry:
    return Retry(
        total=max(0, settings.retries),
        connect=max(0, settings.retries),
        read=max(0, settings.retries),
        backoff_factor=max(0.0, settings.backoff_factor),
        status_forcelist=tuple(settings.status_forcelist),
        allowed_methods=_ALLOWED_METHODS,
        raise_on_status=False,
    )


def _create_session(settings: HttpSettings) -> Session:
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=_build_retry(settings))
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
    return session


def configure_http(settings: HttpSettings) -> None:
    """Update HTTP defaults and rebuild the shared session."""
    global _SETTINGS, _SESSION
    _SETTINGS = settings
    _SESSION = _create_session(settings)
    _LOGGER.debug(
        "HTTP client configured: timeout=%ss connect=%ss retries=%s backoff=%s",
        settings.timeout,
        settings.connect_timeout,
        settings.retries,
        settings.backoff_factor,
    )


def get_http_session() -> Session:
    """Return a lazily initialised shared requests session."""
    global _SESSION
    if _SESSION is None:
        _SESSION = _create_session(_SETTINGS)
    return _SESSION


def get_http_settings() -> HttpSettings:
    return _SETTINGS


def _default_timeout() -> tuple[float, float]:
    connect = max(0.1, float(_SETTINGS.connect_timeout))
    read = max(connect + 1.0, float(_SETTINGS.timeout))
    return connect, read


def http_request(
    method: str,
    url: str,
    *,
    timeout: Any | None = None,
    session: Session | None = None,
    logger: Optional[logging.Logger] = None,
    raise_for_status: bool = False,
    **kwargs: Any,
) -> Response:
    """Perform an HTTP request with the shared session and logging.

    Parameters
    ----------
    method: HTTP verb (GET/POST)
    url: target URL
    timeout: custom timeout or tuple (connect, read). Falls back to defaults if omitted.
    session: optional `requests.Session` to use instead of the shared one.
    logger: logger for error messages (defaults to `allocopt.http`).
    raise_for_status: if True, call `response.raise_for_status()` before returning.
    kwargs: forwarded to `session.request`.
    """

    sess = session or get_http_session()
    timer = timeout if timeout is not None else _default_timeout()
    log = logger or _LOGGER
    verb = method.upper()
    try:
        response = sess.request(verb, url, timeout=timer, **kwargs)
        if raise_for_status:
            response.raise_for_status()
        return response
    except requests.RequestException as exc:
        log.warning("HTTP %s %s failed: %s", verb, url, exc)
        raise


def graphql_request(
    url: str,
    document: str,
    variables: Optional[Mapping[str, Any]] = None,
    *,
    timeout: Any | None = None,
    session: Session | None = None,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """POST a GraphQL document and return the response's ``data`` object.

    Nothing is retried beyond what the session's retry policy allows. Transport
    failures, non-2xx statuses, non-JSON bodies, ``errors`` payloads and a
    missing ``data`` object all raise :class:`GraphQLRequestError`.
    """

    payload: Dict[str, Any] = {"query": document}
    if variables:
        payload["variables"] = dict(variables)
    try:
        response = http_request(
            "POST",
            url,
            json=payload,
            session=session,
            timeout=timeout,
            logger=logger,
            raise_for_status=True,
        )
    except requests.RequestException as exc:
        raise GraphQLRequestError(f"POST {url} failed: {exc}", url=url) from exc

    try:
        body = response.json()
    except ValueError as exc:
        raise GraphQLRequestError(f"{url} returned a non-JSON body", url=url) from exc
    if not isinstance(body, Mapping):
        raise GraphQLRequestError(f"{url} returned an unexpected body", url=url)

    errors = body.get("errors")
    if errors:
        messages = "; ".join(
            str(err.get("message", err)) if isinstance(err, Mapping) else str(err) for err in errors
        )
        raise GraphQLRequestError(f"{url} answered with errors: {messages}", url=url, errors=errors)

    data = body.get("data")
    if not isinstance(data, Mapping):
        raise GraphQLRequestError(f"{url} returned no data", url=url)
    return dict(data)
