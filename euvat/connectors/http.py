"""HTTP transport used by the VIES adapter.

Non-2xx statuses come back as data (``HttpResponse``); only network failures
raise, as ``TransportError`` with a normalized reason.
"""
import errno
import logging
from dataclasses import dataclass
from http.client import RemoteDisconnected
from typing import Any, Optional

import requests

from euvat.core.errors import (
    CONNECTION_CLOSED,
    CONNECTION_REFUSED,
    HOST_UNREACHABLE,
    NETWORK_UNREACHABLE,
    TIMEOUT,
)

logger = logging.getLogger(__name__)

_ERRNO_REASONS = {
    errno.ECONNREFUSED: CONNECTION_REFUSED,
    errno.ECONNRESET: CONNECTION_CLOSED,
    errno.EPIPE: CONNECTION_CLOSED,
    errno.EHOSTUNREACH: HOST_UNREACHABLE,
    errno.ENETUNREACH: NETWORK_UNREACHABLE,
}


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str


class TransportError(Exception):
    """Network-level failure; ``reason`` is a short normalized string."""

    def __init__(self, reason: str, original: Optional[BaseException] = None):
        super().__init__(reason)
        self.reason = reason
        self.original = original


def _iter_causes(exc: BaseException):
    """Walk an exception, its chain, urllib3 ``reason`` attributes and wrapped args."""
    seen: set[int] = set()
    stack: list[Any] = [exc]
    while stack:
        current = stack.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        stack.extend(a for a in current.args if isinstance(a, BaseException))
        stack.append(getattr(current, "reason", None))
        stack.append(current.__cause__)
        stack.append(current.__context__)


def reason_from_exception(exc: BaseException) -> str:
    """Normalize a requests exception into a transport reason."""
    if isinstance(exc, requests.Timeout):
        return TIMEOUT
    for cause in _iter_causes(exc):
        if isinstance(cause, TimeoutError):
            return TIMEOUT
        if isinstance(cause, ConnectionRefusedError):
            return CONNECTION_REFUSED
        if isinstance(cause, (RemoteDisconnected, ConnectionResetError, BrokenPipeError)):
            return CONNECTION_CLOSED
        if isinstance(cause, OSError) and cause.errno in _ERRNO_REASONS:
            return _ERRNO_REASONS[cause.errno]
    return str(exc) or exc.__class__.__name__


class RequestsTransport:
    """Transport on a shared ``requests.Session``; no retries of its own."""

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()

    def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        timeout: float,
        recv_timeout: float,
        body: Optional[str] = None,
    ) -> HttpResponse:
        try:
            resp = self._session.request(
                method,
                url,
                data=body.encode("utf-8") if body is not None else None,
                headers=headers,
                timeout=(timeout, recv_timeout),
            )
        except requests.RequestException as e:
            reason = reason_from_exception(e)
            logger.debug("%s %s failed: %s (%s)", method, url, reason, e)
            raise TransportError(reason, e) from e
        return HttpResponse(status_code=resp.status_code, body=resp.text or "")

    def post(
        self,
        url: str,
        body: str,
        headers: dict[str, str],
        timeout: float = 30.0,
        recv_timeout: float = 15.0,
    ) -> HttpResponse:
        return self._request("POST", url, headers, timeout, recv_timeout, body=body)

    def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float = 30.0,
        recv_timeout: float = 15.0,
    ) -> HttpResponse:
        return self._request("GET", url, headers, timeout, recv_timeout)
