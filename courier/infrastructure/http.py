"""
COURIER - HTTP Client Abstraction

Provides abstraction layer for HTTP operations.
This allows mocking in tests and centralizes HTTP logic.
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

import requests
from requests import Response

Timeout = Tuple[Optional[float], Optional[float]]
Body = Union[bytes, Iterable[bytes], None]


class HttpClient(Protocol):
    """Protocol for HTTP operations."""

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Body = None,
        timeout: Optional[Timeout] = None,
        proxies: Optional[Dict[str, str]] = None,
    ) -> Response:
        """Perform a single HTTP request and read the whole response."""
        ...


class RequestsHttpClient:
    """Real HTTP client using requests library."""

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Body = None,
        timeout: Optional[Timeout] = None,
        proxies: Optional[Dict[str, str]] = None,
    ) -> Response:
        return requests.request(
            method,
            url,
            headers=headers or {},
            data=data,
            timeout=timeout,
            proxies=proxies,
        )


class MockHttpClient:
    """
    Mock HTTP client for testing.

    Responses are keyed by (method, url). A value is either a
    (status, body) tuple or an exception instance to raise.
    """

    def __init__(self, responses: Optional[Dict[Tuple[str, str], Any]] = None):
        self._responses = responses or {}
        self._call_history: List[Dict[str, Any]] = []

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        data: Body = None,
        timeout: Optional[Timeout] = None,
        proxies: Optional[Dict[str, str]] = None,
    ) -> Response:
        # Drain streamed bodies so tests can inspect what went on the wire
        if data is not None and not isinstance(data, bytes):
            data = b"".join(data)

        self._call_history.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers or {}),
                "data": data,
                "timeout": timeout,
                "proxies": proxies,
            }
        )

        canned = self._responses.get((method, url))
        if isinstance(canned, Exception):
            raise canned

        response = Response()
        if canned is None:
            # Default response
            response.status_code = 404
            response._content = b""
            return response

        status, body = canned
        response.status_code = status
        response._content = body.encode("utf-8") if isinstance(body, str) else body
        return response

    def get_call_history(self) -> List[Dict[str, Any]]:
        """Get history of HTTP calls for testing."""
        return self._call_history
