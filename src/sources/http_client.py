"""
HTTP client shared by the REST and GraphQL source adapters.

Wraps a requests.Session with:
- request/response trace logging through response hooks
- mapping of transport errors and non-success statuses to SourceUnavailable
- mapping of undecodable bodies to SourceDataInvalid

No retries are performed; the session is mounted with max_retries=0.
"""

import threading
import time
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from src.core.errors import SourceDataInvalid, SourceUnavailable
from src.observability.logger import TRACE, get_logger, trace
from src.observability.metrics import (
    increment_counter,
    source_request_duration_seconds,
    source_requests_total,
    track_duration,
)

logger = get_logger(__name__)

_REDACTED = "***"


def _redact_headers(headers) -> dict[str, str]:
    return {
        k: (_REDACTED if k.lower() == "authorization" else v)
        for k, v in dict(headers or {}).items()
    }


class ApiClient:
    """
    Session-backed client for one external API.

    Args:
        source: Name used in errors, logs and metrics
        base_url: Prefix joined to request paths
        auth: requests auth object or (user, password) tuple
        headers: Default headers sent with every request
        timeout: Request timeout in seconds
        session: Optional pre-built session (tests inject fakes here)
    """

    def __init__(
        self,
        source: str,
        base_url: str,
        auth: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.source = source
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.headers = headers or {}
        self.timeout = timeout
        self._session = session
        self._session_lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            with self._session_lock:
                if self._session is None:
                    session = requests.Session()
                    adapter = HTTPAdapter(max_retries=0)
                    session.mount("http://", adapter)
                    session.mount("https://", adapter)
                    session.hooks["response"].append(self._trace_response)
                    self._session = session
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _trace_response(self, response: requests.Response, *args, **kwargs) -> None:
        if not logger.isEnabledFor(TRACE):
            return
        request = response.request
        trace(
            logger,
            f"{self.source} response",
            method=request.method,
            url=request.url,
            request_headers=_redact_headers(request.headers),
            request_body=request.body.decode("utf-8", errors="replace") if isinstance(request.body, bytes) else request.body,
            status=response.status_code,
            response_headers=dict(response.headers),
            response_body=response.text,
        )

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path:
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        key: str | None = None,
        **kwargs,
    ) -> requests.Response:
        """
        Send a request and return the successful response.

        Args:
            method: HTTP method
            path: Path relative to base_url, or an absolute URL
            key: Query key the request is made for (for error context)
            **kwargs: Passed to requests.Session.request (params, json, ...)

        Returns:
            Response with a 2xx status

        Raises:
            SourceUnavailable: On transport errors or non-2xx statuses
        """
        url = self.url_for(path)
        headers = {**self.headers, **kwargs.pop("headers", {})}
        logger.debug(f"{method} {url}", extra={"source": self.source, "key": key})

        start = time.time()
        try:
            with track_duration(source_request_duration_seconds, source=self.source):
                response = self.session.request(
                    method,
                    url,
                    headers=headers,
                    auth=self.auth,
                    timeout=self.timeout,
                    **kwargs,
                )
        except requests.RequestException as e:
            increment_counter(source_requests_total, source=self.source, outcome="unavailable")
            logger.error(
                f"{self.source} request failed: {e}",
                extra={"source": self.source, "key": key, "url": url},
            )
            raise SourceUnavailable(str(e), source=self.source, key=key) from e

        logger.debug(
            f"{method} {url} -> {response.status_code}",
            extra={
                "source": self.source,
                "status": response.status_code,
                "elapsed_seconds": round(time.time() - start, 3),
            },
        )

        if not 200 <= response.status_code < 300:
            increment_counter(source_requests_total, source=self.source, outcome="unavailable")
            logger.error(
                f"{self.source} returned status {response.status_code}",
                extra={
                    "source": self.source,
                    "key": key,
                    "status": response.status_code,
                    "response_body": response.text[:2000],
                },
            )
            raise SourceUnavailable(
                f"{self.source} returned status {response.status_code}: {response.text[:500]}",
                source=self.source,
                key=key,
                status=response.status_code,
            )

        increment_counter(source_requests_total, source=self.source, outcome="success")
        return response

    def get_json(self, path: str, key: str | None = None, **kwargs) -> tuple[Any, requests.Response]:
        """GET a JSON document. Returns (decoded body, response)."""
        response = self.request("GET", path, key=key, **kwargs)
        return self.decode(response, key), response

    def post_json(self, path: str, payload: dict, key: str | None = None, **kwargs) -> Any:
        """POST a JSON payload and return the decoded JSON body."""
        response = self.request("POST", path, key=key, json=payload, **kwargs)
        return self.decode(response, key)

    def decode(self, response: requests.Response, key: str | None = None) -> Any:
        """
        Decode a JSON body.

        Raises:
            SourceDataInvalid: If the body is not JSON
        """
        try:
            return response.json()
        except ValueError as e:
            increment_counter(source_requests_total, source=self.source, outcome="invalid")
            raise SourceDataInvalid(
                f"Invalid response format from {self.source}: body is not JSON",
                source=self.source,
                key=key,
                status=response.status_code,
            ) from e
