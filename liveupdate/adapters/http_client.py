"""Shared ``requests`` session for the update-server adapter.

Check-latest, stats and bundle downloads all go through one
``RetryingSession`` so they share the timeout policy and headers. Transport
failures (timeouts, refused connections) surface as ``ApiTimeoutError``;
mapping non-2xx responses is left to the adapter.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from requests import exceptions as req_exc

from liveupdate.adapters.api_errors import ApiTimeoutError

_TRANSIENT = (req_exc.Timeout, req_exc.ConnectionError)


@dataclass
class HttpConfig:
    """Timeouts (seconds) and retry count for update-server calls.

    ``retries`` counts extra attempts after the first one. It defaults to zero:
    the updater leaves retry policy to whoever drives it.
    """

    request_timeout_s: int = 10
    download_timeout_s: int = 60
    retries: int = 0


class RetryingSession:
    """Thin wrapper over ``requests.Session`` with fixed headers and retries."""

    def __init__(self, cfg: HttpConfig, *, user_agent: Optional[str] = None) -> None:
        """Create the session.

        Args:
            cfg: Shared timeout and retry settings.
            user_agent: Optional ``User-Agent`` header value.
        """
        self.session = requests.Session()
        self.cfg = cfg
        self.user_agent = user_agent

    def _headers(self, accept: str = "application/json", json_body: bool = False) -> Dict[str, str]:
        headers = {"Accept": accept}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def get(
        self,
        url: str,
        *,
        accept: str = "application/json",
        timeout: Optional[int] = None,
        stream: bool = False,
    ) -> requests.Response:
        """GET ``url``; ``stream=True`` leaves the body unread for chunked downloads."""
        return self._attempt(
            f"GET {url}",
            lambda: self.session.get(
                url,
                headers=self._headers(accept=accept),
                timeout=timeout or self.cfg.request_timeout_s,
                stream=stream,
            ),
        )

    def post(
        self,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """POST ``json_body`` serialized as JSON text."""
        data = None if json_body is None else json.dumps(json_body)
        return self._attempt(
            f"POST {url}",
            lambda: self.session.post(
                url,
                data=data,
                headers=self._headers(json_body=json_body is not None),
                timeout=timeout or self.cfg.request_timeout_s,
            ),
        )

    def _attempt(self, context: str, send: Callable[[], requests.Response]) -> requests.Response:
        """Call ``send`` up to ``retries + 1`` times while it fails transiently.

        Raises:
            ApiTimeoutError: Every attempt timed out or could not connect.
        """
        last_exc: Optional[Exception] = None
        for _ in range(max(0, self.cfg.retries) + 1):
            try:
                return send()
            except _TRANSIENT as exc:
                last_exc = exc
        raise ApiTimeoutError(f"{context} failed: {last_exc}", context=context) from last_exc


__all__ = ["HttpConfig", "RetryingSession"]
