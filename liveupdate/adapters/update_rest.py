"""REST adapter implementing the update-server transport contract."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import requests
from requests import exceptions as req_exc

from liveupdate.domain.ports import TransferPort, TransferProgress

from liveupdate.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    build_error_message,
    extract_error_code,
    extract_error_hint,
    parse_error_payload,
)
from liveupdate.adapters.http_client import HttpConfig, RetryingSession

DOWNLOAD_CHUNK_SIZE = 64 * 1024


class UpdateRestAdapter(TransferPort):
    """HTTP adapter for the check-latest, stats, and bundle download URLs."""

    def __init__(
        self,
        *,
        request_timeout_s: int = 10,
        download_timeout_s: int = 60,
        retries: int = 0,
        user_agent: Optional[str] = None,
    ) -> None:
        self.cfg = HttpConfig(
            request_timeout_s=request_timeout_s,
            download_timeout_s=download_timeout_s,
            retries=retries,
        )
        self.session = RetryingSession(self.cfg, user_agent=user_agent)

    def post_json(
        self, url: str, body: Mapping[str, Any], *, timeout: Optional[int] = None
    ) -> Dict[str, Any]:
        """POST a JSON body and return the decoded JSON object response.

        Args:
            url: Absolute check-latest or stats endpoint.
            body: JSON-serializable request object.
            timeout: Optional override of ``request_timeout_s``.

        Returns:
            The decoded object, or ``{}`` for an empty response body.

        Raises:
            ApiTimeoutError: No answer after all attempts.
            ApiError: Any other transport failure, a non-2xx status, or a
                body that is not a JSON object.
        """
        ctx = f"post[{url}]"
        try:
            resp = self.session.post(
                url, json_body=dict(body), timeout=timeout or self.cfg.request_timeout_s
            )
            self._ensure_ok(resp, ctx)
            return self._json_dict(resp)
        except req_exc.RequestException as exc:
            # redirect loops, broken encodings and other non-transient failures
            raise ApiError(f"{ctx}: request failed: {exc}", context=ctx) from exc

    def download(
        self, url: str, destination: Path, *, on_progress: Optional[TransferProgress] = None
    ) -> Path:
        """Stream ``url`` into ``destination``, reporting raw percent progress.

        Progress is only reported when the server sends ``Content-Length``;
        each reported value is strictly greater than the previous one.

        Args:
            url: Absolute bundle archive URL.
            destination: Scratch file to create or overwrite.
            on_progress: Optional callback receiving ``0..100``.

        Returns:
            ``destination`` as a ``Path``.

        Raises:
            ApiTimeoutError: No answer after all attempts.
            ApiError: Any other transport failure, a non-2xx status, or an
                interrupted transfer. The response is always closed.
        """
        ctx = f"download[{url}]"
        target = Path(destination)
        try:
            resp = self.session.get(
                url,
                accept="application/octet-stream",
                timeout=self.cfg.download_timeout_s,
                stream=True,
            )
        except req_exc.RequestException as exc:
            raise ApiError(f"{ctx}: request failed: {exc}", context=ctx) from exc

        try:
            self._ensure_ok(resp, ctx)
            total = self._content_length(resp)
            received = 0
            last_percent = -1
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as handle:
                for chunk in resp.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if not chunk:
                        continue
                    handle.write(chunk)
                    received += len(chunk)
                    if on_progress is None or total <= 0:
                        continue
                    percent = min(100, received * 100 // total)
                    if percent > last_percent:
                        last_percent = percent
                        on_progress(percent)
        except req_exc.RequestException as exc:
            raise ApiError(f"{ctx}: transfer interrupted: {exc}", context=ctx) from exc
        finally:
            resp.close()
        return target

    # ------------------------------------------------------------------
    @staticmethod
    def _content_length(resp: requests.Response) -> int:
        raw = (getattr(resp, "headers", None) or {}).get("Content-Length")
        try:
            return int(raw) if raw is not None else 0
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def _ensure_ok(resp: requests.Response, ctx: str) -> None:
        """Map a non-2xx status onto the ``ApiError`` family (4xx client, 5xx server)."""
        status = resp.status_code
        if 200 <= status < 300:
            return
        error_cls = {4: ApiClientError, 5: ApiServerError}.get(status // 100, ApiError)
        body = parse_error_payload(resp)
        raise error_cls(
            build_error_message(ctx, status, body),
            status=status,
            code=extract_error_code(body),
            hint=extract_error_hint(body),
            payload=body,
            context=ctx,
        )

    @staticmethod
    def _json_dict(resp: requests.Response) -> Dict[str, Any]:
        """Parse response JSON and require an object payload (empty body -> ``{}``)."""
        if not (getattr(resp, "text", "") or "").strip():
            return {}
        try:
            payload = resp.json()
        except Exception as exc:
            snippet = getattr(resp, "text", "")[:400]
            raise ApiError(f"Invalid JSON response: {snippet}", status=resp.status_code) from exc
        if not isinstance(payload, dict):
            raise ApiError("Invalid JSON response shape: expected object", status=resp.status_code)
        return dict(payload)


__all__ = ["UpdateRestAdapter"]
