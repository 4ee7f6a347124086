# excom_catalog/api/base_client.py

"""Resilient JSON client for the marketplace REST API."""

import json
import logging
import time
from typing import Any

from curl_cffi import requests as curl_requests

from excom_catalog.config.settings import Settings

# Methods safe to replay after a lost or failed reply
_RETRYABLE_METHODS = frozenset({"GET", "PUT", "PATCH", "DELETE"})


class ApiError(Exception):
    """A write request was rejected or the API could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BaseApiClient:
    """HTTP plumbing shared by the API resource clients.

    Reads and writes go through :meth:`_send`, which retries transient
    failures (connection errors, 429 and 5xx) of idempotent methods with
    an escalating delay, and opens a circuit breaker after repeated
    exhausted attempts.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        resource: str = "api",
    ) -> None:
        self.settings = Settings()
        self.base_url = (base_url or self.settings.API_BASE).rstrip("/")
        self.token = self.settings.API_TOKEN if token is None else token
        self.resource = resource
        self.logger = logging.getLogger(f"excom_catalog.api.{resource}")
        self.session = curl_requests.Session()
        self._current_delay: float = self.settings.RETRY_BACKOFF
        self._consecutive_failures: int = 0
        self._circuit_open: bool = False
        self._circuit_opened_at: float = 0.0
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT
        self.last_error: str | None = None

    def _headers(self, with_body: bool = False) -> dict[str, str]:
        headers = dict(self.settings.DEFAULT_HEADERS)
        if with_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    # ── Circuit breaker ──────────────────────────────────

    def _check_circuit(self) -> bool:
        """Return True if the circuit breaker blocks this request.

        After CIRCUIT_BREAKER_COOLDOWN seconds the breaker enters
        a half-open state, allowing a single probe request through.
        """
        if not self._circuit_open:
            return False
        elapsed = time.time() - self._circuit_opened_at
        if elapsed >= self.settings.CIRCUIT_BREAKER_COOLDOWN:
            self.logger.info(
                "[%s] Circuit breaker half-open after %.0fs",
                self.resource,
                elapsed,
            )
            self._circuit_open = False
            return False
        return True

    def _record_success(self) -> None:
        self._consecutive_failures = 0
        self._circuit_open = False
        self._circuit_opened_at = 0.0
        self._current_delay = self.settings.RETRY_BACKOFF

    def _record_failure(self) -> None:
        self._consecutive_failures += 1
        if self._consecutive_failures >= self.settings.CIRCUIT_BREAKER_THRESHOLD:
            self._circuit_open = True
            self._circuit_opened_at = time.time()
            self.logger.error(
                "[%s] Circuit breaker opened after %d "
                "consecutive failures",
                self.resource,
                self._consecutive_failures,
            )

    def _escalate_delay(self) -> None:
        """Double the current delay up to the configured max."""
        max_delay = (
            self.settings.RETRY_BACKOFF
            * self.settings.MAX_BACKOFF_MULTIPLIER
        )
        self._current_delay = min(self._current_delay * 2, max_delay)
        self.logger.warning(
            "[%s] Backing off, delay escalated to %.1fs",
            self.resource,
            self._current_delay,
        )

    # ── Transport ────────────────────────────────────────

    def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> curl_requests.Response | None:
        """Send a request, retrying idempotent methods.

        ``POST`` goes out exactly once: a replay after a lost reply could
        insert the same product twice.  Returns the last response received
        (including a final 429/5xx, so its error body can be surfaced), or
        ``None`` when the circuit is open or no response ever arrived.
        """
        if self._check_circuit():
            self.logger.warning(
                "[%s] Circuit open, skipping %s %s",
                self.resource,
                method,
                path,
            )
            return None
        url = self._url(path)
        attempts = (
            self.settings.MAX_RETRIES if method in _RETRYABLE_METHODS else 1
        )
        last_resp: curl_requests.Response | None = None
        for attempt in range(attempts):
            retries_left = attempt + 1 < attempts
            try:
                resp = self.session.request(
                    method,
                    url,
                    headers=self._headers(payload is not None),
                    params=params,
                    json=payload,
                    timeout=self._request_timeout,
                )
                status = resp.status_code
                if status < 400:
                    self._record_success()
                    return resp
                self.logger.warning(
                    "[%s] %s %s returned HTTP %d on attempt %d/%d",
                    self.resource,
                    method,
                    path,
                    status,
                    attempt + 1,
                    attempts,
                )
                if status == 429 or status >= 500:
                    last_resp = resp
                    if retries_left:
                        self._escalate_delay()
                        time.sleep(self._current_delay)
                    continue
                # The server answered; the request itself is wrong
                self._record_success()
                return resp
            except Exception as exc:
                self.logger.warning(
                    "[%s] Request error on attempt %d/%d: %s",
                    self.resource,
                    attempt + 1,
                    attempts,
                    exc,
                    exc_info=True,
                )
                if retries_left:
                    time.sleep(self._current_delay * (attempt + 1))
        self._record_failure()
        return last_resp

    def _get_json(
        self, path: str, params: dict[str, Any] | None = None,
    ) -> Any:
        """GET and decode JSON; any failure is logged and yields ``None``.

        The failure text is kept in :attr:`last_error` until the next
        read succeeds.
        """
        resp = self._send("GET", path, params=params)
        if resp is None:
            self.last_error = f"GET {path} failed: service unavailable"
            self.logger.error("[%s] %s", self.resource, self.last_error)
            return None
        if resp.status_code >= 400:
            self.last_error = self.error_message(resp, "GET", path)
            self.logger.error(
                "[%s] GET %s failed: %s",
                self.resource,
                path,
                self.last_error,
            )
            return None
        try:
            data = resp.json()
        except ValueError:
            self.last_error = f"GET {path} returned invalid JSON"
            self.logger.error(
                "[%s] %s", self.resource, self.last_error, exc_info=True,
            )
            return None
        self.last_error = None
        return data

    def _write_json(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a write request; raise :class:`ApiError` on failure."""
        resp = self._send(method, path, payload=payload)
        if resp is None:
            raise ApiError(f"{method} {path} failed: service unavailable")
        if resp.status_code >= 400:
            raise ApiError(
                self.error_message(resp, method, path),
                resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"data": body}

    @staticmethod
    def error_message(
        resp: curl_requests.Response, method: str, path: str,
    ) -> str:
        """Best human-readable error from a failed response."""
        fallback = f"{method} {path} failed with status {resp.status_code}"
        text = resp.text or ""
        try:
            data = json.loads(text)
        except ValueError:
            return text.strip() or fallback
        if isinstance(data, dict):
            message = data.get("error") or data.get("message")
            if message:
                return str(message)
        return fallback
