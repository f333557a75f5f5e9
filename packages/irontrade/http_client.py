"""Brokerage REST transport: a requests session with bounded, jittered retries.

Order placement is not idempotent, so only reads are replayed after a
server error or a dropped connection.  A 429 is safe to replay for any
method because the venue rejects the request before acting on it.
"""

import time
import random
import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

_READ_METHODS = frozenset({"GET"})


class HttpClient:
    """JSON-over-HTTP client bound to one API base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 20.0,
        max_retries: int = 5,
        backoff_factor: float = 1.0,
        retry_statuses: tuple = (429, 500, 502, 503, 504),
        default_headers: Optional[dict] = None,
    ):
        """
        Args:
            base_url:        API root, e.g. ``https://paper-api.alpaca.markets``.
            timeout:         Per-attempt timeout in seconds.
            max_retries:     Extra attempts after the first one.
            backoff_factor:  Base delay; attempt ``n`` waits ``factor * 2**n``.
            retry_statuses:  Statuses treated as transient for reads.
            default_headers: Sent on every call (API key headers).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.retry_statuses = retry_statuses

        self.session = self._create_session()
        self.session.headers.update({"Accept": "application/json"})
        self.session.headers.update(default_headers or {})

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        # Transport-level retries for reads only.
        adapter = HTTPAdapter(
            max_retries=Retry(
                total=self.max_retries,
                backoff_factor=self.backoff_factor,
                status_forcelist=list(self.retry_statuses),
                allowed_methods=sorted(_READ_METHODS),
                raise_on_status=False,
            )
        )
        for scheme in ("http://", "https://"):
            session.mount(scheme, adapter)
        return session

    def _wait(self, base_delay: float, attempt: int, reason: str) -> None:
        """Sleep ``base_delay`` plus up to 50% jitter, logging why."""
        delay = base_delay + random.uniform(0, base_delay * 0.5)
        logger.warning(
            "%s; retrying in %.2fs (attempt %d/%d)",
            reason, delay, attempt + 1, self.max_retries + 1,
        )
        time.sleep(delay)

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json_body: Optional[Any] = None,
        headers: Optional[dict] = None,
    ) -> requests.Response:
        """Send one logical request, replaying it while failures look transient.

        Returns the first non-retried response, whatever its status.

        Raises:
            requests.exceptions.RetryError: every attempt failed transiently.
            requests.exceptions.Timeout / ConnectionError: a write failed in
                transit (never replayed).
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        replayable = method.upper() in _READ_METHODS

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    timeout=self.timeout,
                )
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
                if not replayable:
                    raise
                self._wait(
                    self.backoff_factor * (2**attempt),
                    attempt,
                    f"{method} {url} failed ({type(exc).__name__}: {exc})",
                )
                continue

            if response.status_code == 429:
                retry_after = int(response.headers.get("Retry-After", 5))
                self._wait(retry_after, attempt, f"{method} {url} rate limited")
                continue
            if replayable and response.status_code in self.retry_statuses:
                self._wait(
                    self.backoff_factor * (2**attempt),
                    attempt,
                    f"{method} {url} returned {response.status_code}",
                )
                continue
            return response

        raise requests.exceptions.RetryError(
            f"gave up on {method} {url} after {self.max_retries + 1} attempts"
        )

    def get(
        self,
        path: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> requests.Response:
        return self.request("GET", path, params=params, headers=headers)

    def get_json(
        self,
        path: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """GET *path* and decode the body; non-2xx raises ``HTTPError``."""
        response = self.get(path, params=params, headers=headers)
        response.raise_for_status()
        return response.json()

    def post_json(
        self,
        path: str,
        json_body: Any,
        headers: Optional[dict] = None,
    ) -> Any:
        """POST *json_body* to *path* and decode the body; non-2xx raises ``HTTPError``."""
        response = self.request("POST", path, json_body=json_body, headers=headers)
        response.raise_for_status()
        return response.json()
