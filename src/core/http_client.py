"""HTTP client utilities with simple retry logic.

Kept separate from the remote-store client so the transport can be swapped or
mocked (tests pass an ``httpx.Client`` built on ``httpx.MockTransport``).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from config import settings

_logger = logging.getLogger(__name__)


class HttpError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def build_client(timeout: float | None = None) -> httpx.Client:
    return httpx.Client(
        headers={"User-Agent": settings.DEFAULT_USER_AGENT, "Cache-Control": "no-cache"},
        timeout=timeout or settings.DEFAULT_TIMEOUT,
        follow_redirects=True,
    )


def fetch_json(
    url: str,
    *,
    client: Optional[httpx.Client] = None,
    retries: int | None = None,
    backoff_factor: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Transport errors and timeouts are retried with exponential backoff. A
    non-2xx response is not retried: the store answered, the answer is final.
    """
    retries = retries if retries is not None else settings.DEFAULT_RETRIES
    backoff_factor = (
        backoff_factor if backoff_factor is not None else settings.DEFAULT_BACKOFF_FACTOR
    )
    close_client = False
    if client is None:
        client = build_client()
        close_client = True
    try:
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = client.get(url)
            except httpx.TransportError as e:
                if attempt > retries:
                    raise HttpError(f"Failed to fetch {url} after {retries} retries: {e}") from e
                sleep_for = backoff_factor * (2 ** (attempt - 1))
                _logger.info(
                    "Attempt %d/%d failed for %s: %s. Retrying in %.1fs",
                    attempt,
                    retries,
                    url,
                    e,
                    sleep_for,
                )
                sleep(sleep_for)
                continue
            if resp.status_code >= 400:
                raise HttpError(
                    f"Fetch failed ({resp.status_code}) for {url}", status_code=resp.status_code
                )
            try:
                return resp.json()
            except ValueError as e:
                raise HttpError(f"Invalid JSON payload from {url}: {e}") from e
    finally:
        if close_client:
            client.close()
