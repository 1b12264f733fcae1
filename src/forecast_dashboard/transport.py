# This file implements the resilient HTTP transport used by every forecast endpoint call.
# It exists so retry, backoff, and timeout policy live in one place instead of in each fetcher.
# Transient failures (no response, timeouts, 5xx) are retried with exponential backoff;
# everything else is surfaced to the caller immediately and unchanged.

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import requests

LOGGER = logging.getLogger("forecast_dashboard.transport")

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 30.0

TIMEOUT_ERROR_CODE = "ECONNABORTED"
NETWORK_ERROR_CODE = "ERR_NETWORK"


class ApiRequestError(RuntimeError):
    """Base class for failures raised by the transport."""

    retryable = False


class ApiUnavailableError(ApiRequestError):
    """Raised when no response was received (connection failure or timeout)."""

    retryable = True

    def __init__(self, *, code: str, message: str, url: str) -> None:
        self.code = code
        self.message = message
        self.url = url
        super().__init__(f"{message} ({code}) for {url}")


class ApiResponseError(ApiRequestError):
    """Raised when the backend answered with a 4xx or 5xx status."""

    def __init__(self, *, status_code: int, payload: Any, url: str) -> None:
        self.status_code = status_code
        self.payload = payload
        self.url = url
        super().__init__(
            f"API request failed with status {status_code} for {url}: {self.error_message}"
        )

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return 500 <= self.status_code < 600

    @property
    def error_message(self) -> str:
        if isinstance(self.payload, dict) and self.payload.get("error"):
            return str(self.payload["error"])
        return f"HTTP {self.status_code}"


class ApiPayloadError(ApiRequestError):
    """Raised when a successful response does not carry valid JSON."""


@dataclass
class RequestDescriptor:
    method: str
    path: str
    params: dict[str, Any] | None = None
    body: Any | None = None
    retry_count: int = field(default=0, compare=False)


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: Any


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, ApiRequestError) and bool(error.retryable)


def backoff_delay(retry_count: int, *, base_delay_seconds: float = BASE_DELAY_SECONDS) -> float:
    return base_delay_seconds * (2**retry_count)


class ForecastTransport:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
        max_retries: int = MAX_RETRIES,
        base_delay_seconds: float = BASE_DELAY_SECONDS,
        session: requests.Session | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.session = session or requests.Session()
        self._sleep = sleep

    async def send(self, descriptor: RequestDescriptor) -> ApiResponse:
        """Issue the request, retrying transient failures on this descriptor only."""

        while True:
            try:
                return await self._attempt(descriptor)
            except ApiRequestError as exc:
                if not exc.retryable or descriptor.retry_count >= self.max_retries:
                    raise
                delay = backoff_delay(
                    descriptor.retry_count, base_delay_seconds=self.base_delay_seconds
                )
                LOGGER.info(
                    "Retrying %s %s in %.1fs (attempt %d of %d): %s",
                    descriptor.method,
                    descriptor.path,
                    delay,
                    descriptor.retry_count + 2,
                    self.max_retries + 1,
                    exc,
                )
                await self._sleep(delay)
                descriptor.retry_count += 1

    def close(self) -> None:
        self.session.close()

    async def _attempt(self, descriptor: RequestDescriptor) -> ApiResponse:
        # requests only bounds connect and each socket read, so a slowly trickled body
        # could outlast the timeout; the whole attempt is capped here instead.
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._send_once, descriptor), self.timeout_seconds
            )
        except TimeoutError as exc:
            raise self._timeout_error(descriptor) from exc

    def _timeout_error(self, descriptor: RequestDescriptor) -> ApiUnavailableError:
        return ApiUnavailableError(
            code=TIMEOUT_ERROR_CODE,
            message=f"timeout of {self.timeout_seconds:g}s exceeded",
            url=self._url(descriptor),
        )

    def _url(self, descriptor: RequestDescriptor) -> str:
        return f"{self.base_url}{descriptor.path}"

    def _send_once(self, descriptor: RequestDescriptor) -> ApiResponse:
        url = self._url(descriptor)
        try:
            response = self.session.request(
                descriptor.method,
                url,
                params=descriptor.params,
                json=descriptor.body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise self._timeout_error(descriptor) from exc
        except requests.RequestException as exc:
            raise ApiUnavailableError(code=NETWORK_ERROR_CODE, message=str(exc), url=url) from exc

        if response.status_code >= 400:
            raise ApiResponseError(
                status_code=response.status_code,
                payload=_decode_error_body(response),
                url=url,
            )

        if not response.content:
            return ApiResponse(status_code=response.status_code, body=None)
        try:
            body = response.json()
        except ValueError as exc:
            raise ApiPayloadError(f"API did not return valid JSON for {url}") from exc
        return ApiResponse(status_code=response.status_code, body=body)


def _decode_error_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
