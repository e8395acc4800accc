"""HTTP fetching with request-strategy integration and failure classification."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict

import httpx
import structlog

from ..config import GlobalConfig
from ..errors import BlockedError, FetchError, NetworkError, NotFoundError, UnknownFetchError
from ..infra import UserAgentPool
from .antibot import build_chain

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
MAX_DELAY_SECONDS = 5.0


@dataclass(slots=True)
class FetchRequest:
    """Input for the fetcher."""

    url: str
    method: str = "GET"
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    timeout: float | None = None


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Issue requests to the complaints site and classify what goes wrong.

    404 becomes :class:`NotFoundError`, 403 :class:`BlockedError`, transport
    failures :class:`NetworkError`; every other non-2xx outcome is an
    :class:`UnknownFetchError` carrying the status code. Transport errors,
    429 and 5xx are retried up to ``retry_on_fail`` times.
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        ua_pool: UserAgentPool | None = None,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.global_config = global_config
        self.ua_pool = ua_pool
        self.logger = logger or structlog.get_logger("complaint_monitor.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=global_config.request_timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch(self, request: FetchRequest) -> FetchResponse:
        state, chain = build_chain(self.global_config, self.ua_pool, request.url)
        last_error: FetchError | None = None
        while chain.can_retry(state):
            plan = chain.plan(state)
            headers = {**(request.headers or {}), **plan.headers}
            if plan.delay:
                time.sleep(min(plan.delay, MAX_DELAY_SECONDS))
            try:
                response = self._client.request(
                    request.method,
                    request.url,
                    params=request.params,
                    headers=headers,
                    timeout=request.timeout or plan.timeout or self.global_config.request_timeout,
                )
            except httpx.TransportError as exc:
                self.logger.warning(
                    "fetch_network_error", url=request.url, attempt=state.attempt, error=str(exc)
                )
                chain.record_failure(state, None, exc)
                last_error = NetworkError(f"No response from {request.url}: {exc}", url=request.url)
                last_error.__cause__ = exc
                continue
            except httpx.HTTPError as exc:
                raise UnknownFetchError(f"Request to {request.url} failed: {exc}", url=request.url) from exc

            if response.status_code in RETRYABLE_STATUS:
                self.logger.warning(
                    "fetch_retryable_status",
                    url=request.url,
                    attempt=state.attempt,
                    status=response.status_code,
                )
                chain.record_failure(state, response, None)
                last_error = self._classify(response, request.url)
                continue
            if not response.is_success:
                raise self._classify(response, request.url)
            chain.record_success(state, response)
            return FetchResponse(
                url=str(response.url),
                status_code=response.status_code,
                text=response.text,
                headers=dict(response.headers),
                raw=response,
            )
        raise last_error or UnknownFetchError(f"Fetch failed: {request.url}", url=request.url)

    # ------------------------------------------------------------------
    @staticmethod
    def _classify(response: httpx.Response, url: str) -> FetchError:
        status = response.status_code
        if status == 404:
            return NotFoundError(f"Company page not found: {url}", status_code=status, url=url)
        if status == 403:
            return BlockedError(f"Access blocked by upstream: {url}", status_code=status, url=url)
        return UnknownFetchError(f"Unexpected status {status} from {url}", status_code=status, url=url)


__all__ = ["Fetcher", "FetchRequest", "FetchResponse", "RETRYABLE_STATUS"]
