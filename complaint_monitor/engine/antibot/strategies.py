"""Strategies that make requests look like an ordinary browser visit."""

from __future__ import annotations

import random

import httpx

from ...config import GlobalConfig
from ...infra import UserAgentPool
from .chain import AttemptState, RequestPlan, RequestStrategy, StrategyChain

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class BrowserHeadersStrategy(RequestStrategy):
    def plan(self, state: AttemptState, plan: RequestPlan) -> None:
        cfg = state.global_config
        plan.headers.setdefault("Accept", ACCEPT_HTML)
        plan.headers.setdefault("Accept-Language", cfg.accept_language)
        plan.timeout = cfg.request_timeout


class UserAgentStrategy(RequestStrategy):
    """Pick a pooled user agent, or the configured one when the pool is empty."""

    def __init__(self, pool: UserAgentPool | None = None) -> None:
        self.pool = pool

    def plan(self, state: AttemptState, plan: RequestPlan) -> None:
        agent = self.pool.get() if self.pool is not None else None
        plan.headers.setdefault("User-Agent", agent or state.global_config.user_agent)


class DelayStrategy(RequestStrategy):
    """Sleep a random slice of ``request_delay`` before each attempt.

    The default range ``(0, 0)`` disables the pause.
    """

    def plan(self, state: AttemptState, plan: RequestPlan) -> None:
        low, high = state.global_config.request_delay
        if high > 0:
            plan.delay = random.uniform(low, high)


class RetryStrategy(RequestStrategy):
    def plan(self, state: AttemptState, plan: RequestPlan) -> None:
        state.max_attempts = state.global_config.retry_on_fail + 1

    def succeeded(self, state: AttemptState, response: httpx.Response) -> None:
        state.attempt = 1

    def failed(
        self,
        state: AttemptState,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        state.attempt += 1


def build_chain(
    global_config: GlobalConfig,
    ua_pool: UserAgentPool | None = None,
    url: str = "",
) -> tuple[AttemptState, StrategyChain]:
    state = AttemptState(global_config=global_config, url=url)
    chain = StrategyChain(
        [RetryStrategy(), UserAgentStrategy(ua_pool), BrowserHeadersStrategy(), DelayStrategy()]
    )
    return state, chain


__all__ = [
    "ACCEPT_HTML",
    "BrowserHeadersStrategy",
    "DelayStrategy",
    "RetryStrategy",
    "UserAgentStrategy",
    "build_chain",
]
