"""Per-attempt request shaping for calls to the complaints site."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import httpx

from ...config import GlobalConfig


@dataclass
class RequestPlan:
    """Headers, timeout and pre-request pause for one attempt."""

    headers: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None
    delay: float = 0.0


@dataclass
class AttemptState:
    """What the strategies know about the request in flight."""

    global_config: GlobalConfig
    url: str = ""
    attempt: int = 1
    max_attempts: int = 1
    last_status: int | None = None
    last_error: Exception | None = None

    @property
    def exhausted(self) -> bool:
        return self.attempt > self.max_attempts


class RequestStrategy:
    """Base hooks; subclasses override only the phases they care about."""

    def plan(self, state: AttemptState, plan: RequestPlan) -> None:
        return

    def succeeded(self, state: AttemptState, response: httpx.Response) -> None:
        return

    def failed(
        self,
        state: AttemptState,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        return


class StrategyChain:
    """Run every strategy, in order, at each phase of an attempt."""

    def __init__(self, strategies: Iterable[RequestStrategy] = ()) -> None:
        self.strategies = list(strategies)

    def plan(self, state: AttemptState) -> RequestPlan:
        plan = RequestPlan()
        for strategy in self.strategies:
            strategy.plan(state, plan)
        return plan

    def record_success(self, state: AttemptState, response: httpx.Response) -> None:
        state.last_status = response.status_code
        state.last_error = None
        for strategy in self.strategies:
            strategy.succeeded(state, response)

    def record_failure(
        self,
        state: AttemptState,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        state.last_status = response.status_code if response is not None else None
        state.last_error = error
        for strategy in self.strategies:
            strategy.failed(state, response, error)

    def can_retry(self, state: AttemptState) -> bool:
        return not state.exhausted


__all__ = ["AttemptState", "RequestPlan", "RequestStrategy", "StrategyChain"]
