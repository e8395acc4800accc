from __future__ import annotations

import random

import httpx

from complaint_monitor.config import GlobalConfig
from complaint_monitor.engine.antibot import AttemptState, RequestPlan, build_chain
from complaint_monitor.engine.antibot import strategies
from complaint_monitor.infra import UserAgentPool


def build_state(**overrides) -> AttemptState:
    return AttemptState(global_config=GlobalConfig(**overrides))


def test_user_agent_strategy_uses_pool() -> None:
    plan = RequestPlan()
    strategies.UserAgentStrategy(UserAgentPool(user_agents=["UA1"])).plan(build_state(), plan)
    assert plan.headers["User-Agent"] == "UA1"


def test_user_agent_strategy_falls_back_to_configured_agent() -> None:
    plan = RequestPlan()
    strategies.UserAgentStrategy(None).plan(build_state(user_agent="Custom/1.0"), plan)
    assert plan.headers["User-Agent"] == "Custom/1.0"


def test_browser_headers_strategy_sets_timeout_and_language() -> None:
    plan = RequestPlan()
    strategies.BrowserHeadersStrategy().plan(build_state(request_timeout=7, accept_language="en-US"), plan)
    assert plan.timeout == 7
    assert plan.headers["Accept-Language"] == "en-US"
    assert plan.headers["Accept"] == strategies.ACCEPT_HTML


def test_delay_strategy_is_inactive_by_default() -> None:
    plan = RequestPlan()
    strategies.DelayStrategy().plan(build_state(), plan)
    assert plan.delay == 0.0


def test_delay_strategy_uses_configured_range(monkeypatch) -> None:
    monkeypatch.setattr(random, "uniform", lambda _a, _b: 1.25)
    plan = RequestPlan()
    strategies.DelayStrategy().plan(build_state(request_delay=(1, 2)), plan)
    assert plan.delay == 1.25


def test_chain_tracks_attempts_until_exhausted() -> None:
    state, chain = build_chain(GlobalConfig(retry_on_fail=1))
    chain.plan(state)
    assert state.max_attempts == 2
    chain.record_failure(state, httpx.Response(503), None)
    assert state.last_status == 503
    assert chain.can_retry(state)
    chain.plan(state)
    chain.record_failure(state, None, RuntimeError("reset"))
    assert state.last_status is None
    assert not chain.can_retry(state)


def test_chain_success_resets_attempts() -> None:
    state, chain = build_chain(GlobalConfig(retry_on_fail=2))
    chain.plan(state)
    chain.record_failure(state, None, None)
    chain.record_success(state, httpx.Response(200))
    assert state.attempt == 1
    assert state.last_error is None
