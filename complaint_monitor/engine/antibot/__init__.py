"""Request shaping strategies for the complaints site."""

from .chain import AttemptState, RequestPlan, RequestStrategy, StrategyChain
from .strategies import build_chain

__all__ = ["AttemptState", "RequestPlan", "RequestStrategy", "StrategyChain", "build_chain"]
