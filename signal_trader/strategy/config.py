"""Strategy configuration objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union


class Strategy(str, Enum):
    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"


@dataclass(frozen=True)
class StrategyProfile:
    strategy: Strategy
    name: str
    description: str
    min_confidence: float


STRATEGY_PROFILES: Dict[Strategy, StrategyProfile] = {
    Strategy.CONSERVATIVE: StrategyProfile(
        strategy=Strategy.CONSERVATIVE,
        name="Conservative",
        description="Trade only when modeled win probability is at least 85%.",
        min_confidence=85.0,
    ),
    Strategy.AGGRESSIVE: StrategyProfile(
        strategy=Strategy.AGGRESSIVE,
        name="Aggressive",
        description="Trade from 70% modeled win probability to catch more setups.",
        min_confidence=70.0,
    ),
}


def parse_strategy(value: Union[str, Strategy]) -> Strategy:
    """Return the Strategy for a name, raising ValueError on unknown names."""
    if isinstance(value, Strategy):
        return value
    try:
        return Strategy(str(value).strip().lower())
    except ValueError:
        names = ", ".join(s.value for s in Strategy)
        raise ValueError(f"Unknown strategy '{value}' (expected one of: {names})") from None


def get_profile(strategy: Union[str, Strategy]) -> StrategyProfile:
    return STRATEGY_PROFILES[parse_strategy(strategy)]
