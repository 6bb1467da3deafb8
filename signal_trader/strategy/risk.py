"""Confidence-tiered risk policies for admitted signals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from signal_trader.strategy.config import Strategy, get_profile

BUY = "buy"

BELOW_THRESHOLD = "confidence below strategy threshold"
STOP_LOSS_REQUIRED_BELOW = 90.0


@dataclass(frozen=True)
class RiskPolicy:
    strategy: str
    min_confidence: float
    position_ratio: float
    safety_factor: int
    risk_level: str
    leverage: int
    requires_stop_loss: bool
    can_add_position: bool
    liquidation_safety: int
    first_take_profit: Optional[float] = None
    add_position_range: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class Rejected:
    reason: str


@dataclass(frozen=True)
class _Tier:
    min_confidence: float
    position_ratio: float
    safety_factor: int
    risk_level: str
    leverage: int
    liquidation_safety: int


# Evaluated top-down, first match wins
_TIERS: Tuple[_Tier, ...] = (
    _Tier(95.0, 25.0, 9, "low", 20, 5),
    _Tier(90.0, 20.0, 8, "low", 15, 4),
    _Tier(85.0, 15.0, 7, "medium", 10, 3),
)
_FLOOR_TIER = _Tier(0.0, 8.0, 5, "high", 10, 3)


def _pick_tier(confidence: float) -> _Tier:
    for tier in _TIERS:
        if confidence >= tier.min_confidence:
            return tier
    return _FLOOR_TIER


def _first_take_profit(entry: float, action: str) -> float:
    return float(round(entry * (1.05 if action == BUY else 0.95)))


def _add_position_range(entry: float, action: str) -> Tuple[float, float]:
    if action == BUY:
        return float(round(entry * 0.97)), float(round(entry * 0.94))
    return float(round(entry * 1.03)), float(round(entry * 1.06))


def resolve_risk_policy(
    strategy: Union[str, Strategy],
    confidence: float,
    entry: Optional[float] = None,
    action: Optional[str] = None,
) -> Union[RiskPolicy, Rejected]:
    """Admit a signal under ``strategy`` and describe how aggressively to trade it.

    Returns Rejected when the confidence is under the strategy's minimum. The
    tier table applies the same way to every strategy once a signal is admitted.
    Entry-dependent fields (first take-profit, add-position range) are only
    filled when both ``entry`` and ``action`` are supplied.
    """
    profile = get_profile(strategy)
    if confidence < profile.min_confidence:
        return Rejected(BELOW_THRESHOLD)

    tier = _pick_tier(confidence)
    requires_stop_loss = confidence < STOP_LOSS_REQUIRED_BELOW
    can_add = not requires_stop_loss

    first_tp = None
    add_range = None
    if entry is not None and action is not None:
        first_tp = _first_take_profit(entry, action)
        add_range = _add_position_range(entry, action) if can_add else None

    return RiskPolicy(
        strategy=profile.strategy.value,
        min_confidence=profile.min_confidence,
        position_ratio=tier.position_ratio,
        safety_factor=tier.safety_factor,
        risk_level=tier.risk_level,
        leverage=tier.leverage,
        requires_stop_loss=requires_stop_loss,
        can_add_position=can_add,
        liquidation_safety=tier.liquidation_safety,
        first_take_profit=first_tp,
        add_position_range=add_range,
    )


class RiskProfileResolver:
    """Resolver bound to a default strategy; the engine swaps strategies via ``strategy``."""

    def __init__(self, strategy: Union[str, Strategy] = Strategy.CONSERVATIVE):
        self.strategy = get_profile(strategy).strategy

    def resolve(self, confidence: float, entry: Optional[float] = None, action: Optional[str] = None):
        return resolve_risk_policy(self.strategy, confidence, entry=entry, action=action)
