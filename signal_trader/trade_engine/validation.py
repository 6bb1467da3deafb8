"""Structural and range checks applied to incoming signals."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

from signal_trader.trade_engine.types import Action, Signal
from signal_trader.utils import is_positive_number


@dataclass(frozen=True)
class Valid:
    signal: Signal


@dataclass(frozen=True)
class Invalid:
    reason: str


ValidationResult = Union[Valid, Invalid]


def _check_ordering(signal: Signal) -> str:
    if signal.action == Action.BUY.value:
        if not signal.stop_loss < signal.entry < signal.take_profit:
            return "buy signal requires stop_loss < entry < take_profit"
    elif not signal.take_profit < signal.entry < signal.stop_loss:
        return "sell signal requires take_profit < entry < stop_loss"
    return ""


def validate_signal(signal: Signal) -> ValidationResult:
    """Return Valid(signal) or Invalid(reason). Never raises."""
    if not isinstance(signal.symbol, str) or not signal.symbol.strip():
        return Invalid("symbol is empty")
    if signal.action not in {a.value for a in Action}:
        return Invalid(f"unknown action '{signal.action}'")

    confidence = signal.confidence
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
        return Invalid("confidence is not a number")
    if not 0 < confidence <= 100:
        return Invalid(f"confidence {confidence} outside (0, 100]")

    for label in ("entry", "stop_loss", "take_profit"):
        if not is_positive_number(getattr(signal, label)):
            return Invalid(f"{label} must be a positive price")

    reason = _check_ordering(signal)
    if reason:
        return Invalid(reason)
    return Valid(signal)


class SignalValidator:
    """Callable-object wrapper so the engine can take a pluggable validator."""

    def validate(self, signal: Signal) -> ValidationResult:
        return validate_signal(signal)
