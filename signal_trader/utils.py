from __future__ import annotations

import logging
import math

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line entrypoints."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def is_positive_number(value: object) -> bool:
    """True for finite numbers strictly above zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def clamp_risk_percentage(pct: float) -> float:
    """Clamp a per-trade risk percentage to a sane range."""
    return max(0.01, min(pct, 100.0))
