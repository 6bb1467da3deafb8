"""Error taxonomy for the virtual trade engine.

Everything raised on the signal path derives from ``TradingError`` and is
converted into a rejected event by ``TradeLifecycleEngine``.
"""

from __future__ import annotations


class TradingError(Exception):
    """Base class for engine errors."""


class ValidationError(TradingError):
    """Malformed or contradictory signal. Never retried."""


class PolicyRejection(TradingError):
    """Expected business outcome: below-threshold confidence or a duplicate symbol."""


class InsufficientBalance(TradingError):
    """The sized notional exceeds the available balance."""


class InsufficientFunds(TradingError):
    """Balance is zero or negative, so nothing can be sized."""


class InvalidPrice(TradingError):
    """A price that must be strictly positive was not."""


class PositionNotFound(TradingError):
    """A close referenced a position id that is not open."""


class DuplicatePosition(PolicyRejection):
    """A position is already open for the signal's symbol."""


class BelowThreshold(PolicyRejection):
    """Signal confidence is under the active strategy's minimum."""
