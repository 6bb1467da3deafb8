"""Dataclasses used by the virtual trade engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import pandas as pd


class Action(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def from_action(cls, action: str) -> "Direction":
        return cls.LONG if action == Action.BUY.value else cls.SHORT


class EventKind(str, Enum):
    OPENED = "opened"
    CLOSED = "closed"
    REJECTED = "rejected"
    IGNORED = "ignored"


def utc_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


def to_utc(value: Any) -> pd.Timestamp:
    """Coerce a datetime-like value to a tz-aware UTC Timestamp."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _parse_timestamp(value: Any) -> pd.Timestamp:
    if value is None:
        return utc_now()
    try:
        ts = to_utc(value)
    except (TypeError, ValueError):
        return utc_now()
    return utc_now() if pd.isna(ts) else ts


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


@dataclass(frozen=True)
class Signal:
    symbol: str
    action: str
    confidence: float
    entry: float
    stop_loss: float
    take_profit: float
    reasoning: str = ""
    timestamp: pd.Timestamp = field(default_factory=utc_now)
    signal_id: Optional[str] = None

    @property
    def key(self) -> str:
        """Idempotency key used to drop redelivered signals."""
        if self.signal_id:
            return self.signal_id
        return f"{self.symbol}:{self.action}:{self.timestamp.isoformat()}"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Signal":
        """Build a Signal from a loosely typed feed payload.

        Accepts camelCase or snake_case keys. Nothing is validated here beyond
        type coercion: unparseable numbers become NaN and are rejected later by
        ``validate_signal``.
        """
        details = payload.get("tradingDetails") or payload.get("trading_details") or {}
        timestamp = _pick(payload, "timestamp")
        signal_id = _pick(payload, "signal_id", "signalId", "id")
        return cls(
            symbol=str(_pick(payload, "symbol", default="")).strip().upper(),
            action=str(_pick(payload, "action", "signal", default="")).strip().lower(),
            confidence=_as_float(_pick(payload, "confidence")),
            entry=_as_float(_pick(payload, "entry", "price", default=_pick(details, "entry"))),
            stop_loss=_as_float(_pick(payload, "stop_loss", "stopLoss", default=_pick(details, "stopLoss"))),
            take_profit=_as_float(_pick(payload, "take_profit", "takeProfit", default=_pick(details, "takeProfit"))),
            reasoning=str(_pick(payload, "reasoning", default=_pick(details, "reasoning", default=""))),
            timestamp=_parse_timestamp(timestamp),
            signal_id=str(signal_id) if signal_id is not None else None,
        )


@dataclass(frozen=True)
class PositionSize:
    notional: float
    units: float


@dataclass
class Position:
    id: str
    symbol: str
    direction: Direction
    entry_price: float
    size: float
    notional: float
    current_price: float
    confidence: float
    strategy: str
    open_time: pd.Timestamp
    stop_loss: float
    take_profit: float
    leverage: int = 1
    signal_key: Optional[str] = None

    @property
    def unrealized_pnl(self) -> float:
        return realized_pnl(self.direction, self.entry_price, self.current_price, self.size)

    @property
    def pnl_percent(self) -> float:
        return self.unrealized_pnl / self.notional * 100 if self.notional else 0.0


def realized_pnl(direction: Direction, entry_price: float, exit_price: float, size: float) -> float:
    if direction == Direction.LONG:
        return (exit_price - entry_price) * size
    return (entry_price - exit_price) * size


@dataclass(frozen=True)
class ClosedTrade:
    position_id: str
    symbol: str
    direction: Direction
    entry_price: float
    exit_price: float
    size: float
    notional: float
    pnl: float
    pnl_pct: float
    confidence: float
    strategy: str
    open_time: pd.Timestamp
    close_time: pd.Timestamp
    reason: str


@dataclass
class Account:
    balance: float
    total_pnl: float = 0.0
    daily_pnl: float = 0.0
    total_trades: int = 0
    win_rate: float = 0.0
    closed_trades: int = 0
    winning_trades: int = 0
    active_positions: int = 0
    day: Optional[pd.Timestamp] = None

    def snapshot(self) -> "Account":
        return replace(self)


@dataclass(frozen=True)
class TradeEvent:
    kind: EventKind
    symbol: str
    reasoning: str
    timestamp: pd.Timestamp
    reason: str = ""
    position_id: Optional[str] = None
    pnl: Optional[float] = None
    signal_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        record = asdict(self)
        record["kind"] = self.kind.value
        record["timestamp"] = self.timestamp.isoformat()
        return record
