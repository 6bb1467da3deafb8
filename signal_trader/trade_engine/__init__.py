"""Virtual trade engine: signal admission, position sizing and the paper ledger."""

from signal_trader.trade_engine.config import TradeEngineConfig
from signal_trader.trade_engine.engine import TradeLifecycleEngine
from signal_trader.trade_engine.ledger import VirtualLedger
from signal_trader.trade_engine.registry import EngineRegistry
from signal_trader.trade_engine.types import Account, ClosedTrade, EventKind, Position, Signal, TradeEvent

__all__ = [
    "TradeLifecycleEngine",
    "TradeEngineConfig",
    "VirtualLedger",
    "EngineRegistry",
    "Account",
    "ClosedTrade",
    "EventKind",
    "Position",
    "Signal",
    "TradeEvent",
]
