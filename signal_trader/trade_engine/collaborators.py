"""Interfaces for the persistence and notification side channels."""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Protocol

from signal_trader.config import MAX_HISTORY_ITEMS
from signal_trader.trade_engine.types import EventKind, TradeEvent

logger = logging.getLogger(__name__)

RECORDED_KINDS = (EventKind.OPENED, EventKind.CLOSED)
NOTIFIED_KINDS = (EventKind.OPENED, EventKind.REJECTED, EventKind.IGNORED)


class TradeRecorder(Protocol):
    def record_trade(self, event: TradeEvent): ...


class Notifier(Protocol):
    def notify(self, event: TradeEvent): ...


class InMemoryTradeRecorder:
    """Keeps the most recent trade events, newest last."""

    def __init__(self, max_items: int = MAX_HISTORY_ITEMS):
        self._events: Deque[TradeEvent] = deque(maxlen=max_items)

    def record_trade(self, event: TradeEvent) -> None:
        self._events.append(event)

    def events(self) -> List[TradeEvent]:
        return list(self._events)


class LoggingNotifier:
    def notify(self, event: TradeEvent) -> None:
        if event.kind == EventKind.OPENED:
            logger.info("Trade opened: %s (%s)", event.symbol, event.reasoning or "no reasoning")
        else:
            logger.info("Signal %s: %s (%s)", event.kind.value, event.symbol, event.reason)
