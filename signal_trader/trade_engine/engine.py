"""Signal-to-trade lifecycle for one paper-trading account."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from typing import Callable, Iterable, List, Mapping, Optional, Set, Tuple

import pandas as pd

from signal_trader.strategy.metrics import trades_to_frame
from signal_trader.strategy.risk import Rejected, RiskPolicy, RiskProfileResolver
from signal_trader.trade_engine.collaborators import (
    NOTIFIED_KINDS,
    RECORDED_KINDS,
    InMemoryTradeRecorder,
    LoggingNotifier,
    Notifier,
    TradeRecorder,
)
from signal_trader.trade_engine.config import TradeEngineConfig
from signal_trader.trade_engine.errors import (
    BelowThreshold,
    DuplicatePosition,
    InsufficientBalance,
    InsufficientFunds,
    InvalidPrice,
    PolicyRejection,
    PositionNotFound,
    TradingError,
    ValidationError,
)
from signal_trader.trade_engine.events import EventChannel
from signal_trader.trade_engine.ledger import VirtualLedger
from signal_trader.trade_engine.rules import evaluate_exit
from signal_trader.trade_engine.sizing import size_position
from signal_trader.trade_engine.types import (
    Account,
    ClosedTrade,
    Direction,
    EventKind,
    Position,
    Signal,
    TradeEvent,
    utc_now,
)
from signal_trader.trade_engine.validation import Invalid, SignalValidator

logger = logging.getLogger(__name__)

DUPLICATE_POSITION = "duplicate position"
INSUFFICIENT_BALANCE = "insufficient balance"
INSUFFICIENT_FUNDS = "insufficient funds"
INVALID_PRICE = "invalid price"
POSITION_NOT_FOUND = "position not found"

_REASONS = {
    InsufficientBalance: INSUFFICIENT_BALANCE,
    InsufficientFunds: INSUFFICIENT_FUNDS,
    InvalidPrice: INVALID_PRICE,
    PositionNotFound: POSITION_NOT_FOUND,
}


class TradeLifecycleEngine:
    """Turn incoming signals into simulated positions for a single account.

    Every operation that touches the ledger runs under one ``asyncio.Lock``,
    so signals for the same account are handled one at a time. Outcomes are
    reported through ``events`` rather than return values or exceptions, and
    are published only after the lock is released:

    * ``opened`` when a position is booked,
    * ``ignored`` when confidence is below the active strategy's minimum,
    * ``rejected`` for validation failures, duplicate symbols and funding problems,
    * ``closed`` when a position is closed.

    Admission is at-most-once: a rejected signal is never retried and a
    redelivered signal (same ``Signal.key``) is dropped silently.
    """

    def __init__(
        self,
        config: Optional[TradeEngineConfig] = None,
        recorder: Optional[TradeRecorder] = None,
        notifier: Optional[Notifier] = None,
        validator: Optional[SignalValidator] = None,
        clock: Callable[[], pd.Timestamp] = utc_now,
        account_id: str = "default",
    ):
        self.config = config or TradeEngineConfig()
        self.account_id = account_id
        self.ledger = VirtualLedger(self.config.initial_balance, min_balance=self.config.min_balance)
        self.resolver = RiskProfileResolver(self.config.strategy)
        self.validator = validator or SignalValidator()
        self.clock = clock

        self.events = EventChannel()
        self.recorder = recorder if recorder is not None else InMemoryTradeRecorder(self.config.max_history_items)
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.events.subscribe(self.recorder.record_trade, kinds=RECORDED_KINDS)
        self.events.subscribe(self.notifier.notify, kinds=NOTIFIED_KINDS)

        self._lock = asyncio.Lock()
        self._seen: "OrderedDict[str, None]" = OrderedDict()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def strategy(self) -> str:
        return self.resolver.strategy.value

    # Signal admission

    async def submit_signal(self, signal: Signal) -> None:
        """Process one signal to a terminal state. Never raises for trading outcomes."""
        async with self._lock:
            event = self._process(signal)
        if event is not None:
            self._publish([event])

    def dispatch(self, signal: Signal) -> asyncio.Task:
        """Schedule ``submit_signal`` without waiting for it; see ``drain``."""
        task = asyncio.get_running_loop().create_task(self.submit_signal(signal))
        self._track(task)
        return task

    async def drain(self) -> None:
        """Wait for every dispatched signal and scheduled event consumer to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _process(self, signal: Signal) -> Optional[TradeEvent]:
        key = signal.key
        if key in self._seen:
            logger.debug("[%s] Dropping redelivered signal %s", self.account_id, key)
            return None
        self._remember(key)

        try:
            position, policy = self._admit(signal)
        except BelowThreshold as exc:
            logger.info(
                "[%s] Ignoring %s %s: confidence %.1f under %s minimum",
                self.account_id,
                signal.symbol,
                signal.action,
                signal.confidence,
                self.strategy,
            )
            return self._event(EventKind.IGNORED, signal, reason=str(exc))
        except (ValidationError, PolicyRejection) as exc:
            logger.info("[%s] Rejected %s signal: %s", self.account_id, signal.symbol or "<empty>", exc)
            return self._event(EventKind.REJECTED, signal, reason=str(exc))
        except TradingError as exc:
            logger.info("[%s] Rejected %s signal: %s", self.account_id, signal.symbol, exc)
            return self._event(EventKind.REJECTED, signal, reason=_REASONS.get(type(exc), str(exc)))

        logger.info(
            "[%s] Opened %s %s size=%.8f @ %.2f (confidence %.1f, %s risk, %dx, ratio %.0f%%)",
            self.account_id,
            position.direction.value,
            position.symbol,
            position.size,
            position.entry_price,
            position.confidence,
            policy.risk_level,
            policy.leverage,
            policy.position_ratio,
        )
        return self._event(EventKind.OPENED, signal, position_id=position.id)

    def _admit(self, signal: Signal) -> Tuple[Position, RiskPolicy]:
        """Walk a signal through validation, policy, sizing and booking; raises on any rejection."""
        symbol = signal.symbol.strip().upper()
        if symbol and self.ledger.has_open(symbol):
            raise DuplicatePosition(DUPLICATE_POSITION)

        result = self.validator.validate(signal)
        if isinstance(result, Invalid):
            raise ValidationError(result.reason)

        policy = self.resolver.resolve(signal.confidence, entry=signal.entry, action=signal.action)
        if isinstance(policy, Rejected):
            raise BelowThreshold(policy.reason)

        sized = size_position(self.ledger.snapshot().balance, self.config.risk_percentage, signal.entry)
        position = Position(
            id=uuid.uuid4().hex,
            symbol=symbol,
            direction=Direction.from_action(signal.action),
            entry_price=signal.entry,
            size=sized.units,
            notional=sized.notional,
            current_price=signal.entry,
            confidence=signal.confidence,
            strategy=policy.strategy,
            open_time=self.clock(),
            stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
            leverage=policy.leverage,
            signal_key=signal.key,
        )
        self.ledger.open(position)
        return position, policy

    def _remember(self, key: str) -> None:
        self._seen[key] = None
        while len(self._seen) > self.config.max_seen_signals:
            self._seen.popitem(last=False)

    def _event(self, kind: EventKind, signal: Signal, reason: str = "", position_id: Optional[str] = None) -> TradeEvent:
        return TradeEvent(
            kind=kind,
            symbol=signal.symbol,
            reasoning=signal.reasoning,
            timestamp=self.clock(),
            reason=reason,
            position_id=position_id,
            signal_key=signal.key,
        )

    def _publish(self, events: Iterable[TradeEvent]) -> None:
        for event in events:
            for task in self.events.publish(event):
                self._track(task)

    def _track(self, task: asyncio.Future) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Position management

    async def close_position(self, position_id: str, exit_price: float, reason: str = "manual") -> Optional[ClosedTrade]:
        """Close an open position at ``exit_price``; returns None if it could not be closed."""
        async with self._lock:
            trade, event = self._close(position_id, exit_price, reason)
        self._publish([event])
        return trade

    def _close(self, position_id: str, exit_price: float, reason: str) -> Tuple[Optional[ClosedTrade], TradeEvent]:
        now = self.clock()
        try:
            trade = self.ledger.close(position_id, exit_price, reason=reason, when=now)
        except (PositionNotFound, InvalidPrice) as exc:
            logger.error("[%s] Cannot close position %s: %s", self.account_id, position_id, exc)
            rejected = TradeEvent(
                kind=EventKind.REJECTED,
                symbol="",
                reasoning="",
                timestamp=now,
                reason=_REASONS[type(exc)],
                position_id=position_id,
            )
            return None, rejected

        logger.info(
            "[%s] Closed %s %s @ %.2f (%s): pnl=%.4f",
            self.account_id,
            trade.direction.value,
            trade.symbol,
            trade.exit_price,
            trade.reason,
            trade.pnl,
        )
        closed = TradeEvent(
            kind=EventKind.CLOSED,
            symbol=trade.symbol,
            reasoning=f"closed at {exit_price}",
            timestamp=now,
            reason=trade.reason,
            position_id=trade.position_id,
            pnl=trade.pnl,
        )
        return trade, closed

    async def update_prices(self, prices: Mapping[str, float], auto_close: bool = False) -> List[ClosedTrade]:
        """Mark open positions to ``prices``; with ``auto_close`` also exit on stop-loss/take-profit hits."""
        closed: List[ClosedTrade] = []
        events: List[TradeEvent] = []
        async with self._lock:
            for symbol, price in prices.items():
                try:
                    marked = self.ledger.mark(symbol, price)
                except InvalidPrice as exc:
                    logger.warning("[%s] Skipping price update: %s", self.account_id, exc)
                    continue
                if not auto_close:
                    continue
                for position in marked:
                    exit_reason = evaluate_exit(position, price)
                    if exit_reason:
                        trade, event = self._close(position.id, price, exit_reason)
                        events.append(event)
                        if trade is not None:
                            closed.append(trade)
        self._publish(events)
        return closed

    # Account management

    async def set_strategy(self, strategy: str) -> None:
        async with self._lock:
            self.resolver = RiskProfileResolver(strategy)
            logger.info("[%s] Strategy set to %s", self.account_id, self.strategy)

    async def update_balance(self, amount: float) -> bool:
        async with self._lock:
            try:
                self.ledger.set_balance(amount)
            except ValueError as exc:
                logger.warning("[%s] Balance update refused: %s", self.account_id, exc)
                return False
        logger.info("[%s] Balance set to %.2f", self.account_id, amount)
        return True

    async def reset_account(self, balance: Optional[float] = None) -> None:
        async with self._lock:
            self.ledger.reset(self.config.initial_balance if balance is None else balance)
            self._seen.clear()
        logger.info("[%s] Account reset", self.account_id)

    # Read-only views

    def get_account_snapshot(self) -> Account:
        return self.ledger.snapshot(now=self.clock())

    def get_open_positions(self) -> List[Position]:
        return self.ledger.positions()

    def trade_history(self) -> pd.DataFrame:
        return trades_to_frame(self.ledger.closed_trades())
