"""In-memory virtual account: balance, open positions and realized results."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional

import pandas as pd

from signal_trader.config import DEFAULT_BALANCE, MIN_BALANCE
from signal_trader.trade_engine.errors import InsufficientBalance, InvalidPrice, PositionNotFound
from signal_trader.trade_engine.types import Account, ClosedTrade, Position, realized_pnl, to_utc, utc_now
from signal_trader.utils import is_positive_number

logger = logging.getLogger(__name__)


class VirtualLedger:
    """Single-account book of record for paper trades.

    Methods are synchronous and validate before mutating, so a raised error
    leaves the ledger untouched. Callers that run concurrently must serialize
    access themselves (``TradeLifecycleEngine`` holds a lock per account).
    """

    def __init__(self, initial_balance: float = DEFAULT_BALANCE, min_balance: float = MIN_BALANCE):
        if initial_balance < 0:
            raise ValueError(f"initial balance must be non-negative, got {initial_balance}")
        self.min_balance = min_balance
        self._account = Account(balance=float(initial_balance))
        self._positions: Dict[str, Position] = {}
        self._closed: List[ClosedTrade] = []

    # Reads

    def snapshot(self, now: Optional[pd.Timestamp] = None) -> Account:
        """Copy of the account; with ``now``, daily P&L is first rolled to that UTC day."""
        if now is not None and self._account.day is not None and to_utc(now).normalize() > self._account.day:
            self._roll_day(to_utc(now))
        return self._account.snapshot()

    def positions(self) -> List[Position]:
        """Copies of the open positions, in the order they were opened."""
        return [replace(p) for p in self._positions.values()]

    def closed_trades(self) -> List[ClosedTrade]:
        return list(self._closed)

    def has_open(self, symbol: str) -> bool:
        symbol = symbol.strip().upper()
        return any(p.symbol.upper() == symbol for p in self._positions.values())

    def get(self, position_id: str) -> Position:
        try:
            return self._positions[position_id]
        except KeyError:
            raise PositionNotFound(f"no open position with id '{position_id}'") from None

    # Mutations

    def open(self, position: Position) -> None:
        account = self._account
        if position.id in self._positions:
            raise ValueError(f"position id '{position.id}' is already open")
        if position.notional > account.balance:
            raise InsufficientBalance(
                f"notional {position.notional:.2f} exceeds balance {account.balance:.2f}"
            )

        account.balance -= position.notional
        account.total_trades += 1
        account.active_positions += 1
        self._positions[position.id] = position
        logger.debug(
            "Opened %s %s size=%.8f notional=%.2f",
            position.symbol,
            position.direction.value,
            position.size,
            position.notional,
        )

    def close(
        self,
        position_id: str,
        exit_price: float,
        reason: str = "manual",
        when: Optional[pd.Timestamp] = None,
    ) -> ClosedTrade:
        position = self.get(position_id)
        if not is_positive_number(exit_price):
            raise InvalidPrice(f"exit price {exit_price} must be positive and finite")

        close_time = to_utc(when) if when is not None else utc_now()
        pnl = realized_pnl(position.direction, position.entry_price, exit_price, position.size)

        account = self._account
        self._roll_day(close_time)
        del self._positions[position_id]
        # Credit back the notional booked at open rather than size * entry
        account.balance += position.notional + pnl
        account.total_pnl += pnl
        account.daily_pnl += pnl
        account.active_positions -= 1
        account.closed_trades += 1
        if pnl > 0:
            account.winning_trades += 1
        account.win_rate = account.winning_trades / account.closed_trades

        trade = ClosedTrade(
            position_id=position.id,
            symbol=position.symbol,
            direction=position.direction,
            entry_price=position.entry_price,
            exit_price=exit_price,
            size=position.size,
            notional=position.notional,
            pnl=pnl,
            pnl_pct=pnl / position.notional * 100 if position.notional else 0.0,
            confidence=position.confidence,
            strategy=position.strategy,
            open_time=position.open_time,
            close_time=close_time,
            reason=reason,
        )
        self._closed.append(trade)
        return trade

    def mark(self, symbol: str, price: float) -> List[Position]:
        """Apply a price update to every open position in ``symbol``."""
        if not is_positive_number(price):
            raise InvalidPrice(f"mark price {price} for {symbol} must be positive and finite")
        marked = []
        for position in self._positions.values():
            if position.symbol == symbol:
                position.current_price = price
                marked.append(position)
        return marked

    def set_balance(self, amount: float) -> None:
        if amount < self.min_balance:
            raise ValueError(f"balance must be at least {self.min_balance:.2f}, got {amount:.2f}")
        self._account.balance = float(amount)

    def reset(self, balance: float) -> None:
        if balance < 0:
            raise ValueError(f"balance must be non-negative, got {balance}")
        self._account = Account(balance=float(balance))
        self._positions.clear()
        self._closed.clear()

    def _roll_day(self, when: pd.Timestamp) -> None:
        day = when.normalize()
        if self._account.day is None or day != self._account.day:
            if self._account.day is not None:
                logger.debug("Daily P&L window rolled %s -> %s", self._account.day.date(), day.date())
            self._account.day = day
            self._account.daily_pnl = 0.0
