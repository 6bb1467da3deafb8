import pandas as pd
import pytest

from conftest import FIXED_NOW
from signal_trader.trade_engine.errors import InsufficientBalance, InvalidPrice, PositionNotFound
from signal_trader.trade_engine.ledger import VirtualLedger
from signal_trader.trade_engine.types import Direction, Position


def make_position(pid="p1", symbol="BTC", direction=Direction.LONG, entry=50000.0, notional=20.0, **extra) -> Position:
    fields = dict(
        id=pid,
        symbol=symbol,
        direction=direction,
        entry_price=entry,
        size=notional / entry,
        notional=notional,
        current_price=entry,
        confidence=96.0,
        strategy="conservative",
        open_time=FIXED_NOW,
        stop_loss=entry * 0.95 if direction == Direction.LONG else entry * 1.05,
        take_profit=entry * 1.1 if direction == Direction.LONG else entry * 0.9,
    )
    fields.update(extra)
    return Position(**fields)


def test_open_debits_notional_and_counts_trade():
    ledger = VirtualLedger(1000.0)
    ledger.open(make_position())

    account = ledger.snapshot()
    assert account.balance == pytest.approx(980.0)
    assert account.total_trades == 1
    assert account.active_positions == 1
    assert ledger.has_open("BTC")
    assert [p.id for p in ledger.positions()] == ["p1"]


def test_open_over_balance_leaves_ledger_untouched():
    ledger = VirtualLedger(1000.0)
    with pytest.raises(InsufficientBalance):
        ledger.open(make_position(notional=1000.01))
    account = ledger.snapshot()
    assert account.balance == 1000.0
    assert account.total_trades == 0
    assert ledger.positions() == []


def test_long_close_above_entry_credits_notional_plus_pnl():
    ledger = VirtualLedger(1000.0)
    ledger.open(make_position())
    trade = ledger.close("p1", 52000.0, when=FIXED_NOW)

    assert trade.pnl == pytest.approx(0.8)
    assert trade.pnl_pct == pytest.approx(4.0)
    account = ledger.snapshot()
    assert account.balance == pytest.approx(1000.8)
    assert account.total_pnl == pytest.approx(0.8)
    assert account.win_rate == 1.0
    assert account.active_positions == 0
    assert not ledger.has_open("BTC")


def test_short_close_above_entry_loses():
    ledger = VirtualLedger(1000.0)
    ledger.open(make_position(direction=Direction.SHORT))
    trade = ledger.close("p1", 52000.0)
    assert trade.pnl < 0
    assert ledger.snapshot().win_rate == 0.0


def test_win_rate_is_wins_over_closed_trades():
    ledger = VirtualLedger(1000.0)
    for pid, symbol in [("a", "BTC"), ("b", "ETH"), ("c", "SOL")]:
        ledger.open(make_position(pid=pid, symbol=symbol, entry=100.0))
    ledger.close("a", 110.0)
    ledger.close("b", 90.0)
    ledger.close("c", 101.0)

    account = ledger.snapshot()
    assert account.closed_trades == 3
    assert account.winning_trades == 2
    assert account.win_rate == pytest.approx(2 / 3)


def test_balance_reconciles_after_many_round_trips():
    ledger = VirtualLedger(1000.0)
    exits = [101.5, 97.25, 120.0, 88.8, 100.0, 133.3, 64.2, 100.01]
    for i, exit_price in enumerate(exits):
        direction = Direction.LONG if i % 2 == 0 else Direction.SHORT
        notional = ledger.snapshot().balance * 0.02
        ledger.open(make_position(pid=str(i), entry=100.0, notional=notional, direction=direction))
        ledger.close(str(i), exit_price)

    total = sum(t.pnl for t in ledger.closed_trades())
    assert ledger.snapshot().balance == pytest.approx(1000.0 + total, abs=1e-9)
    assert ledger.snapshot().total_pnl == pytest.approx(total, abs=1e-9)


def test_close_unknown_or_bad_price():
    ledger = VirtualLedger(1000.0)
    with pytest.raises(PositionNotFound):
        ledger.close("missing", 100.0)
    ledger.open(make_position())
    with pytest.raises(InvalidPrice):
        ledger.close("p1", 0.0)
    with pytest.raises(InvalidPrice):
        ledger.close("p1", float("inf"))
    with pytest.raises(InvalidPrice):
        ledger.mark("BTC", float("inf"))
    assert ledger.snapshot().balance == pytest.approx(980.0)
    assert ledger.has_open("BTC")


def test_daily_pnl_resets_on_new_day():
    ledger = VirtualLedger(1000.0)
    ledger.open(make_position(pid="a", entry=100.0))
    ledger.open(make_position(pid="b", symbol="ETH", entry=100.0))
    ledger.close("a", 110.0, when=pd.Timestamp("2024-03-01 10:00", tz="UTC"))
    assert ledger.snapshot().daily_pnl == pytest.approx(2.0)

    ledger.close("b", 105.0, when=pd.Timestamp("2024-03-02 09:00", tz="UTC"))
    account = ledger.snapshot()
    assert account.daily_pnl == pytest.approx(1.0)
    assert account.total_pnl == pytest.approx(3.0)

    assert ledger.snapshot(now=pd.Timestamp("2024-03-03 00:01", tz="UTC")).daily_pnl == 0.0
    assert ledger.snapshot().day == pd.Timestamp("2024-03-03", tz="UTC")


def test_mark_updates_unrealized_pnl():
    ledger = VirtualLedger(1000.0)
    ledger.open(make_position(entry=100.0))
    ledger.mark("BTC", 105.0)
    (position,) = ledger.positions()
    assert position.current_price == 105.0
    assert position.unrealized_pnl == pytest.approx(1.0)
    assert position.pnl_percent == pytest.approx(5.0)


def test_set_balance_enforces_minimum_and_reset_clears_state():
    ledger = VirtualLedger(1000.0, min_balance=1000.0)
    with pytest.raises(ValueError):
        ledger.set_balance(500.0)
    ledger.set_balance(2500.0)
    assert ledger.snapshot().balance == 2500.0

    ledger.open(make_position())
    ledger.reset(1000.0)
    assert ledger.positions() == []
    assert ledger.snapshot().total_trades == 0
