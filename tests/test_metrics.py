import math

import pandas as pd
import pytest

from signal_trader.strategy.metrics import (
    compute_equity_curve,
    compute_max_drawdown,
    compute_profit_factor,
    compute_win_rate,
    summarize_period,
    summarize_trades,
    trades_to_frame,
)
from signal_trader.trade_engine.types import ClosedTrade, Direction


def make_trade(pnl: float, close_time: str, symbol: str = "BTC") -> ClosedTrade:
    ts = pd.Timestamp(close_time, tz="UTC")
    return ClosedTrade(
        position_id=f"{symbol}-{close_time}",
        symbol=symbol,
        direction=Direction.LONG,
        entry_price=100.0,
        exit_price=100.0 + pnl * 5,
        size=0.2,
        notional=20.0,
        pnl=pnl,
        pnl_pct=pnl / 20.0 * 100,
        confidence=92.0,
        strategy="conservative",
        open_time=ts - pd.Timedelta(hours=4),
        close_time=ts,
        reason="manual",
    )


def sample_trades():
    return [
        make_trade(4.0, "2024-03-01"),
        make_trade(-2.0, "2024-03-05"),
        make_trade(1.0, "2024-02-01"),
        make_trade(-3.0, "2023-06-01"),
    ]


def test_trades_to_frame_orders_by_close_time():
    df = trades_to_frame(sample_trades())
    assert list(df["pnl"]) == [-3.0, 1.0, 4.0, -2.0]
    assert df["direction"].iloc[0] == "long"
    assert trades_to_frame([]).empty


def test_win_rate_and_profit_factor():
    df = trades_to_frame(sample_trades())
    assert compute_win_rate(df) == pytest.approx(0.5)
    assert compute_profit_factor(df) == pytest.approx(5.0 / 5.0)
    assert compute_profit_factor(trades_to_frame([make_trade(1.0, "2024-01-01")])) == math.inf
    assert math.isnan(compute_profit_factor(trades_to_frame([])))


def test_equity_curve_and_drawdown():
    df = trades_to_frame(sample_trades())
    equity = compute_equity_curve(df, 100.0)
    assert list(equity) == [97.0, 98.0, 102.0, 100.0]
    assert compute_max_drawdown(equity) == pytest.approx(100.0 / 102.0 - 1)


def test_summarize_trades():
    summary = summarize_trades(sample_trades(), initial_balance=1000.0)
    assert summary["trades"] == 4
    assert summary["winning_trades"] == 2
    assert summary["total_pnl"] == pytest.approx(0.0)
    assert summary["best_trade"] == 4.0
    assert summary["worst_trade"] == -3.0
    assert summary["final_equity"] == pytest.approx(1000.0)

    empty = summarize_trades([], initial_balance=1000.0)
    assert empty["trades"] == 0
    assert empty["final_equity"] == 1000.0


def test_summarize_period_filters_window():
    now = pd.Timestamp("2024-03-10", tz="UTC")
    week = summarize_period(sample_trades(), "7D", now=now, initial_capital=1000.0)
    assert week["total_trades"] == 1
    assert week["total_pnl"] == -2.0

    month = summarize_period(sample_trades(), "1M", now=now, initial_capital=1000.0, open_positions=2)
    assert month["total_trades"] == 2
    assert month["winning_trades"] == 1
    assert month["accuracy"] == pytest.approx(50.0)
    assert month["period_return"] == pytest.approx(0.2)
    assert month["active_signals"] == 2

    year = summarize_period(sample_trades(), "1Y", now=now)
    assert year["total_trades"] == 4

    with pytest.raises(ValueError):
        summarize_period(sample_trades(), "2W", now=now)
