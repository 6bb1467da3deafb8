"""Performance statistics over closed paper trades."""

from __future__ import annotations

from dataclasses import asdict
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import numpy as np
import pandas as pd

from signal_trader.config import DEFAULT_TIME_RANGE, TIME_RANGES

TRADE_COLUMNS = [
    "position_id",
    "symbol",
    "direction",
    "entry_price",
    "exit_price",
    "size",
    "notional",
    "pnl",
    "pnl_pct",
    "confidence",
    "strategy",
    "open_time",
    "close_time",
    "reason",
]


def trades_to_frame(trades: Iterable[Any]) -> pd.DataFrame:
    """Flatten ClosedTrade records into a DataFrame ordered by close time."""
    records = []
    for trade in trades:
        record = asdict(trade)
        records.append({k: (v.value if isinstance(v, Enum) else v) for k, v in record.items()})
    if not records:
        return pd.DataFrame(columns=TRADE_COLUMNS)
    df = pd.DataFrame.from_records(records)
    df.sort_values("close_time", inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)
    return df


def compute_win_rate(trades: pd.DataFrame) -> float:
    if trades.empty:
        return 0.0
    return float((trades["pnl"] > 0).mean())


def compute_profit_factor(trades: pd.DataFrame) -> float:
    """Gross profit over gross loss (inf with no losing trades, nan with no trades)."""
    if trades.empty:
        return float("nan")
    gross_profit = trades.loc[trades["pnl"] > 0, "pnl"].sum()
    gross_loss = -trades.loc[trades["pnl"] < 0, "pnl"].sum()
    if gross_loss == 0:
        return float("inf") if gross_profit > 0 else float("nan")
    return float(gross_profit / gross_loss)


def compute_equity_curve(trades: pd.DataFrame, initial_balance: float) -> pd.Series:
    """Realized equity after each close, starting from ``initial_balance``."""
    if trades.empty:
        return pd.Series([initial_balance], dtype=float)
    equity = initial_balance + trades["pnl"].cumsum()
    equity.index = pd.DatetimeIndex(trades["close_time"])
    return equity.astype(float)


def compute_max_drawdown(equity: pd.Series) -> float:
    if equity.empty:
        return float("nan")
    running_max = equity.cummax()
    drawdown = equity / running_max - 1
    return float(drawdown.min())


def summarize_trades(trades: Iterable[Any], initial_balance: float) -> Dict[str, Any]:
    df = trades if isinstance(trades, pd.DataFrame) else trades_to_frame(trades)
    equity = compute_equity_curve(df, initial_balance)
    pnl = df["pnl"].astype(float) if not df.empty else pd.Series(dtype=float)
    return {
        "trades": int(len(df)),
        "winning_trades": int((pnl > 0).sum()),
        "win_rate": compute_win_rate(df),
        "total_pnl": float(pnl.sum()),
        "avg_pnl": float(pnl.mean()) if len(pnl) else 0.0,
        "best_trade": float(pnl.max()) if len(pnl) else 0.0,
        "worst_trade": float(pnl.min()) if len(pnl) else 0.0,
        "pnl_std": float(np.std(pnl.to_numpy(), ddof=1)) if len(pnl) > 1 else 0.0,
        "profit_factor": compute_profit_factor(df),
        "max_dd": compute_max_drawdown(equity),
        "final_equity": float(equity.iloc[-1]),
    }


def summarize_period(
    trades: Iterable[Any],
    time_range: str = DEFAULT_TIME_RANGE,
    now: Optional[pd.Timestamp] = None,
    initial_capital: float = 100000.0,
    open_positions: int = 0,
) -> Dict[str, Any]:
    """Accuracy and return for trades closed inside one of the TIME_RANGES windows.

    ``period_return`` is total P&L over ``initial_capital`` in percent, rounded
    to one decimal like ``accuracy``.
    """
    if time_range not in TIME_RANGES:
        raise ValueError(f"Unknown time range '{time_range}' (expected one of: {', '.join(TIME_RANGES)})")

    df = trades if isinstance(trades, pd.DataFrame) else trades_to_frame(trades)
    end = now if now is not None else pd.Timestamp.now(tz="UTC")
    start = end - pd.Timedelta(days=TIME_RANGES[time_range])
    if not df.empty:
        close_times = pd.to_datetime(df["close_time"], utc=True)
        df = df[(close_times >= start) & (close_times <= end)]

    total = int(len(df))
    wins = int((df["pnl"] > 0).sum()) if total else 0
    total_pnl = float(df["pnl"].sum()) if total else 0.0
    accuracy = wins / total * 100 if total else 0.0
    return {
        "time_range": time_range,
        "start": start,
        "end": end,
        "total_trades": total,
        "winning_trades": wins,
        "accuracy": round(accuracy, 1),
        "active_signals": open_positions,
        "total_pnl": total_pnl,
        "period_return": round(total_pnl / initial_capital * 100, 1),
    }
