"""Public Python API for building engines and replaying recorded signals."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Dict, List, Optional

import pandas as pd

from signal_trader.data.loader import signals_from_frame
from signal_trader.strategy.metrics import summarize_trades
from signal_trader.trade_engine import TradeEngineConfig, TradeEvent, TradeLifecycleEngine
from signal_trader.trade_engine.types import to_utc, utc_now


def build_engine(config: Optional[TradeEngineConfig] = None, **overrides: Any) -> TradeLifecycleEngine:
    """Create an engine from ``config`` with keyword overrides, e.g. ``strategy="aggressive"``."""
    cfg = replace(config or TradeEngineConfig(), **overrides)
    return TradeLifecycleEngine(cfg)


class ReplayClock:
    """Clock that reports the timestamp of the step being replayed."""

    def __init__(self) -> None:
        self.now = utc_now()

    def __call__(self) -> pd.Timestamp:
        return self.now


async def _replay(
    engine: TradeLifecycleEngine,
    clock: ReplayClock,
    signals_df: pd.DataFrame,
    prices_df: Optional[pd.DataFrame],
) -> None:
    # Price ticks sort ahead of signals sharing a timestamp
    steps: List[tuple] = []
    if prices_df is not None and not prices_df.empty:
        for row in prices_df.itertuples(index=False):
            steps.append((to_utc(row.timestamp), 0, len(steps), {row.symbol: float(row.price)}))
    for signal in signals_from_frame(signals_df):
        steps.append((signal.timestamp, 1, len(steps), signal))
    steps.sort(key=lambda s: (s[0], s[1], s[2]))

    for timestamp, kind, _, payload in steps:
        clock.now = timestamp
        if kind == 0:
            await engine.update_prices(payload, auto_close=True)
        else:
            await engine.submit_signal(payload)
    await engine.drain()


def replay(
    signals_df: pd.DataFrame,
    prices_df: Optional[pd.DataFrame] = None,
    config: Optional[TradeEngineConfig] = None,
) -> Dict[str, Any]:
    """Run recorded signals (and optional price ticks) through a fresh engine.

    Returns:
        {
            "account": Account snapshot,
            "positions": list of still-open Position,
            "trades": DataFrame of closed trades,
            "events": DataFrame of every emitted event,
            "metrics": summary dict from ``summarize_trades``,
        }
    """
    cfg = config or TradeEngineConfig()
    clock = ReplayClock()
    engine = TradeLifecycleEngine(cfg, clock=clock)
    events: List[TradeEvent] = []
    engine.events.subscribe(events.append)

    asyncio.run(_replay(engine, clock, signals_df, prices_df))

    trades = engine.trade_history()
    return {
        "account": engine.get_account_snapshot(),
        "positions": engine.get_open_positions(),
        "trades": trades,
        "events": pd.DataFrame([e.to_dict() for e in events]),
        "metrics": summarize_trades(trades, cfg.initial_balance),
    }
