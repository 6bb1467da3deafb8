"""CLI entrypoint for replaying recorded signals through the paper-trading engine."""

from __future__ import annotations

import argparse
from typing import Optional

from signal_trader.api import replay
from signal_trader.config import DEFAULT_BALANCE, DEFAULT_STRATEGY, RISK_PERCENTAGE
from signal_trader.data.loader import load_price_ticks, load_signals
from signal_trader.strategy.config import Strategy
from signal_trader.trade_engine import TradeEngineConfig
from signal_trader.utils import clamp_risk_percentage, configure_logging


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a signal log through the virtual trading engine.")
    parser.add_argument("--signals", required=True, help="CSV of signals (timestamp, symbol, action, confidence, ...)")
    parser.add_argument("--prices", default=None, help="Optional CSV of price ticks (timestamp, symbol, price)")
    parser.add_argument("--balance", type=float, default=DEFAULT_BALANCE, help="Starting virtual balance.")
    parser.add_argument("--risk-pct", type=float, default=RISK_PERCENTAGE, help="Percent of balance committed per trade.")
    parser.add_argument("--strategy", choices=[s.value for s in Strategy], default=DEFAULT_STRATEGY)
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser.parse_args(argv)


def run(signals_path: str, prices_path: Optional[str], cfg: TradeEngineConfig):
    try:
        signals = load_signals(signals_path)
        prices = load_price_ticks(prices_path) if prices_path else None
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Cannot load input: {exc}") from exc

    output = replay(signals, prices, cfg)
    account = output["account"]
    metrics = output["metrics"]
    events = output["events"]

    print(f"Replayed {len(signals)} signals ({cfg.strategy}, {cfg.risk_percentage:g}% per trade)")
    if not events.empty:
        counts = events["kind"].value_counts()
        print("Events: " + ", ".join(f"{kind}={n}" for kind, n in counts.items()))
    print(f"Balance: {account.balance:.2f} (start {cfg.initial_balance:.2f})")
    print(f"Realized P&L: {account.total_pnl:.4f}")
    print(f"Trades opened: {account.total_trades}, closed: {account.closed_trades}")
    print(f"Win rate: {account.win_rate:.1%}")
    print(f"Open positions: {len(output['positions'])}")
    if metrics["trades"]:
        print(f"Profit factor: {metrics['profit_factor']:.2f}")
        print(f"Max drawdown: {metrics['max_dd']:.2%}")
    return output


def main(argv: Optional[list] = None):
    args = parse_args(argv)
    configure_logging(args.log_level)
    cfg = TradeEngineConfig(
        initial_balance=args.balance,
        risk_percentage=clamp_risk_percentage(args.risk_pct),
        strategy=args.strategy,
    )
    run(args.signals, args.prices, cfg)


if __name__ == "__main__":
    main()
