"""Load recorded signals and price ticks from CSV files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Union

import pandas as pd

from signal_trader.trade_engine.types import Signal

SIGNAL_COLUMNS = ["timestamp", "symbol", "action", "confidence", "entry", "stop_loss", "take_profit", "reasoning"]
PRICE_COLUMNS = ["timestamp", "symbol", "price"]

_CAMEL_TO_SNAKE = {
    "stopLoss": "stop_loss",
    "takeProfit": "take_profit",
    "signalId": "signal_id",
}


def _read(path: Union[str, Path], required: list) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{path} does not exist")
    df = pd.read_csv(path)
    df.rename(columns=_CAMEL_TO_SNAKE, inplace=True)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing columns: {', '.join(missing)}")
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df.sort_values("timestamp", inplace=True, kind="stable")
    df.reset_index(drop=True, inplace=True)
    return df


def load_signals(path: Union[str, Path]) -> pd.DataFrame:
    """Read a signal log; ``reasoning`` and ``signal_id`` columns are optional."""
    df = _read(path, [c for c in SIGNAL_COLUMNS if c != "reasoning"])
    if "reasoning" not in df.columns:
        df["reasoning"] = ""
    df["reasoning"] = df["reasoning"].fillna("")
    return df


def load_price_ticks(path: Union[str, Path]) -> pd.DataFrame:
    df = _read(path, PRICE_COLUMNS)
    df["symbol"] = df["symbol"].astype(str).str.strip().str.upper()
    return df


def signals_from_frame(df: pd.DataFrame) -> Iterator[Signal]:
    for record in df.to_dict(orient="records"):
        payload = {k: v for k, v in record.items() if not (isinstance(v, float) and pd.isna(v))}
        yield Signal.from_dict(payload)
