import pandas as pd
import pytest

from signal_trader.trade_engine.types import Signal

FIXED_NOW = pd.Timestamp("2024-03-01 12:00", tz="UTC")


def make_signal(**overrides) -> Signal:
    fields = {
        "symbol": "BTC",
        "action": "buy",
        "confidence": 96.0,
        "entry": 50000.0,
        "stop_loss": 47500.0,
        "take_profit": 55000.0,
        "reasoning": "breakout above resistance",
        "timestamp": FIXED_NOW,
    }
    fields.update(overrides)
    return Signal(**fields)


class FixedClock:
    def __init__(self, now: pd.Timestamp = FIXED_NOW):
        self.now = now

    def __call__(self) -> pd.Timestamp:
        return self.now


@pytest.fixture
def clock():
    return FixedClock()
