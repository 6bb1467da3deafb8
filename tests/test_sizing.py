import pytest

from signal_trader.trade_engine.errors import InsufficientFunds, InvalidPrice
from signal_trader.trade_engine.sizing import size_position


def test_fixed_percentage_of_balance():
    sized = size_position(1000.0, 2.0, 50000.0)
    assert sized.notional == pytest.approx(20.0)
    assert sized.units == pytest.approx(0.0004)


def test_units_scale_with_entry_price():
    sized = size_position(5000.0, 2.0, 2.5)
    assert sized.notional == pytest.approx(100.0)
    assert sized.units == pytest.approx(40.0)


def test_sizing_failures():
    with pytest.raises(InsufficientFunds):
        size_position(0.0, 2.0, 100.0)
    with pytest.raises(InvalidPrice):
        size_position(1000.0, 2.0, 0.0)
    with pytest.raises(ValueError):
        size_position(1000.0, 0.0, 100.0)
    with pytest.raises(ValueError):
        size_position(1000.0, 150.0, 100.0)
