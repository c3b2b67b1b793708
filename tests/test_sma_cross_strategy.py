import pytest

from conftest import make_bars
from trademind.core.trading_strategy import PositionInfo, SignalType
from trademind.strategies import create_strategy, list_strategies
from trademind.strategies.sma_cross_strategy import SmaCrossStrategy


def test_registry_exposes_builtin_strategy():
    assert "sma_cross" in list_strategies()
    assert isinstance(create_strategy("sma_cross"), SmaCrossStrategy)


def test_unknown_strategy_raises():
    with pytest.raises(ValueError, match="sma_cross"):
        create_strategy("dsl_strategy")


def test_short_period_must_be_shorter():
    with pytest.raises(ValueError):
        SmaCrossStrategy({"short_period": 21, "long_period": 9})


def test_hold_while_warming_up():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 22 + [150.0])

    signal = strategy.generate_signal(data.iloc[:22], PositionInfo(ticker="T"), 10_000)

    assert signal.signal_type == SignalType.HOLD


def test_golden_cross_buys_95_percent_of_cash():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 25 + [110.0, 110.0])

    signal = strategy.generate_signal(data, PositionInfo(ticker="T"), 10_000)

    assert signal.signal_type == SignalType.BUY
    assert signal.quantity == 86  # floor(9500 / 110)
    assert signal.reason == "SMA Golden Cross"


def test_no_entry_when_quantity_is_zero():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 25 + [110.0, 110.0])

    signal = strategy.generate_signal(data, PositionInfo(ticker="T"), 100)

    assert signal.signal_type == SignalType.HOLD


def test_flat_market_never_crosses():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 40)

    signal = strategy.generate_signal(data, PositionInfo(ticker="T"), 10_000)

    assert signal.signal_type == SignalType.HOLD


def test_already_above_is_not_a_cross():
    strategy = SmaCrossStrategy()
    # 직전 봉에서 이미 단기 > 장기
    data = make_bars([100.0] * 24 + [110.0, 111.0, 112.0])

    signal = strategy.generate_signal(data, PositionInfo(ticker="T"), 10_000)

    assert signal.signal_type == SignalType.HOLD


def _open_position(unrealized_return):
    return PositionInfo(ticker="T", quantity=10, entry_price=100.0, unrealized_return=unrealized_return)


def test_reversal_exit():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 21 + [95.0, 95.0])

    sell, reason = strategy.should_sell(data, _open_position(0.0))

    assert sell
    assert reason == "Indicator Reversal"


def test_take_profit_wins_over_same_bar_reversal():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 21 + [95.0, 95.0])

    sell, reason = strategy.should_sell(data, _open_position(0.09))

    assert sell
    assert reason == "Take Profit Hit (+8%)"


def test_stop_loss_wins_over_same_bar_reversal():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 21 + [95.0, 95.0])

    sell, reason = strategy.should_sell(data, _open_position(-0.05))

    assert sell
    assert reason == "Stop Loss Hit (-3%)"


def test_thresholds_are_strict():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 30)

    assert strategy.should_sell(data, _open_position(0.08))[0] is False
    assert strategy.should_sell(data, _open_position(-0.03))[0] is False


def test_in_position_never_buys_again():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 25 + [110.0, 110.0])

    signal = strategy.generate_signal(data, _open_position(0.0), 10_000)

    assert signal.signal_type == SignalType.HOLD


def test_sma_excludes_current_close():
    strategy = SmaCrossStrategy()

    flat = strategy.sma_snapshot(make_bars([100.0] * 23))
    spiked = strategy.sma_snapshot(make_bars([100.0] * 22 + [500.0]))

    assert spiked == flat
    assert spiked.short == pytest.approx(100.0)


def test_cross_is_seen_one_bar_after_the_breakout_close():
    strategy = SmaCrossStrategy()
    data = make_bars([100.0] * 25 + [110.0, 111.0])

    on_breakout = strategy.generate_signal(data.iloc[:26], PositionInfo(ticker="T"), 10_000)
    next_bar = strategy.generate_signal(data, PositionInfo(ticker="T"), 10_000)

    assert on_breakout.signal_type == SignalType.HOLD
    assert next_bar.signal_type == SignalType.BUY
    assert next_bar.price == 111.0
    assert next_bar.quantity == 85  # floor(9500 / 111)


def test_needs_long_period_plus_two_bars():
    strategy = SmaCrossStrategy()

    assert strategy.sma_snapshot(make_bars([100.0] * 22)) is None
    assert strategy.sma_snapshot(make_bars([100.0] * 23)) is not None
