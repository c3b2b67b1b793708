import numpy as np
import pytest

from conftest import make_trade
from trademind.backtest.metrics import BacktestMetrics, calculate_metrics, drawdown_series


def test_trade_statistics():
    trades = [make_trade(100), make_trade(-30), make_trade(50), make_trade(-20)]

    m = calculate_metrics(trades, 1_000, [1_000, 1_100, 1_070, 1_120, 1_100])

    assert m.total_trades == 4
    assert m.winning_trades == 2
    assert m.losing_trades == 2
    assert m.win_rate == pytest.approx(50.0)
    assert m.profit_factor == pytest.approx(3.0)
    assert m.avg_win == pytest.approx(75.0)
    assert m.avg_loss == pytest.approx(-25.0)
    assert m.net_profit == pytest.approx(100.0)
    assert m.expectancy == pytest.approx(25.0)
    assert m.total_return == pytest.approx(10.0)


def test_no_trades_uses_guarded_denominators():
    m = calculate_metrics([], 1_000, [1_000] * 10)

    assert m.total_trades == 0
    assert m.win_rate == 0
    assert m.profit_factor == 0
    assert m.avg_win == 0
    assert m.avg_loss == 0
    assert m.expectancy == 0
    assert m.net_profit == 0
    assert m.max_drawdown == 0


def test_expectancy_without_trades_is_net_profit():
    m = calculate_metrics([], 1_000, [1_000, 1_250])

    assert m.expectancy == pytest.approx(250.0)


def test_profit_factor_without_losses_divides_by_one():
    m = calculate_metrics([make_trade(40), make_trade(60)], 1_000, [1_000, 1_100])

    assert m.profit_factor == pytest.approx(100.0)
    assert m.win_rate == pytest.approx(100.0)


def test_zero_pnl_counts_as_loss():
    m = calculate_metrics([make_trade(0)], 1_000, [1_000, 1_000])

    assert m.winning_trades == 0
    assert m.losing_trades == 1


def test_max_drawdown_percent():
    m = calculate_metrics([], 100, [100, 120, 90, 130, 117])

    assert m.max_drawdown == pytest.approx(25.0)


def test_drawdown_series_is_non_decreasing(rng):
    curve = np.cumsum([rng.standard_normal() for _ in range(500)]) + 1_000

    series = drawdown_series(curve)

    assert len(series) == len(curve)
    assert np.all(np.diff(series) >= 0)


def test_drawdown_skips_non_positive_peaks():
    series = drawdown_series([0.0, -5.0, 10.0, 5.0])

    assert series.tolist() == [0.0, 0.0, 0.0, 50.0]


def test_consecutive_streaks():
    pnls = [10, 20, -5, -5, -5, 30]

    m = calculate_metrics([make_trade(p) for p in pnls], 1_000, [1_000, 1_045])

    assert m.max_consecutive_wins == 2
    assert m.max_consecutive_losses == 3


def test_empty_curve_returns_zeroed_metrics():
    assert calculate_metrics([make_trade(10)], 1_000, []) == BacktestMetrics()


def test_scaled_only_touches_profit_fields():
    m = BacktestMetrics(total_trades=4, win_rate=50.0, net_profit=200.0, expectancy=50.0, total_return=2.0)

    scaled = m.scaled(0.75)

    assert scaled.net_profit == pytest.approx(150.0)
    assert scaled.expectancy == pytest.approx(37.5)
    assert scaled.total_return == pytest.approx(1.5)
    assert scaled.win_rate == 50.0
    assert scaled.total_trades == 4
    assert m.net_profit == 200.0


def test_to_dict_rounds_only_when_asked():
    m = BacktestMetrics(win_rate=33.33333, max_drawdown=12.345, net_profit=1.23456)

    assert m.to_dict()["win_rate"] == 33.33333
    rounded = m.to_dict(rounded=True)
    assert rounded["win_rate"] == 33.3
    assert rounded["max_drawdown"] == 12.3
    assert rounded["net_profit"] == 1.23
