import asyncio
import json
from datetime import date

import pytest

from trademind.backtest.report import run_backtest_simulation, run_backtest_simulation_async
from trademind.core.random_source import RandomSource
from trademind.utils.config import BacktestConfig, BacktestMode, SimulationConfig, StrategyConfig


def _config(**overrides):
    values = dict(
        symbols=("TEST",),
        initial_capital=100_000,
        mode=BacktestMode.SIMPLE,
        start_date=date(2023, 1, 1),
        end_date=date(2023, 12, 31),
    )
    values.update(overrides)
    return BacktestConfig(**values)


def test_simple_single_symbol_year():
    report = run_backtest_simulation(_config(), RandomSource(seed=42))

    assert "TEST" in report.per_symbol_results
    assert report.per_symbol_results["TEST"].metrics.total_trades >= 0
    assert len(report.combined_equity_curve) == 364
    assert report.optimization_table is None
    assert report.monte_carlo_stats is None
    assert report.walk_forward_stats is None
    assert report.analysis is None
    assert report.diagnostics == []


def test_simple_report_dict_has_no_mode_payload():
    data = run_backtest_simulation(_config(), RandomSource(seed=42)).to_dict()

    assert data["mode"] == "SIMPLE"
    for key in ("overall_metrics", "per_symbol_results", "combined_equity_curve"):
        assert key in data
    for key in ("optimization_table", "monte_carlo_stats", "walk_forward_stats"):
        assert key not in data
    json.dumps(data)


def test_monte_carlo_mode():
    config = _config(symbols=("A", "B", "C"), mode=BacktestMode.MONTE_CARLO, monte_carlo_runs=100)

    report = run_backtest_simulation(config, RandomSource(seed=8))

    stats = report.monte_carlo_stats
    assert stats is not None
    assert stats.simulation_count == 100
    assert stats.worst_case_return <= stats.avg_return <= stats.best_case_return
    assert report.optimization_table is None
    assert report.walk_forward_stats is None
    assert "monte_carlo_stats" in report.to_dict()


def test_optimization_mode():
    report = run_backtest_simulation(_config(mode=BacktestMode.OPTIMIZATION), RandomSource(seed=8))

    table = report.optimization_table
    assert table is not None
    assert len(table.rows) == 4
    assert table.rows[0].net_profit == report.overall_metrics.net_profit
    assert report.monte_carlo_stats is None


def test_walk_forward_mode():
    config = _config(mode=BacktestMode.WALK_FORWARD, walk_forward_split_fraction=0.6)

    report = run_backtest_simulation(config, RandomSource(seed=8))

    wf = report.walk_forward_stats
    assert wf is not None
    assert wf.split_fraction == 0.6
    assert wf.out_sample_metrics.net_profit == pytest.approx(report.overall_metrics.net_profit * 0.75)
    assert wf.in_sample_bars + wf.out_sample_bars == 364


def test_same_seed_same_report():
    config = _config(symbols=("A", "B"))

    first = run_backtest_simulation(config, RandomSource(seed=123))
    second = run_backtest_simulation(config, RandomSource(seed=123))

    assert first.combined_equity_curve == second.combined_equity_curve
    assert first.overall_metrics == second.overall_metrics
    assert first.to_json() == second.to_json()


def test_trade_ids_follow_symbol_and_exit_order():
    report = run_backtest_simulation(_config(symbols=("A", "B")), RandomSource(seed=123))

    for symbol in ("A", "B"):
        trades = report.per_symbol_results[symbol].trades
        assert [t.id for t in trades] == [f"{symbol}-{n:04d}" for n in range(1, len(trades) + 1)]
    assert len({t.id for t in report.trades}) == len(report.trades)


def test_short_range_uses_minimum_bars():
    config = _config(start_date=date(2023, 1, 1), end_date=date(2023, 1, 5))

    report = run_backtest_simulation(config, RandomSource(seed=1))

    assert len(report.combined_equity_curve) == 30


def test_invalid_config_raises():
    with pytest.raises(ValueError):
        run_backtest_simulation(_config(symbols=()))
    with pytest.raises(ValueError):
        run_backtest_simulation(_config(initial_capital=0))
    with pytest.raises(ValueError):
        run_backtest_simulation(_config(start_date=date(2023, 2, 1), end_date=date(2023, 1, 1)))


def test_unknown_builtin_strategy_raises():
    with pytest.raises(ValueError):
        run_backtest_simulation(_config(), RandomSource(seed=1), strategy_config=StrategyConfig(name="nope"))


def test_strategy_id_is_only_a_label():
    a = run_backtest_simulation(_config(strategy_id="breakout-v2"), RandomSource(seed=5))
    b = run_backtest_simulation(_config(strategy_id="mean-revert"), RandomSource(seed=5))

    assert a.combined_equity_curve == b.combined_equity_curve
    assert a.to_dict()["strategy_id"] == "breakout-v2"


def test_async_entry_point():
    settings = SimulationConfig(latency_seconds=0.01)

    report = asyncio.run(run_backtest_simulation_async(_config(), RandomSource(seed=3), settings))

    assert len(report.combined_equity_curve) == 364


def test_summary_mentions_mode_payload():
    report = run_backtest_simulation(_config(mode=BacktestMode.OPTIMIZATION), RandomSource(seed=2))

    text = report.summary()

    assert "OPTIMIZATION" in text
    assert "EMA 9/21 (Standard)" in text
