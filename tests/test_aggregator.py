from datetime import date

import pytest

from conftest import make_trade
from trademind.backtest.aggregator import PortfolioAggregator, combine_equity_curves, merge_trades
from trademind.core.random_source import RandomSource
from trademind.data.price_generator import SyntheticDataProvider


def test_merge_trades_sorted_by_exit_date():
    a = [make_trade(1, exit_day=5, symbol="A"), make_trade(2, exit_day=9, symbol="A")]
    b = [make_trade(3, exit_day=2, symbol="B"), make_trade(4, exit_day=7, symbol="B")]

    merged = merge_trades([a, b])

    assert [t.exit_date.day for t in merged] == [3, 6, 8, 10]
    assert len(merged) == 4


def test_combine_equity_curves_sums_by_index():
    assert combine_equity_curves([[1, 2, 3], [10, 20, 30]], 3, 11) == [11, 22, 33]


def test_combine_equity_curves_holds_last_value_of_short_curve():
    assert combine_equity_curves([[1, 2, 3, 4], [10, 20]], 4, 11) == [11, 22, 23, 24]


def test_combine_equity_curves_without_curves_is_flat():
    assert combine_equity_curves([], 5, 1_000) == [1_000.0] * 5


def test_combine_equity_curves_adds_idle_cash():
    assert combine_equity_curves([[5, 6]], 2, 10, idle_cash=5) == [10, 11]


def test_run_splits_capital_equally():
    aggregator = PortfolioAggregator(RandomSource(seed=1), max_workers=1)

    result = aggregator.run(["A", "B", "C", "D"], 100_000, bars=200, start_date=date(2023, 1, 1))

    assert result.allocation == 25_000
    assert list(result.per_symbol_results) == ["A", "B", "C", "D"]
    for symbol_result in result.per_symbol_results.values():
        assert symbol_result.initial_cash == 25_000
        assert symbol_result.equity_curve[0] == 25_000
        assert len(symbol_result.equity_curve) == 200
    assert len(result.combined_equity_curve) == 200
    assert result.combined_equity_curve[0] == pytest.approx(100_000)
    assert result.overall_metrics.total_trades == len(result.trades)


def test_run_merges_all_trades_in_exit_order():
    result = PortfolioAggregator(RandomSource(seed=2)).run(
        ["A", "B", "C"], 90_000, bars=365, start_date=date(2023, 1, 1)
    )

    per_symbol_total = sum(len(r.trades) for r in result.per_symbol_results.values())
    assert len(result.trades) == per_symbol_total
    exits = [t.exit_date for t in result.trades]
    assert exits == sorted(exits)


def test_parallel_and_sequential_runs_match():
    symbols = ["A", "B", "C", "D", "E"]
    sequential = PortfolioAggregator(RandomSource(seed=9), max_workers=1).run(symbols, 50_000, 250, date(2023, 1, 1))
    parallel = PortfolioAggregator(RandomSource(seed=9), max_workers=8).run(symbols, 50_000, 250, date(2023, 1, 1))

    assert sequential.combined_equity_curve == parallel.combined_equity_curve
    assert sequential.overall_metrics == parallel.overall_metrics
    assert [(t.symbol, t.exit_date, t.pnl) for t in sequential.trades] == \
        [(t.symbol, t.exit_date, t.pnl) for t in parallel.trades]


class FailingProvider(SyntheticDataProvider):
    def generate(self, symbol, bars, start_price, start_date=None):
        if symbol == "BAD":
            raise RuntimeError("price feed broken")
        return super().generate(symbol, bars, start_price, start_date)


def test_failed_symbol_is_reported_not_dropped():
    aggregator = PortfolioAggregator(RandomSource(seed=4), provider_factory=FailingProvider)

    result = aggregator.run(["GOOD", "BAD"], 10_000, bars=100, start_date=date(2023, 1, 1))

    assert list(result.per_symbol_results) == ["GOOD"]
    assert [f.symbol for f in result.failures] == ["BAD"]
    assert "price feed broken" in result.failures[0].error
    # 실패 종목 배분액은 현금으로 유지
    assert result.combined_equity_curve[0] == pytest.approx(10_000)
    assert len(result.combined_equity_curve) == 100


def test_empty_symbol_list_gives_flat_curve():
    result = PortfolioAggregator(RandomSource(seed=4)).run([], 10_000, bars=40)

    assert result.per_symbol_results == {}
    assert result.trades == []
    assert result.combined_equity_curve == [10_000.0] * 40
    assert result.overall_metrics.net_profit == 0


def test_duplicate_symbols_run_once():
    result = PortfolioAggregator(RandomSource(seed=4)).run(["A", "A", "B"], 10_000, bars=50)

    assert list(result.per_symbol_results) == ["A", "B"]
    assert result.allocation == 5_000
