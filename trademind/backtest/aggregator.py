"""
포트폴리오 집계 모듈.

[ 역할 ]
    종목마다 (합성 데이터 생성 → 전략 실행 → 지표 계산)을 독립적으로 수행하고,
    결과를 포트폴리오 단위로 합친다.

[ 실행 흐름 ]
    run() 호출 시:
        1. 자본을 종목 수로 균등 배분 (시작 시 고정, 리밸런싱 없음)
        2. 종목별 하위 난수원 생성 (입력 순서대로) → 병렬 실행해도 결과가 같음
        3. 종목별 BacktestEngine.run() 실행 (ThreadPoolExecutor)
        4. 결과를 입력 종목 순서대로 수집, 실패 종목은 diagnostics에 기록
        5. 전체 거래를 청산일 기준 정렬 (동일 날짜는 입력 순서 유지)
        6. 봉 인덱스별로 종목 자산곡선을 합산 → 포트폴리오 자산곡선
        7. 병합 거래내역 + 합산 자산곡선으로 포트폴리오 지표 계산

[ 실패 처리 ]
    한 종목의 생성/실행 중 예외가 나면 그 종목만 결과에서 빠진다.
    배분됐던 자본은 현금으로 묶여 있는 것으로 보고 합산 곡선에 평평하게 더한다.

[ 호출하는 곳 ]
    - backtest/report.py::run_backtest_simulation()
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from itertools import chain
from typing import Callable, Iterable, Sequence

from trademind.backtest.engine import BacktestEngine, SymbolResult
from trademind.backtest.metrics import BacktestMetrics, calculate_metrics
from trademind.core.random_source import RandomSource
from trademind.core.trading_strategy import TradingStrategy
from trademind.data.portfolio import Trade
from trademind.data.price_generator import SyntheticDataProvider
from trademind.strategies import create_strategy

logger = logging.getLogger("trademind.backtest")

ProviderFactory = Callable[[RandomSource], SyntheticDataProvider]
StrategyFactory = Callable[[], TradingStrategy]


@dataclass
class SymbolFailure:
    """결과에서 빠진 종목과 사유."""
    symbol: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"symbol": self.symbol, "error": self.error}


@dataclass
class AggregateResult:
    """포트폴리오 집계 결과."""
    per_symbol_results: dict[str, SymbolResult] = field(default_factory=dict)
    trades: list[Trade] = field(default_factory=list)
    combined_equity_curve: list[float] = field(default_factory=list)
    overall_metrics: BacktestMetrics = field(default_factory=BacktestMetrics)
    failures: list[SymbolFailure] = field(default_factory=list)
    allocation: float = 0.0


def merge_trades(trade_logs: Iterable[Sequence[Trade]]) -> list[Trade]:
    """종목별 거래내역을 합쳐 청산일 오름차순으로 정렬 (안정 정렬)."""
    return sorted(chain.from_iterable(trade_logs), key=lambda t: t.exit_date)


def combine_equity_curves(
    curves: Sequence[Sequence[float]],
    length: int,
    initial_capital: float,
    idle_cash: float = 0.0,
) -> list[float]:
    """봉 인덱스별 자산 합산.

    짧은 곡선은 마지막 값을 유지한다. 합칠 곡선이 하나도 없으면
    initial_capital 수준의 평평한 곡선을 반환한다.
    """
    curves = [c for c in curves if len(c) > 0]
    if not curves:
        return [float(initial_capital)] * length

    total_len = max(length, max(len(c) for c in curves))
    combined = []
    for i in range(total_len):
        day_total = idle_cash
        for curve in curves:
            day_total += curve[i] if i < len(curve) else curve[-1]
        combined.append(day_total)
    return combined


def _default_provider_factory(volatility: float, min_bars: int) -> ProviderFactory:
    def factory(random_source: RandomSource) -> SyntheticDataProvider:
        return SyntheticDataProvider(random_source, volatility=volatility, min_bars=min_bars)
    return factory


class PortfolioAggregator:
    """종목별 백테스트를 실행하고 포트폴리오 결과로 합치는 집계기."""

    def __init__(
        self,
        random_source: RandomSource | None = None,
        strategy_factory: StrategyFactory | None = None,
        provider_factory: ProviderFactory | None = None,
        volatility: float = 0.02,
        min_bars: int = 30,
        max_workers: int = 4,
    ):
        self.random = random_source or RandomSource()
        self.strategy_factory = strategy_factory or create_strategy
        self.provider_factory = provider_factory or _default_provider_factory(volatility, min_bars)
        self.max_workers = max(1, max_workers)

    def run(
        self,
        symbols: Sequence[str],
        initial_capital: float,
        bars: int,
        start_date: date | None = None,
    ) -> AggregateResult:
        """포트폴리오 백테스트 실행.

        Args:
            symbols: 종목 코드 리스트 (중복은 첫 번째만 사용)
            initial_capital: 전체 자본
            bars: 종목별 생성 봉 수
            start_date: 첫 봉 날짜
        """
        unique_symbols = list(dict.fromkeys(symbols))
        if len(unique_symbols) != len(symbols):
            logger.warning(f"중복 종목 제거: {len(symbols)} → {len(unique_symbols)}개")

        allocation = initial_capital / (len(unique_symbols) or 1)
        result = AggregateResult(allocation=allocation)

        if not unique_symbols:
            logger.warning("종목이 없습니다. 초기 자본 수준의 평평한 자산곡선을 반환합니다.")
        else:
            logger.info(f"포트폴리오 백테스트 시작: {len(unique_symbols)}종목, 종목당 {allocation:,.2f}, {bars}봉")

        sources = self.random.spawn(len(unique_symbols))
        jobs = list(zip(unique_symbols, sources))

        if self.max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as pool:
                futures = [
                    pool.submit(self._run_symbol_safe, symbol, allocation, bars, start_date, source)
                    for symbol, source in jobs
                ]
                outcomes = [f.result() for f in futures]
        else:
            outcomes = [
                self._run_symbol_safe(symbol, allocation, bars, start_date, source)
                for symbol, source in jobs
            ]

        # 입력 종목 순서대로 병합 (완료 순서와 무관)
        for symbol, outcome in zip(unique_symbols, outcomes):
            if isinstance(outcome, SymbolFailure):
                result.failures.append(outcome)
            else:
                result.per_symbol_results[symbol] = outcome

        result.trades = merge_trades(r.trades for r in result.per_symbol_results.values())
        result.combined_equity_curve = combine_equity_curves(
            [r.equity_curve for r in result.per_symbol_results.values()],
            length=bars,
            initial_capital=initial_capital,
            idle_cash=allocation * len(result.failures),
        )
        result.overall_metrics = calculate_metrics(
            result.trades, initial_capital, result.combined_equity_curve
        )

        logger.info(
            f"포트폴리오 백테스트 완료: 성공 {len(result.per_symbol_results)}, 실패 {len(result.failures)}, "
            f"총 거래 {result.overall_metrics.total_trades}건"
        )
        return result

    def _run_symbol(
        self,
        symbol: str,
        allocation: float,
        bars: int,
        start_date: date | None,
        random_source: RandomSource,
    ) -> SymbolResult:
        """종목 1개: 합성 데이터 생성 → 전략 실행."""
        provider = self.provider_factory(random_source)
        prices = provider.generate(symbol, bars, provider.random_start_price(), start_date)
        engine = BacktestEngine(initial_cash=allocation)
        return engine.run(symbol, prices, self.strategy_factory())

    def _run_symbol_safe(
        self,
        symbol: str,
        allocation: float,
        bars: int,
        start_date: date | None,
        random_source: RandomSource,
    ) -> SymbolResult | SymbolFailure:
        """_run_symbol()의 예외를 SymbolFailure로 변환. 다른 종목 결과에는 영향 없음."""
        try:
            return self._run_symbol(symbol, allocation, bars, start_date, random_source)
        except Exception as e:
            logger.exception(f"{symbol}: 백테스트 실패, 결과에서 제외")
            return SymbolFailure(symbol=symbol, error=f"{type(e).__name__}: {e}")
