"""
백테스트 리포트 조립 모듈 (시스템 진입 함수).

[ 역할 ]
    BacktestConfig 하나를 받아 전체 시뮬레이션을 실행하고 FullBacktestReport를 반환.

[ 실행 흐름 ]
    run_backtest_simulation(config):
        1. config.validate()
        2. 기간 → 봉 개수 계산 (max(30, 일수))
        3. PortfolioAggregator.run() → 종목별 결과 + 포트폴리오 지표
        4. analyzers.analyze() → 모드별 추가 분석 (SIMPLE은 없음)
        5. FullBacktestReport 조립

[ 리포트 구조 ]
    항상 포함: overall_metrics, per_symbol_results, combined_equity_curve
    모드에 따라 정확히 하나: optimization_table / monte_carlo_stats / walk_forward_stats
    (analysis 필드 하나에 모드별 결과를 담고, 접근자가 모드를 확인해서 돌려준다)

[ 호출하는 곳 ]
    - run_backtest.py (CLI)
    - 비동기 호출자는 run_backtest_simulation_async() 사용
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from trademind.backtest.aggregator import PortfolioAggregator, SymbolFailure
from trademind.backtest.analyzers import (
    ModeAnalysis,
    MonteCarloStats,
    OptimizationTable,
    WalkForwardStats,
    analyze,
)
from trademind.backtest.engine import SymbolResult
from trademind.backtest.metrics import BacktestMetrics
from trademind.core.random_source import RandomSource
from trademind.data.portfolio import Trade
from trademind.data.price_generator import bar_count
from trademind.strategies import create_strategy
from trademind.utils.config import (
    BacktestConfig,
    BacktestMode,
    SimulationConfig,
    StrategyConfig,
)

logger = logging.getLogger("trademind.backtest")


@dataclass
class FullBacktestReport:
    """전체 백테스트 결과."""
    config: BacktestConfig
    overall_metrics: BacktestMetrics
    per_symbol_results: dict[str, SymbolResult]
    combined_equity_curve: list[float]
    trades: list[Trade] = field(default_factory=list)     # 청산일 순 병합 거래내역
    analysis: ModeAnalysis | None = None                  # 모드별 추가 분석
    diagnostics: list[SymbolFailure] = field(default_factory=list)

    @property
    def mode(self) -> BacktestMode:
        return self.config.mode

    @property
    def optimization_table(self) -> OptimizationTable | None:
        if self.mode == BacktestMode.OPTIMIZATION:
            return self.analysis
        return None

    @property
    def monte_carlo_stats(self) -> MonteCarloStats | None:
        if self.mode == BacktestMode.MONTE_CARLO:
            return self.analysis
        return None

    @property
    def walk_forward_stats(self) -> WalkForwardStats | None:
        if self.mode == BacktestMode.WALK_FORWARD:
            return self.analysis
        return None

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        """JSON 직렬화용 딕셔너리. 반올림은 여기서만 적용된다."""
        data = {
            "mode": self.mode.value,
            "strategy_id": self.config.strategy_id,
            "symbols": list(self.config.symbols),
            "start_date": self.config.start_date.isoformat(),
            "end_date": self.config.end_date.isoformat(),
            "initial_capital": self.config.initial_capital,
            "overall_metrics": self.overall_metrics.to_dict(rounded),
            "per_symbol_results": {
                symbol: result.to_dict(rounded) for symbol, result in self.per_symbol_results.items()
            },
            "combined_equity_curve": [round(v, 2) for v in self.combined_equity_curve] if rounded
            else list(self.combined_equity_curve),
            "trades": [t.to_dict(rounded) for t in self.trades],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
        if self.optimization_table is not None:
            data["optimization_table"] = self.optimization_table.to_dict(rounded)
        if self.monte_carlo_stats is not None:
            data["monte_carlo_stats"] = self.monte_carlo_stats.to_dict(rounded)
        if self.walk_forward_stats is not None:
            data["walk_forward_stats"] = self.walk_forward_stats.to_dict(rounded)
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    def summary(self) -> str:
        """콘솔 출력용 요약."""
        cfg = self.config
        lines = [
            f"모드: {self.mode.value}  전략: {cfg.strategy_id}  기간: {cfg.start_date} ~ {cfg.end_date}",
            f"종목: {', '.join(cfg.symbols)}  초기 자본: {cfg.initial_capital:,.0f}",
            self.overall_metrics.summary(),
        ]

        if self.per_symbol_results:
            lines.append("\n[종목별 결과]")
            for symbol, result in self.per_symbol_results.items():
                m = result.metrics
                lines.append(
                    f"  {symbol:<12} 거래 {m.total_trades:>3}건  승률 {m.win_rate:>5.1f}%  "
                    f"순이익 {m.net_profit:>12,.2f}  MDD {m.max_drawdown:>5.1f}%"
                )

        if self.optimization_table is not None:
            lines.append("\n[파라미터 비교 (고정 변환, 실제 최적화 아님)]")
            for row in self.optimization_table.rows:
                lines.append(
                    f"  {row.param_name:<22} {row.value:<16} 순이익 {row.net_profit:>12,.2f}  승률 {row.win_rate:>5.1f}%"
                )

        if self.monte_carlo_stats is not None:
            mc = self.monte_carlo_stats
            lines.append(f"\n[몬테카를로 ({mc.simulation_count}회)]")
            lines.append(f"  최악 {mc.worst_case_return:.2f}%  최선 {mc.best_case_return:.2f}%  평균 {mc.avg_return:.2f}%")
            lines.append(f"  95% 신뢰 하한 {mc.confidence_95:.2f}%")

        if self.walk_forward_stats is not None:
            wf = self.walk_forward_stats
            lines.append(f"\n[Walk-Forward 근사 (split {wf.split_fraction:.0%}, 재적합 아님)]")
            lines.append(f"  In-sample  ({wf.in_sample_bars}봉) 순이익 {wf.in_sample_metrics.net_profit:,.2f}")
            lines.append(f"  Out-sample ({wf.out_sample_bars}봉) 순이익 {wf.out_sample_metrics.net_profit:,.2f}")

        if self.diagnostics:
            lines.append("\n[제외된 종목]")
            for d in self.diagnostics:
                lines.append(f"  {d.symbol}: {d.error}")

        return "\n".join(lines)


def run_backtest_simulation(
    config: BacktestConfig,
    random_source: RandomSource | None = None,
    settings: SimulationConfig | None = None,
    strategy_config: StrategyConfig | None = None,
) -> FullBacktestReport:
    """백테스트 전체 실행 (동기).

    Args:
        config: 실행 입력
        random_source: 난수원. None이면 settings.seed로 생성
        settings: 시뮬레이션 환경 설정
        strategy_config: 내장 전략 이름/파라미터 (기본 sma_cross)

    Raises:
        ValueError: 잘못된 config
    """
    config.validate()
    settings = settings or SimulationConfig()
    strategy_config = strategy_config or StrategyConfig()
    random_source = random_source or RandomSource(settings.seed)

    # 전략 이름/파라미터 오류는 종목별 실패가 아니라 실행 전체 오류
    create_strategy(strategy_config.name, strategy_config.params)

    bars = bar_count(config.start_date, config.end_date, settings.min_bars)
    analysis_source, simulation_source = random_source.spawn(2)

    logger.info(
        f"백테스트 실행: mode={config.mode.value}, strategy_id={config.strategy_id}, "
        f"종목 {len(config.symbols)}개, {bars}봉"
    )

    aggregator = PortfolioAggregator(
        random_source=simulation_source,
        strategy_factory=lambda: create_strategy(strategy_config.name, strategy_config.params),
        volatility=settings.volatility,
        min_bars=settings.min_bars,
        max_workers=settings.max_workers,
    )
    aggregate = aggregator.run(config.symbols, config.initial_capital, bars, config.start_date)

    analysis = analyze(
        config.mode,
        aggregate.overall_metrics,
        aggregate.trades,
        analysis_source,
        monte_carlo_runs=config.monte_carlo_runs,
        split_fraction=config.walk_forward_split_fraction,
        bars=bars,
    )

    return FullBacktestReport(
        config=config,
        overall_metrics=aggregate.overall_metrics,
        per_symbol_results=aggregate.per_symbol_results,
        combined_equity_curve=aggregate.combined_equity_curve,
        trades=aggregate.trades,
        analysis=analysis,
        diagnostics=aggregate.failures,
    )


async def run_backtest_simulation_async(
    config: BacktestConfig,
    random_source: RandomSource | None = None,
    settings: SimulationConfig | None = None,
    strategy_config: StrategyConfig | None = None,
) -> FullBacktestReport:
    """비동기 실행. settings.latency_seconds만큼 대기 후 스레드에서 동기 실행."""
    settings = settings or SimulationConfig()
    if settings.latency_seconds > 0:
        await asyncio.sleep(settings.latency_seconds)
    return await asyncio.to_thread(
        run_backtest_simulation, config, random_source, settings, strategy_config
    )
