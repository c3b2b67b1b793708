"""
모드별 추가 분석 모듈.

[ 역할 ]
    포트폴리오 집계 결과를 받아 분석 모드(BacktestMode)에 따른 파생 결과를 만든다.
    모드마다 정확히 하나의 결과 타입이 나온다 (SIMPLE은 없음).

[ 모드별 동작 ]
    OPTIMIZATION  → canned_optimization_table()
        실제 파라미터 탐색이 아니다. 포트폴리오 지표에 고정 배율/가산값을 적용한
        4행짜리 비교표(canned comparison)를 만든다.
    MONTE_CARLO   → run_monte_carlo()
        거래별 수익률(%)을 균등 무작위 순열로 재배열하여 합산하는 시뮬레이션을
        runs회 반복하고 분포 통계를 낸다.
    WALK_FORWARD  → canned_walk_forward()
        구간별 재적합이 아니다. in-sample = 지표 x1.1, out-of-sample = 지표 x0.75로
        고정 열화 계수를 적용한 근사치. split 비율은 구간 라벨링에만 쓰인다.

[ 호출하는 곳 ]
    - backtest/report.py::run_backtest_simulation()에서 analyze() 호출
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Sequence, Union

from trademind.backtest.metrics import BacktestMetrics
from trademind.core.random_source import RandomSource
from trademind.data.portfolio import Trade
from trademind.utils.config import BacktestMode

logger = logging.getLogger("trademind.backtest")


# ─── OPTIMIZATION ────────────────────────────────────────────────────────────

# (파라미터 이름, 설명, 순이익 배율, 승률 가산치)
CANNED_COMPARISON_ROWS = (
    ("EMA 9/21 (Standard)", "Baseline", 1.0, 0.0),
    ("EMA 20/50 (Trend)", "Conservative", 0.85, 7.0),
    ("EMA 5/13 (Scalp)", "Aggressive", 1.3, -12.0),
    ("RSI 14 Period", "Overbought/Sold", 0.95, 2.0),
)


@dataclass
class OptimizationRow:
    param_name: str
    value: str
    net_profit: float
    win_rate: float

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        return {
            "param_name": self.param_name,
            "value": self.value,
            "net_profit": round(self.net_profit, 2) if rounded else self.net_profit,
            "win_rate": round(self.win_rate, 1) if rounded else self.win_rate,
        }


@dataclass
class OptimizationTable:
    """고정 변환 비교표. 실제 최적화 결과가 아님."""
    rows: list[OptimizationRow] = field(default_factory=list)
    method: str = "canned_comparison"

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        return {"method": self.method, "rows": [r.to_dict(rounded) for r in self.rows]}


def canned_optimization_table(metrics: BacktestMetrics) -> OptimizationTable:
    """포트폴리오 지표에 고정 배율을 적용한 파라미터 비교표 생성."""
    rows = [
        OptimizationRow(
            param_name=name,
            value=label,
            net_profit=metrics.net_profit * profit_factor,
            win_rate=metrics.win_rate + win_rate_delta,
        )
        for name, label, profit_factor, win_rate_delta in CANNED_COMPARISON_ROWS
    ]
    return OptimizationTable(rows=rows)


# ─── MONTE CARLO ─────────────────────────────────────────────────────────────

@dataclass
class MonteCarloStats:
    """몬테카를로 재배열 통계 (단위: %). confidence_95는 '95% 확률로 실현 수익률이 이 값 이상'."""
    simulation_count: int = 0
    worst_case_return: float = 0.0
    best_case_return: float = 0.0
    avg_return: float = 0.0
    confidence_95: float = 0.0

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        data = {
            "simulation_count": self.simulation_count,
            "worst_case_return": self.worst_case_return,
            "best_case_return": self.best_case_return,
            "avg_return": self.avg_return,
            "confidence_95": self.confidence_95,
        }
        if rounded:
            for key in ("worst_case_return", "best_case_return", "avg_return", "confidence_95"):
                data[key] = round(data[key], 2)
        return data


def run_monte_carlo(
    trades: Sequence[Trade],
    runs: int,
    random_source: RandomSource,
) -> MonteCarloStats:
    """거래 수익률 재배열 시뮬레이션.

    매 회 pnl_percent 전체를 무작위 순열로 섞어 합산한다. 전체 집합의 순열이므로
    합계는 매번 같다 (math.fsum으로 순서와 무관하게 정확히 같은 값이 나온다).
    거래가 없거나 runs가 0 이하면 0으로 채운 통계를 반환한다.
    """
    if runs <= 0:
        return MonteCarloStats()

    returns = [t.pnl_percent for t in trades]
    if not returns:
        logger.info("몬테카를로: 거래가 없어 중립 통계 반환")
        return MonteCarloStats(simulation_count=runs)

    simulations = sorted(
        math.fsum(random_source.permutation(returns)) for _ in range(runs)
    )
    avg = math.fsum(simulations) / len(simulations)

    return MonteCarloStats(
        simulation_count=runs,
        worst_case_return=simulations[0],
        best_case_return=simulations[-1],
        avg_return=min(max(avg, simulations[0]), simulations[-1]),
        confidence_95=simulations[int(math.floor(len(simulations) * 0.05))],
    )


# ─── WALK FORWARD ────────────────────────────────────────────────────────────

IN_SAMPLE_FACTOR = 1.1
OUT_SAMPLE_FACTOR = 0.75


@dataclass
class WalkForwardStats:
    """고정 열화 계수 근사치. 실제 walk-forward 재적합 결과가 아님."""
    in_sample_metrics: BacktestMetrics
    out_sample_metrics: BacktestMetrics
    split_fraction: float
    in_sample_bars: int
    out_sample_bars: int
    method: str = "canned_degradation"

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        return {
            "method": self.method,
            "split_fraction": self.split_fraction,
            "in_sample_bars": self.in_sample_bars,
            "out_sample_bars": self.out_sample_bars,
            "in_sample_metrics": self.in_sample_metrics.to_dict(rounded),
            "out_sample_metrics": self.out_sample_metrics.to_dict(rounded),
        }


def canned_walk_forward(metrics: BacktestMetrics, split_fraction: float, bars: int) -> WalkForwardStats:
    """in-sample x1.1 / out-of-sample x0.75 근사치 생성. split_fraction은 구간 라벨링에만 사용."""
    in_sample_bars = int(bars * split_fraction)
    return WalkForwardStats(
        in_sample_metrics=metrics.scaled(IN_SAMPLE_FACTOR),
        out_sample_metrics=metrics.scaled(OUT_SAMPLE_FACTOR),
        split_fraction=split_fraction,
        in_sample_bars=in_sample_bars,
        out_sample_bars=bars - in_sample_bars,
    )


# ─── 디스패치 ────────────────────────────────────────────────────────────────

ModeAnalysis = Union[OptimizationTable, MonteCarloStats, WalkForwardStats]


def analyze(
    mode: BacktestMode,
    metrics: BacktestMetrics,
    trades: Sequence[Trade],
    random_source: RandomSource,
    monte_carlo_runs: int = 1000,
    split_fraction: float = 0.7,
    bars: int = 0,
) -> ModeAnalysis | None:
    """모드에 맞는 추가 분석 실행. SIMPLE이면 None."""
    if mode == BacktestMode.OPTIMIZATION:
        return canned_optimization_table(metrics)
    if mode == BacktestMode.MONTE_CARLO:
        return run_monte_carlo(trades, monte_carlo_runs, random_source)
    if mode == BacktestMode.WALK_FORWARD:
        return canned_walk_forward(metrics, split_fraction, bars)
    return None
