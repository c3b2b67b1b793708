"""
백테스트 성과 지표 계산 모듈.

[ 역할 ]
    백테스트 결과(거래기록 + 자산곡선)를 받아 성과 지표를 계산.
    calculate_metrics() 함수가 핵심. 상태가 없는 순수 함수.

[ 계산하는 지표 ]
    - 순이익 (마지막 자산 - 시작 자본), 총 수익률
    - MDD (최대 낙폭)
    - 승률, 평균 수익/손실, 수익 팩터, 기대값
    - 연속 승/패

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine.run() 완료 시 종목별로 호출
    - backtest/aggregator.py에서 병합 거래내역 + 합산 자산곡선으로 포트폴리오 지표 계산

[ 0 나눗셈 처리 ]
    거래가 없거나 손실 합계가 0이면 분모를 1로 대체한다 (예외를 던지지 않음).
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Sequence

import numpy as np

from trademind.data.portfolio import Trade

# to_dict(rounded=True)에서 소수 첫째 자리로 반올림하는 퍼센트 지표
_PERCENT_FIELDS = ("win_rate", "max_drawdown")
# 소수 둘째 자리로 반올림하는 지표 (금액, 비율)
_TWO_DECIMAL_FIELDS = ("net_profit", "avg_win", "avg_loss", "expectancy", "total_return", "profit_factor")


@dataclass
class BacktestMetrics:
    """백테스트 성과 지표. summary()로 포맷된 리포트 출력 가능."""
    total_trades: int = 0             # 청산 거래 수
    win_rate: float = 0.0             # 승률 (%)
    net_profit: float = 0.0           # 순이익
    profit_factor: float = 0.0        # |총이익 / 총손실|
    max_drawdown: float = 0.0         # 최대 낙폭 MDD (%)
    avg_win: float = 0.0              # 수익 거래 평균 이익
    avg_loss: float = 0.0             # 손실 거래 평균 손실 (음수)
    expectancy: float = 0.0           # 거래당 기대 손익
    total_return: float = 0.0         # 총 수익률 (%)
    winning_trades: int = 0           # 수익 거래 수
    losing_trades: int = 0            # 손실 거래 수 (pnl <= 0)
    max_consecutive_wins: int = 0     # 최대 연속 수익
    max_consecutive_losses: int = 0   # 최대 연속 손실

    def scaled(self, factor: float) -> "BacktestMetrics":
        """순이익에 비례하는 지표(순이익, 총 수익률, 기대값)에 factor를 곱한 사본."""
        return replace(
            self,
            net_profit=self.net_profit * factor,
            total_return=self.total_return * factor,
            expectancy=self.expectancy * factor,
        )

    def to_dict(self, rounded: bool = False) -> dict[str, Any]:
        """딕셔너리 변환. rounded=True면 표시용 반올림 적용."""
        data = asdict(self)
        if rounded:
            for key in _PERCENT_FIELDS:
                data[key] = round(data[key], 1)
            for key in _TWO_DECIMAL_FIELDS:
                data[key] = round(data[key], 2)
        return data

    def summary(self) -> str:
        """성과 요약 문자열."""
        lines = [
            "=" * 50,
            "백테스트 성과 리포트",
            "=" * 50,
            f"순이익:          {self.net_profit:>12,.2f}",
            f"총 수익률:       {self.total_return:>12.2f}%",
            f"최대 낙폭(MDD):  {self.max_drawdown:>12.1f}%",
            "-" * 50,
            f"총 거래 횟수:    {self.total_trades:>12d}",
            f"승률:            {self.win_rate:>12.1f}%",
            f"수익 거래:       {self.winning_trades:>12d}",
            f"손실 거래:       {self.losing_trades:>12d}",
            f"평균 수익:       {self.avg_win:>12,.2f}",
            f"평균 손실:       {self.avg_loss:>12,.2f}",
            f"수익 팩터:       {self.profit_factor:>12.2f}",
            f"기대값:          {self.expectancy:>12,.2f}",
            "-" * 50,
            f"최대 연속 수익:  {self.max_consecutive_wins:>12d}",
            f"최대 연속 손실:  {self.max_consecutive_losses:>12d}",
            "=" * 50,
        ]
        return "\n".join(lines)


def drawdown_series(equity_curve: Sequence[float]) -> np.ndarray:
    """봉별 누적 최대 낙폭(%) 배열. 항상 단조 비감소.

    고점이 0 이하인 구간은 낙폭을 정의할 수 없으므로 0으로 취급한다.
    """
    values = np.asarray(equity_curve, dtype=float)
    if values.size == 0:
        return values

    peaks = np.maximum.accumulate(values)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdowns = np.where(peaks > 0, (peaks - values) / peaks * 100, 0.0)
    return np.maximum.accumulate(drawdowns)


def calculate_metrics(
    trades: Sequence[Trade],
    starting_capital: float,
    equity_curve: Sequence[float],
) -> BacktestMetrics:
    """성과 지표 계산.

    Args:
        trades: 청산된 거래 리스트 (종목 1개 또는 병합된 포트폴리오)
        starting_capital: 시작 자본
        equity_curve: 봉별 총 자산 (현금 + 보유 평가액)
    """
    metrics = BacktestMetrics()

    if len(equity_curve) == 0:
        return metrics

    # ─── 손익 ─────────────────────────────────────────────────────────────
    metrics.net_profit = float(equity_curve[-1]) - starting_capital
    if starting_capital > 0:
        metrics.total_return = metrics.net_profit / starting_capital * 100

    # ─── MDD (Maximum Drawdown) ────────────────────────────────────────────
    metrics.max_drawdown = float(drawdown_series(equity_curve)[-1])

    # ─── 거래 기반 지표 ─────────────────────────────────────────────────────
    profits = [t.pnl for t in trades]
    winners = [p for p in profits if p > 0]
    losers = [p for p in profits if p <= 0]

    metrics.total_trades = len(profits)
    metrics.winning_trades = len(winners)
    metrics.losing_trades = len(losers)

    denominator = max(1, len(profits))
    metrics.win_rate = len(winners) / denominator * 100
    metrics.expectancy = metrics.net_profit / denominator

    total_profit = sum(winners)
    total_loss = sum(losers)
    metrics.profit_factor = abs(total_profit / (total_loss or 1))

    metrics.avg_win = total_profit / (len(winners) or 1)
    metrics.avg_loss = total_loss / (len(losers) or 1)

    # 연속 승패
    consecutive_wins = 0
    consecutive_losses = 0
    for p in profits:
        if p > 0:
            consecutive_wins += 1
            consecutive_losses = 0
            metrics.max_consecutive_wins = max(metrics.max_consecutive_wins, consecutive_wins)
        else:
            consecutive_losses += 1
            consecutive_wins = 0
            metrics.max_consecutive_losses = max(metrics.max_consecutive_losses, consecutive_losses)

    return metrics
