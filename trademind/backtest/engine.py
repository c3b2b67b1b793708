"""
백테스팅 엔진 모듈 (종목 단위 전략 실행기).

[ 역할 ]
    한 종목의 가격 시계열에 전략을 적용하여 가상 매매를 시뮬레이션하고
    거래내역 + 자산곡선 + 성과 지표를 만든다.

[ 실행 흐름 ]
    run() 호출 시:
        1. 종목 전용 Portfolio 생성 (다른 종목과 상태 공유 없음)
        2. 각 봉에 대해 strategy.generate_signal() 호출
           → 현재 봉까지의 데이터만 전달 (미래 데이터 누출 방지)
           → Signal이 BUY/SELL이면 _execute_buy/sell() 실행
        3. 봉마다 총 자산 가치 기록 (equity_curve, 봉 개수와 길이 동일)
        4. metrics.calculate_metrics()로 성과 지표 계산

    종료 시점에 열려 있는 포지션은 청산하지 않으며 거래로 기록하지도 않는다.
    마지막 자산곡선 값에 평가액으로만 반영된다.

[ 의존성 ]
    - core/trading_strategy.py::TradingStrategy (전략 인터페이스)
    - data/portfolio.py::Portfolio (포지션/거래기록 관리)
    - backtest/metrics.py::calculate_metrics() (성과 계산)

[ 호출하는 곳 ]
    - backtest/aggregator.py::PortfolioAggregator에서 종목마다 생성 및 실행
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from trademind.backtest.metrics import BacktestMetrics, calculate_metrics
from trademind.core.data_provider import iter_bars
from trademind.core.trading_strategy import PositionInfo, SignalType, TradingStrategy
from trademind.data.portfolio import Portfolio, Trade

logger = logging.getLogger("trademind.backtest")


@dataclass
class SymbolResult:
    """종목 1개의 백테스트 결과. 생성 후 집계 단계에서 변경하지 않는다."""
    symbol: str
    equity_curve: list[float] = field(default_factory=list)
    trades: list[Trade] = field(default_factory=list)
    metrics: BacktestMetrics = field(default_factory=BacktestMetrics)
    initial_cash: float = 0.0

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "initial_cash": self.initial_cash,
            "equity_curve": [round(v, 2) for v in self.equity_curve] if rounded else list(self.equity_curve),
            "trades": [t.to_dict(rounded=rounded) for t in self.trades],
            "metrics": self.metrics.to_dict(rounded=rounded),
        }


class BacktestEngine:
    """종목 단위 백테스팅 엔진. run()으로 시뮬레이션 실행."""

    def __init__(self, initial_cash: float):
        self.initial_cash = initial_cash

        # 백테스트 실행 후 채워지는 결과
        self.portfolio: Portfolio | None = None       # 최종 계좌 상태
        self.equity_curve: list[float] = []           # 봉별 총 자산 (MDD 계산용)

    def run(
        self,
        symbol: str,
        bars: pd.DataFrame,
        strategy: TradingStrategy,
    ) -> SymbolResult:
        """백테스트 실행.

        Args:
            symbol: 종목 코드
            bars: OHLCV DataFrame (날짜 오름차순)
            strategy: 매매 전략

        Returns:
            SymbolResult: 자산곡선, 거래내역, 성과 지표
        """
        self.portfolio = Portfolio(symbol, self.initial_cash)
        self.equity_curve = []

        bars = bars.reset_index(drop=True)
        for i, bar in enumerate(iter_bars(bars)):
            self._simulate_bar(strategy, symbol, bars.iloc[: i + 1], bar.close, bar.date)
            self.equity_curve.append(self.portfolio.total_value(bar.close))

        metrics = calculate_metrics(
            trades=self.portfolio.trades,
            starting_capital=self.initial_cash,
            equity_curve=self.equity_curve,
        )

        if self.portfolio.position is not None:
            logger.debug(f"{symbol}: 종료 시점 미청산 포지션 {self.portfolio.position.quantity}주 (평가액만 반영)")
        logger.info(f"{symbol}: 백테스트 완료. 거래 {metrics.total_trades}건, 순이익 {metrics.net_profit:,.2f}")

        return SymbolResult(
            symbol=symbol,
            equity_curve=list(self.equity_curve),
            trades=list(self.portfolio.trades),
            metrics=metrics,
            initial_cash=self.initial_cash,
        )

    def _simulate_bar(
        self,
        strategy: TradingStrategy,
        symbol: str,
        available_data: pd.DataFrame,
        current_price: float,
        current_date,
    ) -> None:
        """봉 하나 시뮬레이션. 시그널 생성 → 주문 실행."""
        position = self.portfolio.position
        if position is None:
            position_info = PositionInfo(ticker=symbol)
        else:
            position_info = PositionInfo(
                ticker=symbol,
                quantity=position.quantity,
                entry_price=position.entry_price,
                unrealized_return=position.unrealized_return(current_price),
            )

        signal = strategy.generate_signal(
            market_data=available_data,
            position_info=position_info,
            available_cash=self.portfolio.cash,
        )

        if signal.signal_type == SignalType.BUY:
            self._execute_buy(symbol, signal.quantity, current_price, current_date, signal.reason)
        elif signal.signal_type == SignalType.SELL:
            self._execute_sell(symbol, current_price, current_date, signal.reason)

    def _execute_buy(self, symbol: str, quantity: int, price: float, current_date, reason: str) -> None:
        """매수 실행. 종가에 체결."""
        if self.portfolio.execute_buy(quantity, price, current_date, reason):
            logger.debug(f"[{current_date}] 매수: {symbol} {quantity}주 @ {price:,.2f} ({reason})")

    def _execute_sell(self, symbol: str, price: float, current_date, reason: str) -> None:
        """매도 실행. 포지션 전량을 종가에 청산."""
        trade = self.portfolio.execute_sell(price, current_date, reason)
        if trade is not None:
            logger.debug(
                f"[{current_date}] 매도: {symbol} {trade.quantity}주 @ {price:,.2f} "
                f"-> {trade.pnl:+,.2f} ({reason})"
            )
