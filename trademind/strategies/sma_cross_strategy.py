"""
단순이동평균 교차(SMA Cross) 전략 구현.

[ 역할 ]
    core/trading_strategy.py::TradingStrategy의 구현체.
    "단기 SMA가 장기 SMA를 상향 돌파하면 매수, 익절/손절/역교차 시 전량 매도"
    백테스트 엔진이 사용하는 유일한 내장 전략. 설정의 strategy_id와 무관하게 항상 이 전략이 실행된다.

[ 전략 흐름 ]
    매 봉마다 generate_signal() 호출됨 (← backtest/engine.py에서)
        ├── 장기 SMA 기간 + 2봉 미만이면 HOLD (지표 계산 불가)
        ├── 보유 중이면 should_sell() 체크 (우선순위 순)
        │     ├── 미실현 수익률 > +8%  → SELL "Take Profit Hit (+8%)"
        │     ├── 미실현 수익률 < -3%  → SELL "Stop Loss Hit (-3%)"
        │     └── 단기 SMA < 장기 SMA  → SELL "Indicator Reversal"
        └── 미보유면 should_buy() 체크
              └── 직전 봉 단기 <= 장기 이고 현재 봉 단기 > 장기 → BUY "SMA Golden Cross"

[ 파라미터 (config.yaml의 strategy.params에서 오버라이드) ]
    short_period:       단기 SMA 기간 (봉)
    long_period:        장기 SMA 기간 (봉)
    position_size_pct:  진입 시 사용할 현금 비율 (%)
    take_profit_pct:    익절 기준 (%)
    stop_loss_pct:      손절 기준 (%)
"""

from typing import Any, NamedTuple

import pandas as pd

from trademind.core.trading_strategy import (
    PositionInfo,
    Signal,
    SignalType,
    TradingStrategy,
)
from trademind.strategies import register


class SmaSnapshot(NamedTuple):
    """현재 봉과 직전 봉의 단기/장기 SMA 값."""
    short: float
    long: float
    prev_short: float
    prev_long: float


@register("sma_cross")
class SmaCrossStrategy(TradingStrategy):
    """SMA 골든크로스 추세추종 전략. LONG 진입만 한다."""

    DEFAULT_PARAMS = {
        "short_period": 9,
        "long_period": 21,
        "position_size_pct": 95.0,
        "take_profit_pct": 8.0,
        "stop_loss_pct": 3.0,
    }

    ENTRY_REASON = "SMA Golden Cross"
    REVERSAL_REASON = "Indicator Reversal"

    def __init__(self, params: dict[str, Any] | None = None):
        merged = {**self.DEFAULT_PARAMS, **(params or {})}
        super().__init__(name="sma_cross", params=merged)
        if self.short_period >= self.long_period:
            raise ValueError(
                f"short_period({self.short_period})는 long_period({self.long_period})보다 작아야 합니다."
            )

    @property
    def short_period(self) -> int:
        return int(self.params["short_period"])

    @property
    def long_period(self) -> int:
        return int(self.params["long_period"])

    @property
    def position_size_pct(self) -> float:
        return float(self.params["position_size_pct"])

    @property
    def take_profit(self) -> float:
        return float(self.params["take_profit_pct"]) / 100

    @property
    def stop_loss(self) -> float:
        return float(self.params["stop_loss_pct"]) / 100

    @property
    def take_profit_reason(self) -> str:
        return f"Take Profit Hit (+{float(self.params['take_profit_pct']):g}%)"

    @property
    def stop_loss_reason(self) -> str:
        return f"Stop Loss Hit (-{float(self.params['stop_loss_pct']):g}%)"

    @property
    def min_bars(self) -> int:
        """SMA 교차 판정에 필요한 최소 봉 수."""
        return self.long_period + 2

    def sma_snapshot(self, market_data: pd.DataFrame) -> SmaSnapshot | None:
        """현재/직전 봉 기준 SMA 계산. 데이터가 부족하면 None.

        봉 i의 SMA는 i 직전 k개 종가(i-k .. i-1)의 평균이다. 현재 봉 종가는 포함하지 않는다.
        """
        if len(market_data) < self.min_bars:
            return None

        closes = market_data["close"].to_numpy(dtype=float)
        short_n, long_n = self.short_period, self.long_period
        return SmaSnapshot(
            short=float(closes[-short_n - 1:-1].mean()),
            long=float(closes[-long_n - 1:-1].mean()),
            prev_short=float(closes[-short_n - 2:-2].mean()),
            prev_long=float(closes[-long_n - 2:-2].mean()),
        )

    def should_buy(
        self,
        market_data: pd.DataFrame,
        position_info: PositionInfo,
        available_cash: float,
    ) -> tuple[bool, str]:
        """매수 조건: 미보유 + 골든크로스 (직전 단기 <= 장기, 현재 단기 > 장기)."""
        if position_info.is_open:
            return False, "이미 보유 중"

        sma = self.sma_snapshot(market_data)
        if sma is None:
            return False, f"데이터 부족 (최소 {self.min_bars}봉 필요)"

        if sma.prev_short <= sma.prev_long and sma.short > sma.long:
            return True, self.ENTRY_REASON

        return False, f"교차 없음 (SMA{self.short_period}: {sma.short:,.2f}, SMA{self.long_period}: {sma.long:,.2f})"

    def should_sell(
        self,
        market_data: pd.DataFrame,
        position_info: PositionInfo,
    ) -> tuple[bool, str]:
        """매도 조건: 익절 > 손절 > 역교차 순으로 판단."""
        if not position_info.is_open:
            return False, "보유 수량 없음"

        ret = position_info.unrealized_return
        if ret > self.take_profit:
            return True, self.take_profit_reason
        if ret < -self.stop_loss:
            return True, self.stop_loss_reason

        sma = self.sma_snapshot(market_data)
        if sma is not None and sma.short < sma.long:
            return True, self.REVERSAL_REASON

        return False, f"홀딩 (수익률: {ret * 100:.2f}%)"

    def generate_signal(
        self,
        market_data: pd.DataFrame,
        position_info: PositionInfo,
        available_cash: float,
    ) -> Signal:
        """매매 시그널 생성. 보유 중이면 매도만, 미보유면 매수만 판단."""
        ticker = position_info.ticker

        if len(market_data) < self.min_bars:
            return Signal(
                signal_type=SignalType.HOLD,
                ticker=ticker,
                reason=f"데이터 부족 (최소 {self.min_bars}봉 필요)",
            )

        current_price = float(market_data.iloc[-1]["close"])

        if position_info.is_open:
            sell, reason = self.should_sell(market_data, position_info)
            if sell:
                return Signal(
                    signal_type=SignalType.SELL,
                    ticker=ticker,
                    price=current_price,
                    quantity=position_info.quantity,
                    reason=reason,
                )
            return Signal(signal_type=SignalType.HOLD, ticker=ticker, reason=reason)

        buy, reason = self.should_buy(market_data, position_info, available_cash)
        if buy:
            qty = self.calculate_position_size(available_cash, Signal(
                signal_type=SignalType.BUY,
                ticker=ticker,
                price=current_price,
            ))
            if qty > 0:
                return Signal(
                    signal_type=SignalType.BUY,
                    ticker=ticker,
                    price=current_price,
                    quantity=qty,
                    reason=reason,
                )
            reason = "매수 가능 수량 0"

        return Signal(signal_type=SignalType.HOLD, ticker=ticker, reason=reason)

    def calculate_position_size(self, available_cash: float, signal: Signal) -> int:
        """매수 수량 계산: floor(현금 * position_size_pct / 100 / 가격)."""
        if signal.price <= 0:
            return 0

        buy_amount = available_cash * self.position_size_pct / 100
        return int(buy_amount // signal.price)
