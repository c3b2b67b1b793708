"""
포트폴리오 관리 모듈.

[ 역할 ]
    한 종목 시뮬레이션의 현금, 보유 포지션(Position), 거래 기록(Trade)을 관리.
    백테스트 엔진이 매수/매도 실행 시 이 클래스를 통해 상태를 갱신.

[ 주요 클래스 ]
    Position  - 진입가/수량/진입일 추적 (청산 시 사라짐, 분할매수 없음)
    Trade     - 청산이 완료된 왕복 거래 1건 (생성 후 변경 불가)
    Portfolio - 종목별 계좌 (현금 + 포지션 0~1개 + 거래내역)

[ 호출하는 곳 ]
    - backtest/engine.py::BacktestEngine에서 portfolio.execute_buy/sell() 호출
    - backtest/metrics.py에서 Trade 리스트로 성과 계산
"""

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any


class Direction(Enum):
    """포지션 방향. 내장 전략은 LONG만 사용한다."""
    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(Enum):
    WIN = "WIN"
    LOSS = "LOSS"


@dataclass
class Position:
    """보유 포지션. 진입~청산 사이에만 존재."""
    ticker: str
    quantity: int
    entry_price: float
    entry_date: date
    entry_reason: str = ""
    direction: Direction = Direction.LONG

    def market_value(self, price: float) -> float:
        """현재가 기준 평가 금액."""
        return self.quantity * price

    def unrealized_return(self, price: float) -> float:
        """미실현 수익률 (비율, 0.08 = +8%)."""
        if self.entry_price <= 0:
            return 0.0
        return (price - self.entry_price) / self.entry_price


@dataclass(frozen=True)
class Trade:
    """청산 완료된 거래 기록. metrics.py에서 승률/수익 계산에 사용됨."""
    symbol: str
    direction: Direction
    entry_date: date
    exit_date: date
    entry_price: float
    exit_price: float
    quantity: int
    pnl: float                # 실현 손익
    pnl_percent: float        # 수익률 (%)
    entry_reason: str
    exit_reason: str
    status: TradeStatus
    id: str = ""              # "{종목}-{순번}", Portfolio가 청산 순서대로 부여

    def to_dict(self, rounded: bool = True) -> dict[str, Any]:
        """딕셔너리 변환. rounded=True면 표시용으로 소수 둘째 자리까지."""
        data = asdict(self)
        data["direction"] = self.direction.value
        data["status"] = self.status.value
        data["entry_date"] = self.entry_date.isoformat()
        data["exit_date"] = self.exit_date.isoformat()
        if rounded:
            for key in ("entry_price", "exit_price", "pnl", "pnl_percent"):
                data[key] = round(data[key], 2)
        return data


class Portfolio:
    """종목 1개를 위한 계좌.

    BacktestEngine이 종목마다 하나씩 소유하며, 다른 종목과 상태를 공유하지 않는다.
    동시에 열린 포지션은 최대 1개.
    """

    def __init__(self, symbol: str, initial_cash: float):
        self.symbol = symbol
        self.initial_cash = initial_cash
        self.cash = initial_cash                 # 가용 현금
        self.position: Position | None = None    # 보유 포지션 (없으면 None)
        self.trades: list[Trade] = []            # 청산된 거래 내역

    def total_value(self, price: float) -> float:
        """총 자산 (현금 + 보유 포지션 평가액)."""
        if self.position is None:
            return self.cash
        return self.cash + self.position.market_value(price)

    def execute_buy(
        self,
        quantity: int,
        price: float,
        date: date,
        reason: str = "",
    ) -> bool:
        """매수(진입) 실행. 이미 보유 중이거나 현금이 부족하면 False."""
        if self.position is not None or quantity <= 0:
            return False

        total_cost = price * quantity
        if total_cost > self.cash:
            return False

        self.cash -= total_cost
        self.position = Position(
            ticker=self.symbol,
            quantity=quantity,
            entry_price=price,
            entry_date=date,
            entry_reason=reason,
        )
        return True

    def execute_sell(
        self,
        price: float,
        date: date,
        reason: str = "",
    ) -> Trade | None:
        """매도(청산) 실행. 포지션 전량을 청산하고 Trade를 기록."""
        position = self.position
        if position is None:
            return None

        pnl = (price - position.entry_price) * position.quantity
        pnl_percent = position.unrealized_return(price) * 100

        trade = Trade(
            id=f"{self.symbol}-{len(self.trades) + 1:04d}",
            symbol=self.symbol,
            direction=position.direction,
            entry_date=position.entry_date,
            exit_date=date,
            entry_price=position.entry_price,
            exit_price=price,
            quantity=position.quantity,
            pnl=pnl,
            pnl_percent=pnl_percent,
            entry_reason=position.entry_reason,
            exit_reason=reason,
            status=TradeStatus.WIN if pnl > 0 else TradeStatus.LOSS,
        )

        self.cash += position.market_value(price)
        self.position = None
        self.trades.append(trade)
        return trade

