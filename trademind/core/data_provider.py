"""
주가 데이터 제공 추상 클래스 정의.

[ 역할 ]
    일봉 OHLCV(시가/고가/저가/종가/거래량) 데이터를 제공하는 인터페이스.
    데이터 소스(합성 데이터, 향후 실제 시세)에 독립적으로 백테스트에 데이터 공급.

[ 구현체 ]
    - data/price_generator.py::SyntheticDataProvider (합성 가격 생성기)

[ 호출하는 곳 ]
    - backtest/aggregator.py::PortfolioAggregator가 종목별로 데이터 요청
    - backtest/engine.py::BacktestEngine이 iter_bars()로 봉 단위 순회
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Iterator

import pandas as pd

# get_ohlcv()가 반환하는 DataFrame의 컬럼 순서
BAR_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class Bar:
    """단일 봉(캔들) 데이터."""
    date: date
    open: float      # 시가
    high: float      # 고가
    low: float       # 저가
    close: float     # 종가
    volume: int      # 거래량


def iter_bars(df: pd.DataFrame) -> Iterator[Bar]:
    """OHLCV DataFrame을 Bar 단위로 순회."""
    for row in df[BAR_COLUMNS].itertuples(index=False):
        yield Bar(
            date=row.date,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=int(row.volume),
        )


class DataProvider(ABC):
    """주가 데이터 제공 추상 클래스.

    모든 데이터 제공자 구현체는 이 클래스를 상속받아 아래 메서드를 구현해야 한다.
    """

    @abstractmethod
    def get_ohlcv(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """OHLCV 데이터 조회.

        Args:
            ticker: 종목 코드
            start_date: 시작일
            end_date: 종료일

        Returns:
            DataFrame with columns: [date, open, high, low, close, volume]
        """
        ...
