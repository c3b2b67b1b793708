"""
합성 가격 데이터 생성 모듈.

[ 역할 ]
    core/data_provider.py::DataProvider 구현체.
    실제 시세 대신 무작위 보행(random walk) 방식으로 일봉 OHLCV를 생성.

[ 생성 규칙 ]
    - 일간 수익률 = 표준정규 변량(Box-Muller) * 변동성(기본 2%)
    - 종가 = 시가 * (1 + 수익률), 다음 봉의 시가 = 이전 봉의 종가
    - 고가 = max(시가, 종가) * (1 + u1 * 1%)
    - 저가 = min(시가, 종가) * (1 - u2 * 1%)
    - 거래량 = 고정 범위 내 균등분포 (가격과 무관)

[ 호출하는 곳 ]
    - backtest/aggregator.py::PortfolioAggregator가 종목별로 generate() 호출
"""

import logging
from datetime import date, timedelta

import pandas as pd

from trademind.core.data_provider import BAR_COLUMNS, DataProvider
from trademind.core.random_source import RandomSource

logger = logging.getLogger("trademind.data")

MIN_BARS = 30  # 기간이 짧아도 최소 이만큼은 생성


def bar_count(start_date: date, end_date: date, minimum: int = MIN_BARS) -> int:
    """기간(일수)으로 생성할 봉 개수 계산. max(minimum, 일수)."""
    return max(minimum, (end_date - start_date).days)


class SyntheticDataProvider(DataProvider):
    """난수원 기반 합성 OHLCV 생성기.

    사용 예:
        provider = SyntheticDataProvider(RandomSource(seed=42))
        df = provider.generate("RELIANCE", bars=250, start_price=1000.0)
    """

    def __init__(
        self,
        random_source: RandomSource | None = None,
        volatility: float = 0.02,                   # 일간 변동성
        intrabar_range: float = 0.01,               # 고가/저가 최대 확장폭
        volume_range: tuple[int, int] = (50_000, 1_050_000),
        start_price_range: tuple[float, float] = (100.0, 1100.0),
        min_bars: int = MIN_BARS,
    ):
        self.random = random_source or RandomSource()
        self.volatility = volatility
        self.intrabar_range = intrabar_range
        self.volume_range = volume_range
        self.start_price_range = start_price_range
        self.min_bars = min_bars

    def random_start_price(self) -> float:
        """시작 가격을 start_price_range 내에서 무작위 선택."""
        low, high = self.start_price_range
        return self.random.uniform_between(low, high)

    def generate(
        self,
        symbol: str,
        bars: int,
        start_price: float,
        start_date: date | None = None,
    ) -> pd.DataFrame:
        """봉 bars개 생성.

        Args:
            symbol: 종목 코드 (라벨링용, 생성에는 사용하지 않음)
            bars: 생성할 봉 개수
            start_price: 첫 봉의 시가
            start_date: 첫 봉 날짜. None이면 오늘로부터 bars일 전

        Returns:
            DataFrame with columns: [date, open, high, low, close, volume]
        """
        if start_date is None:
            start_date = date.today() - timedelta(days=bars)

        vol_low, vol_high = self.volume_range
        rows = []
        price = start_price
        for i in range(bars):
            change = self.random.standard_normal() * self.volatility
            open_price = price
            close = open_price * (1 + change)
            high = max(open_price, close) * (1 + self.random.uniform() * self.intrabar_range)
            low = min(open_price, close) * (1 - self.random.uniform() * self.intrabar_range)
            volume = int(self.random.uniform_between(vol_low, vol_high))

            rows.append({
                "date": start_date + timedelta(days=i),
                "open": open_price,
                "high": high,
                "low": low,
                "close": close,
                "volume": volume,
            })
            price = close

        logger.debug(f"{symbol}: 합성 데이터 {bars}봉 생성 (시작가 {start_price:,.2f})")
        return pd.DataFrame(rows, columns=BAR_COLUMNS)

    def get_ohlcv(
        self,
        ticker: str,
        start_date: date,
        end_date: date,
    ) -> pd.DataFrame:
        """기간에 해당하는 봉 개수만큼 무작위 시작가로 생성."""
        bars = bar_count(start_date, end_date, self.min_bars)
        return self.generate(ticker, bars, self.random_start_price(), start_date)
