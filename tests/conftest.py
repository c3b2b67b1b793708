from datetime import date, timedelta

import pandas as pd
import pytest

from trademind.core.random_source import RandomSource
from trademind.data.portfolio import Direction, Trade, TradeStatus


@pytest.fixture
def rng():
    return RandomSource(seed=7)


def make_bars(closes, start=date(2023, 1, 1)):
    """종가 리스트로 OHLCV DataFrame 생성 (시가 = 직전 종가)."""
    rows = []
    prev = closes[0]
    for i, close in enumerate(closes):
        rows.append({
            "date": start + timedelta(days=i),
            "open": prev,
            "high": max(prev, close),
            "low": min(prev, close),
            "close": close,
            "volume": 100_000,
        })
        prev = close
    return pd.DataFrame(rows)


def make_trade(pnl, exit_day=1, symbol="TEST", pnl_percent=None):
    entry = date(2023, 1, 1)
    return Trade(
        symbol=symbol,
        direction=Direction.LONG,
        entry_date=entry,
        exit_date=entry + timedelta(days=exit_day),
        entry_price=100.0,
        exit_price=100.0 + pnl,
        quantity=1,
        pnl=pnl,
        pnl_percent=pnl if pnl_percent is None else pnl_percent,
        entry_reason="SMA Golden Cross",
        exit_reason="Indicator Reversal",
        status=TradeStatus.WIN if pnl > 0 else TradeStatus.LOSS,
    )
