from datetime import date

import numpy as np
import pytest

from trademind.core.random_source import RandomSource
from trademind.data.price_generator import SyntheticDataProvider, bar_count


def test_generate_bar_count_and_columns(rng):
    provider = SyntheticDataProvider(rng)

    df = provider.generate("TEST", bars=120, start_price=500.0, start_date=date(2023, 1, 1))

    assert len(df) == 120
    assert list(df.columns) == ["date", "open", "high", "low", "close", "volume"]
    assert df.iloc[0]["open"] == 500.0
    assert df.iloc[0]["date"] == date(2023, 1, 1)


def test_generated_bars_respect_ohlc_bounds(rng):
    df = SyntheticDataProvider(rng).generate("TEST", bars=500, start_price=250.0)

    assert (df["low"] <= df[["open", "close"]].min(axis=1)).all()
    assert (df["high"] >= df[["open", "close"]].max(axis=1)).all()


def test_open_equals_previous_close_and_dates_increase(rng):
    df = SyntheticDataProvider(rng).generate("TEST", bars=60, start_price=100.0, start_date=date(2024, 3, 1))

    assert np.allclose(df["open"].to_numpy()[1:], df["close"].to_numpy()[:-1], rtol=0, atol=0)
    dates = list(df["date"])
    assert all((b - a).days == 1 for a, b in zip(dates, dates[1:]))


def test_volume_within_range(rng):
    provider = SyntheticDataProvider(rng, volume_range=(50_000, 1_050_000))

    df = provider.generate("TEST", bars=300, start_price=100.0)

    assert df["volume"].min() >= 50_000
    assert df["volume"].max() < 1_050_000


def test_same_seed_reproduces_series():
    a = SyntheticDataProvider(RandomSource(seed=11)).generate("A", 50, 100.0, date(2023, 1, 1))
    b = SyntheticDataProvider(RandomSource(seed=11)).generate("B", 50, 100.0, date(2023, 1, 1))

    assert a["close"].tolist() == b["close"].tolist()


def test_box_muller_draws_are_standard_normal():
    source = RandomSource(seed=3)

    draws = np.array([source.standard_normal() for _ in range(20_000)])

    assert abs(draws.mean()) < 0.05
    assert draws.std() == pytest.approx(1.0, abs=0.05)


def test_get_ohlcv_uses_date_range(rng):
    provider = SyntheticDataProvider(rng, start_price_range=(100.0, 1100.0))

    df = provider.get_ohlcv("TEST", date(2023, 1, 1), date(2023, 12, 31))

    assert len(df) == 364
    assert 100.0 <= df.iloc[0]["open"] < 1100.0


def test_bar_count_has_minimum():
    assert bar_count(date(2023, 1, 1), date(2023, 1, 10)) == 30
    assert bar_count(date(2023, 1, 1), date(2023, 1, 1)) == 30
    assert bar_count(date(2023, 1, 1), date(2023, 12, 31)) == 364


def test_permutation_keeps_multiset(rng):
    values = [1.5, -2.0, 3.25, 0.0, 4.0]

    shuffled = rng.permutation(values)

    assert sorted(shuffled) == sorted(values)
    assert values == [1.5, -2.0, 3.25, 0.0, 4.0]


def test_permutation_produces_every_order():
    source = RandomSource(seed=5)

    seen = {tuple(source.permutation([1, 2, 3])) for _ in range(300)}

    assert len(seen) == 6
