import json

import pytest

from trademind.data.strategy_store import (
    InMemoryRecordStore,
    JsonRecordStore,
    StrategyRecord,
    WatchlistStore,
    find_strategy,
)
from trademind.data.universe import NIFTY_50, NIFTY_100, resolve_universe
from trademind.utils.config import TradingStyle


def test_json_store_round_trip(tmp_path):
    store = JsonRecordStore(tmp_path / "strategies.json")
    record = StrategyRecord(
        id="1700000000000",
        name="Breakout",
        trading_style=TradingStyle.INTRADAY,
        indicators=["EMA 9", "RSI 14"],
        entry_rules="Price closes above 20 EMA",
    )

    store.save([record])

    assert store.load() == [record]
    raw = json.loads((tmp_path / "strategies.json").read_text(encoding="utf-8"))
    assert raw[0]["trading_style"] == "INTRADAY"


def test_json_store_missing_file_is_empty(tmp_path):
    assert JsonRecordStore(tmp_path / "none.json").load() == []


def test_in_memory_store_returns_copies():
    store = InMemoryRecordStore(["A"])
    loaded = store.load()
    loaded.append("B")

    assert store.load() == ["A"]
    store.save(["C"])
    assert store.load() == ["C"]


def test_watchlist_store_dedupes(tmp_path):
    store = WatchlistStore(tmp_path / "watchlist.json")

    store.save(["NIFTY 50", "RELIANCE", "NIFTY 50"])

    assert store.load() == ["NIFTY 50", "RELIANCE"]


def test_find_strategy():
    records = [StrategyRecord(id="a", name="A"), StrategyRecord(id="b", name="B")]

    assert find_strategy(records, "b").name == "B"
    assert find_strategy(records, "missing") is None


def test_resolve_universe_widest_index_wins():
    assert resolve_universe([]) == []
    assert resolve_universe(["NIFTY 50"]) == sorted(NIFTY_50)
    assert resolve_universe(["nifty 50", "NIFTY 100"]) == sorted(set(NIFTY_100))


def test_resolve_universe_unknown_index():
    with pytest.raises(ValueError, match="NIFTY 50"):
        resolve_universe(["DOW JONES"])
