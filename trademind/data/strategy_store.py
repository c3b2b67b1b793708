"""
사용자 전략/관심종목 저장소 모듈.

[ 역할 ]
    사용자가 작성한 전략 레코드와 관심종목 목록을 저장/로드하는 인터페이스.
    백테스트 엔진은 이 저장소를 직접 읽지 않는다. 호출자가 여기서 전략 id를 골라
    BacktestConfig.strategy_id에 넣어 전달할 뿐이며, 엔진은 그 id를 라벨로만 쓴다.

[ 주요 클래스 ]
    StrategyRecord       - 사용자 전략 레코드 (표시용 규칙 텍스트)
    RecordStore          - load() / save(records) 추상 인터페이스
    JsonRecordStore      - JSON 파일 기반 구현체
    InMemoryRecordStore  - 메모리 구현체 (테스트용)

[ 호출하는 곳 ]
    - run_backtest.py에서 --strategies-file 지정 시 strategy_id 표시 이름 조회
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Generic, Iterable, TypeVar

from trademind.utils.config import TradingStyle

logger = logging.getLogger("trademind.data")

T = TypeVar("T")


@dataclass
class StrategyRecord:
    """사용자 전략 레코드. 실행 로직과 무관한 표시용 정보."""
    id: str
    name: str
    description: str = ""
    trading_style: TradingStyle = TradingStyle.SWING
    indicators: list[str] = field(default_factory=list)
    candlestick_patterns: list[str] = field(default_factory=list)
    chart_patterns: list[str] = field(default_factory=list)
    entry_rules: str = ""
    exit_rules: str = ""
    stop_loss_rules: str = ""
    created_date: int = field(default_factory=lambda: int(time.time() * 1000))  # epoch ms

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["trading_style"] = self.trading_style.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyRecord":
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "trading_style" in values:
            values["trading_style"] = TradingStyle(str(values["trading_style"]).upper())
        values["id"] = str(values.get("id", ""))
        return cls(**values)


class RecordStore(ABC, Generic[T]):
    """레코드 목록 저장소 인터페이스."""

    @abstractmethod
    def load(self) -> list[T]:
        """저장된 레코드 전체 로드. 저장된 것이 없으면 빈 리스트."""
        ...

    @abstractmethod
    def save(self, records: Iterable[T]) -> None:
        """레코드 전체를 덮어써서 저장."""
        ...


class InMemoryRecordStore(RecordStore[T]):
    """메모리 저장소."""

    def __init__(self, records: Iterable[T] | None = None):
        self._records: list[T] = list(records or [])

    def load(self) -> list[T]:
        return list(self._records)

    def save(self, records: Iterable[T]) -> None:
        self._records = list(records)


class JsonRecordStore(RecordStore[StrategyRecord]):
    """JSON 파일 기반 전략 저장소.

    사용 예:
        store = JsonRecordStore("data/strategies.json")
        records = store.load()
        store.save([*records, StrategyRecord(id="1", name="Breakout")])
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[StrategyRecord]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return [StrategyRecord.from_dict(item) for item in raw]

    def save(self, records: Iterable[StrategyRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.to_dict() for r in records]
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logger.debug(f"전략 {len(payload)}건 저장: {self.path}")


class WatchlistStore(RecordStore[str]):
    """JSON 파일 기반 관심종목 저장소 (종목 코드 리스트)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[str]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [str(s) for s in json.load(f)]

    def save(self, records: Iterable[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        symbols = list(dict.fromkeys(records))
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(symbols, f, ensure_ascii=False, indent=2)


def find_strategy(records: Iterable[StrategyRecord], strategy_id: str) -> StrategyRecord | None:
    """id로 전략 레코드 조회. 없으면 None (엔진은 존재 여부를 검증하지 않는다)."""
    for record in records:
        if record.id == strategy_id:
            return record
    return None
