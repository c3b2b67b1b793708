"""
설정 관리 모듈.

[ 역할 ]
    config.yaml (또는 .json) 파일을 파싱하여 Config 객체로 변환.
    백테스트 입력, 시뮬레이션 파라미터, 전략 파라미터, 로깅 설정 등을 통합 관리.

[ 설정 파일 구조 (config.yaml) ]
    backtest:         → BacktestConfig (종목, 모드, 자본, 기간 등 실행 입력)
    simulation:       → SimulationConfig (합성 데이터/실행 환경 파라미터)
    strategy:         → StrategyConfig (내장 전략 이름 + 파라미터 오버라이드)
    log_level:        → "INFO" / "DEBUG"
    log_dir:          → 로그 디렉토리 경로

[ 호출하는 곳 ]
    - run_backtest.py에서 Config.from_yaml()로 로드
    - backtest/report.py::run_backtest_simulation()이 BacktestConfig/SimulationConfig 사용
"""

import json
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

import yaml


class BacktestMode(Enum):
    """분석 모드. 모드마다 리포트에 붙는 추가 분석이 정확히 하나로 정해진다."""
    SIMPLE = "SIMPLE"
    WALK_FORWARD = "WALK_FORWARD"
    OPTIMIZATION = "OPTIMIZATION"
    MONTE_CARLO = "MONTE_CARLO"


class TradingStyle(Enum):
    INTRADAY = "INTRADAY"
    SWING = "SWING"


TIMEFRAMES = ("1d", "1h", "15m")


def _parse_enum(enum_cls: type[Enum], value: Any) -> Enum:
    """문자열/Enum 값을 Enum으로 변환. 알 수 없는 값이면 ValueError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        available = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"알 수 없는 {enum_cls.__name__}: '{value}'. 사용 가능: {available}") from None


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


@dataclass(frozen=True)
class BacktestConfig:
    """백테스트 실행 입력. config.yaml의 backtest 섹션에 대응.

    한 번의 실행 동안 변경되지 않는다 (frozen).
    strategy_id는 사용자 전략 레코드의 id로, 라벨링에만 쓰이고 실행 로직에는 영향이 없다.
    """
    symbols: tuple[str, ...] = ("RELIANCE",)
    strategy_id: str = "default"
    trading_style: TradingStyle = TradingStyle.SWING
    timeframe: str = "1d"
    mode: BacktestMode = BacktestMode.SIMPLE
    initial_capital: float = 100_000
    start_date: date = date(2023, 1, 1)
    end_date: date = date(2023, 12, 31)
    walk_forward_split_fraction: float = 0.7   # in-sample 비율 (라벨링용)
    monte_carlo_runs: int = 1000

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BacktestConfig":
        """딕셔너리에서 생성. 알 수 없는 키는 무시하고 타입을 변환한다."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "symbols" in values:
            symbols = values["symbols"]
            if isinstance(symbols, str):
                symbols = [s.strip() for s in symbols.split(",") if s.strip()]
            values["symbols"] = tuple(symbols)
        if "trading_style" in values:
            values["trading_style"] = _parse_enum(TradingStyle, values["trading_style"])
        if "mode" in values:
            values["mode"] = _parse_enum(BacktestMode, values["mode"])
        for key in ("start_date", "end_date"):
            if key in values:
                values[key] = _parse_date(values[key])
        if "initial_capital" in values:
            values["initial_capital"] = float(values["initial_capital"])
        if "walk_forward_split_fraction" in values:
            values["walk_forward_split_fraction"] = float(values["walk_forward_split_fraction"])
        if "monte_carlo_runs" in values:
            values["monte_carlo_runs"] = int(values["monte_carlo_runs"])
        return cls(**values)

    def with_overrides(self, **changes: Any) -> "BacktestConfig":
        """일부 값을 바꾼 새 설정 (CLI 오버라이드용). None 값은 무시."""
        merged = {f.name: getattr(self, f.name) for f in fields(self)}
        merged.update({k: v for k, v in changes.items() if v is not None})
        return BacktestConfig.from_dict(merged)

    def validate(self) -> None:
        """입력 검증.

        Raises:
            ValueError: 잘못된 입력
        """
        if not self.symbols:
            raise ValueError("symbols가 비어 있습니다. 최소 1개 종목이 필요합니다.")
        if self.initial_capital <= 0:
            raise ValueError(f"initial_capital은 양수여야 합니다: {self.initial_capital}")
        if self.end_date < self.start_date:
            raise ValueError(f"end_date({self.end_date})가 start_date({self.start_date})보다 빠릅니다.")
        if not 0 < self.walk_forward_split_fraction < 1:
            raise ValueError(f"walk_forward_split_fraction은 (0, 1) 범위여야 합니다: {self.walk_forward_split_fraction}")
        if self.monte_carlo_runs < 1:
            raise ValueError(f"monte_carlo_runs는 1 이상이어야 합니다: {self.monte_carlo_runs}")
        if self.timeframe not in TIMEFRAMES:
            raise ValueError(f"알 수 없는 timeframe: '{self.timeframe}'. 사용 가능: {', '.join(TIMEFRAMES)}")


@dataclass
class SimulationConfig:
    """시뮬레이션 환경 설정. config.yaml의 simulation 섹션에 대응."""
    volatility: float = 0.02         # 합성 데이터 일간 변동성
    min_bars: int = 30               # 최소 생성 봉 수
    latency_seconds: float = 0.0     # 비동기 실행 시 인위적 지연 (0이면 없음)
    max_workers: int = 4             # 종목별 병렬 실행 스레드 수 (1이면 순차 실행)
    seed: int | None = None          # 난수 seed (None이면 매번 다른 결과)


@dataclass
class StrategyConfig:
    """전략 설정. config.yaml의 strategy 섹션에 대응.

    각 전략 클래스의 DEFAULT_PARAMS가 기본값 역할을 하므로,
    여기서는 오버라이드할 값만 지정하면 된다.
    """
    name: str = "sma_cross"
    params: dict[str, Any] = field(default_factory=dict)


def _plain(value: Any) -> Any:
    """YAML/JSON 직렬화 가능한 값으로 변환."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


@dataclass
class Config:
    """전체 설정. from_yaml() 또는 from_json()으로 파일에서 로드."""
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """YAML 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls._from_dict(data)

    @classmethod
    def from_json(cls, path: str | Path) -> "Config":
        """JSON 파일에서 설정 로드."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """딕셔너리에서 Config 생성."""
        backtest_data = data.get("backtest", {}) or {}
        simulation_data = data.get("simulation", {}) or {}
        strategy_data = data.get("strategy", {}) or {}

        # strategy 섹션: name은 직접 필드, params가 명시적으로 없으면 나머지를 params로
        if "params" in strategy_data:
            strategy_params = dict(strategy_data["params"] or {})
        else:
            strategy_params = {k: v for k, v in strategy_data.items() if k != "name"}
        strategy = StrategyConfig(
            name=strategy_data.get("name", "sma_cross"),
            params=strategy_params,
        )
        simulation = SimulationConfig(**{
            k: v for k, v in simulation_data.items()
            if k in SimulationConfig.__dataclass_fields__
        })

        return cls(
            backtest=BacktestConfig.from_dict(backtest_data),
            simulation=simulation,
            strategy=strategy,
            log_level=data.get("log_level", "INFO"),
            log_dir=data.get("log_dir", "logs"),
        )

    def with_backtest(self, **changes: Any) -> "Config":
        """backtest 섹션 일부를 바꾼 새 Config."""
        return replace(self, backtest=self.backtest.with_overrides(**changes))

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (Enum/날짜는 문자열로)."""
        return _plain(asdict(self))

    def save_yaml(self, path: str | Path) -> None:
        """YAML 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, allow_unicode=True, default_flow_style=False)
