"""
백테스트 실행 스크립트 (시스템 진입점).

[ 사용법 ]
    # 기본 실행 (config.yaml의 backtest 섹션 사용)
    python run_backtest.py

    # 종목/모드 지정
    python run_backtest.py --symbols RELIANCE TCS INFY --mode MONTE_CARLO --runs 500

    # 지수 구성 종목 전체
    python run_backtest.py --index "NIFTY 50" --capital 1000000

    # 재현 가능한 실행
    python run_backtest.py --seed 42

    # JSON 리포트 출력
    python run_backtest.py --mode OPTIMIZATION --json

    # 등록된 전략 / 지수 목록 확인
    python run_backtest.py --list
"""

import argparse
import sys
from pathlib import Path

from trademind.backtest.report import run_backtest_simulation
from trademind.core.random_source import RandomSource
from trademind.data.strategy_store import JsonRecordStore, find_strategy
from trademind.data.universe import list_indices, resolve_universe
from trademind.strategies import list_strategies
from trademind.utils.config import BacktestMode, Config
from trademind.utils.logger import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="합성 데이터 백테스트 실행")
    parser.add_argument("--config", type=str, default="config.yaml", help="설정 파일 경로")
    parser.add_argument("--symbols", nargs="+", default=None, help="종목 코드 (config 대신 지정)")
    parser.add_argument("--index", action="append", default=[], help="지수 구성 종목 사용 (예: --index 'NIFTY 50')")
    parser.add_argument("--mode", type=str, default=None, choices=[m.value for m in BacktestMode], help="분석 모드")
    parser.add_argument("--capital", type=float, default=None, help="초기 자본")
    parser.add_argument("--start", type=str, default=None, help="시작일 (YYYY-MM-DD)")
    parser.add_argument("--end", type=str, default=None, help="종료일 (YYYY-MM-DD)")
    parser.add_argument("--runs", type=int, default=None, help="몬테카를로 반복 횟수")
    parser.add_argument("--split", type=float, default=None, help="walk-forward in-sample 비율 (0~1)")
    parser.add_argument("--seed", type=int, default=None, help="난수 seed")
    parser.add_argument("--strategy-id", type=str, default=None, help="리포트에 표시할 사용자 전략 id")
    parser.add_argument("--strategies-file", type=str, default=None, help="사용자 전략 JSON 파일 (strategy-id 이름 조회용)")
    parser.add_argument("--json", action="store_true", help="JSON 리포트 출력")
    parser.add_argument("--list", action="store_true", help="등록된 전략/지수 목록 출력")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        print("등록된 전략:")
        for name in list_strategies():
            print(f"  - {name}")
        print("지수:")
        for name in list_indices():
            print(f"  - {name}")
        return 0

    # 설정 로드
    config_path = Path(args.config)
    if config_path.exists():
        config = Config.from_yaml(config_path)
    else:
        print(f"설정 파일 없음: {config_path}, 기본값 사용", file=sys.stderr)
        config = Config()

    logger = setup_logger(level=config.log_level, log_dir=config.log_dir, console=not args.json)

    try:
        symbols = resolve_universe(args.index) if args.index else args.symbols
        config = config.with_backtest(
            symbols=symbols,
            mode=args.mode,
            initial_capital=args.capital,
            start_date=args.start,
            end_date=args.end,
            monte_carlo_runs=args.runs,
            walk_forward_split_fraction=args.split,
            strategy_id=args.strategy_id,
        )
        config.backtest.validate()
    except ValueError as e:
        print(f"오류: {e}")
        return 2

    if args.strategies_file:
        record = find_strategy(JsonRecordStore(args.strategies_file).load(), config.backtest.strategy_id)
        if record is None:
            logger.warning(f"전략 id '{config.backtest.strategy_id}'를 찾을 수 없습니다 (라벨로만 사용)")
        else:
            logger.info(f"사용자 전략: {record.name} ({record.trading_style.value})")

    seed = args.seed if args.seed is not None else config.simulation.seed
    try:
        report = run_backtest_simulation(
            config.backtest,
            random_source=RandomSource(seed),
            settings=config.simulation,
            strategy_config=config.strategy,
        )
    except ValueError as e:
        print(f"오류: {e}")
        return 2

    if args.json:
        print(report.to_json())
    else:
        print(report.summary())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
