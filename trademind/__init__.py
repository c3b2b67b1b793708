"""
=============================================================================
TradeMind 백테스트 시뮬레이션 엔진
=============================================================================

[ 시스템 전체 구조 ]

    run_backtest.py (진입점)
         │
         ├── utils/config.py        ← config.yaml 설정 로드 (BacktestConfig 등)
         ├── utils/logger.py        ← 로깅
         │
         └── backtest/report.py     ← run_backtest_simulation() : 리포트 조립
               │
               ├── backtest/aggregator.py   ← 종목별 실행 + 포트폴리오 합산
               │     ├── data/price_generator.py  ← 합성 OHLCV 생성
               │     ├── backtest/engine.py       ← 종목 단위 전략 실행
               │     │     ├── strategies/sma_cross_strategy.py
               │     │     └── data/portfolio.py  ← 포지션/거래기록 관리
               │     └── backtest/metrics.py      ← 성과 지표 계산
               │
               └── backtest/analyzers.py    ← 모드별 추가 분석


[ 핵심 추상 클래스 (core/) ]

    core/data_provider.py    → data/price_generator.py::SyntheticDataProvider
    core/trading_strategy.py → strategies/sma_cross_strategy.py::SmaCrossStrategy
    core/random_source.py    ← 모든 난수의 단일 공급원 (seed 지정 시 재현 가능)


[ 데이터 흐름 ]

    1. BacktestConfig (종목, 모드, 자본, 기간) 입력
    2. 기간 → 봉 개수, 자본 → 종목별 균등 배분
    3. 종목마다 합성 데이터 생성 → SMA 교차 전략 실행 → 거래내역/자산곡선/지표
    4. 거래내역 병합(청산일 순) + 자산곡선 합산 → 포트폴리오 지표
    5. 모드별 분석 (OPTIMIZATION / MONTE_CARLO / WALK_FORWARD, SIMPLE은 없음)
    6. FullBacktestReport 반환


[ 외부 협력자 (엔진은 직접 사용하지 않음) ]

    data/strategy_store.py   ← 사용자 전략/관심종목 저장소 (load/save)
    data/universe.py         ← 지수 구성 종목 목록
"""

__version__ = "0.1.0"
