"""
난수 공급원 모듈.

[ 역할 ]
    시뮬레이션 전체가 사용하는 난수를 한 곳에서 공급.
    seed를 주면 재현 가능, 주지 않으면 실행마다 결과가 달라진다.

[ 사용하는 곳 ]
    - data/price_generator.py::SyntheticDataProvider (가격 수익률, 고가/저가 폭, 거래량)
    - backtest/analyzers.py::run_monte_carlo() (거래 순서 재배열)
    - backtest/aggregator.py에서 종목별 하위 난수원 생성 (spawn)

[ 참고 ]
    정규분포 변량은 numpy의 normal()이 아니라 두 개의 균등분포 값으로부터
    Box-Muller 변환으로 직접 만든다. 순열은 numpy Generator.permutation
    (Fisher-Yates 기반의 균등 셔플)을 사용한다.
"""

import math
from typing import Any, Sequence

import numpy as np


class RandomSource:
    """numpy Generator를 감싼 주입 가능한 난수원."""

    def __init__(self, seed: int | None = None, generator: np.random.Generator | None = None):
        self.seed = seed
        self._rng = generator if generator is not None else np.random.default_rng(seed)

    def uniform(self) -> float:
        """[0, 1) 균등분포."""
        return float(self._rng.random())

    def uniform_open(self) -> float:
        """(0, 1) 균등분포. 0이 나오면 다시 뽑는다 (log(0) 방지)."""
        u = 0.0
        while u == 0.0:
            u = self.uniform()
        return u

    def uniform_between(self, low: float, high: float) -> float:
        """[low, high) 균등분포."""
        return low + self.uniform() * (high - low)

    def standard_normal(self) -> float:
        """Box-Muller 변환으로 표준정규 변량 생성."""
        u = self.uniform_open()
        v = self.uniform_open()
        return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)

    def permutation(self, values: Sequence[Any]) -> list[Any]:
        """값들의 균등 무작위 순열 (원본은 변경하지 않음)."""
        order = self._rng.permutation(len(values))
        return [values[i] for i in order]

    def spawn(self, count: int) -> list["RandomSource"]:
        """독립적인 하위 난수원 count개 생성. 종목별 병렬 실행용."""
        return [RandomSource(generator=g) for g in self._rng.spawn(count)]
