from __future__ import annotations

import random
from typing import List

from .gua_types import Yao

HEADS = 2  # 字
TAILS = 3  # 背
COINS = 3


def yao_from_sum(total: int) -> Yao:
    return Yao.from_sum(total)


class CoinEngine:
    """三钱法引擎（可注入随机源）"""

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def toss(self) -> List[int]:
        return [HEADS if self.rng.random() < 0.5 else TAILS for _ in range(COINS)]

    def cast_line(self) -> Yao:
        return yao_from_sum(sum(self.toss()))

    def six_yaos(self) -> List[Yao]:
        """自下而上六爻，下标 0 为初爻"""
        return [self.cast_line() for _ in range(6)]


_default_engine = CoinEngine()


def cast_line() -> Yao:
    return _default_engine.cast_line()
