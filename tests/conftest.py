from __future__ import annotations

import asyncio
from typing import List

import pytest

from bagua.algo.engine import CoinEngine, yao_from_sum
from bagua.algo.errors import EmptyInterpretationError
from bagua.algo.gua_types import Yao


def make_yaos(*sums: int) -> List[Yao]:
    return [yao_from_sum(total) for total in sums]


class FixedCoinEngine(CoinEngine):
    """按给定的三钱结果依次起爻"""

    def __init__(self, tosses):
        super().__init__()
        self._tosses = list(tosses)

    def toss(self):
        return self._tosses.pop(0)


class ScriptedClient:
    """按脚本回放解读结果；每次调用消耗一个脚本，用完后重复最后一个"""

    def __init__(self, *scripts):
        self.scripts = list(scripts) or [{"fragments": ["解读"]}]
        self.calls = []

    async def request_interpretation(self, primary, changed, on_partial=None):
        script = self.scripts[min(len(self.calls), len(self.scripts) - 1)]
        self.calls.append((primary, changed))
        gate = script.get("gate")
        if gate is not None:
            await gate.wait()
        text = ""
        for fragment in script.get("fragments", []):
            text += fragment
            if on_partial is not None:
                on_partial(text)
            await asyncio.sleep(0)
        hold = script.get("hold")
        if hold is not None:
            await hold.wait()
        if script.get("error") is not None:
            raise script["error"]
        if not text:
            raise EmptyInterpretationError()
        return text


@pytest.fixture
def all_yang():
    return make_yaos(7, 7, 7, 7, 7, 7)


@pytest.fixture
def all_yin():
    return make_yaos(8, 8, 8, 8, 8, 8)
