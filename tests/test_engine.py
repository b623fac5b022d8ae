import random

import pytest

from bagua.algo.engine import HEADS, TAILS, CoinEngine, cast_line, yao_from_sum
from bagua.algo.errors import DataIntegrityError
from bagua.algo.gua_types import Yao, YaoType, YinYang, YinYangType

from conftest import FixedCoinEngine


@pytest.mark.parametrize(
    "coins, value, yin, changing",
    [
        ([HEADS, HEADS, HEADS], 6, True, True),
        ([HEADS, HEADS, TAILS], 7, False, False),
        ([HEADS, TAILS, TAILS], 8, True, False),
        ([TAILS, TAILS, TAILS], 9, False, True),
    ],
)
def test_cast_line_maps_coin_sum(coins, value, yin, changing):
    yao = FixedCoinEngine([coins]).cast_line()
    assert yao == Yao(value=value, yin=yin, changing=changing)


@pytest.mark.parametrize("total", [0, 5, 10, 12])
def test_invalid_sum_is_rejected(total):
    with pytest.raises(DataIntegrityError):
        yao_from_sum(total)


def test_broken_coin_encoding_is_caught():
    with pytest.raises(DataIntegrityError):
        FixedCoinEngine([[HEADS, HEADS, 1]]).cast_line()


def test_data_integrity_error_is_value_error():
    with pytest.raises(ValueError):
        Yao.from_sum(4)


def test_six_yaos_is_bottom_first():
    tosses = [[HEADS, HEADS, HEADS]] + [[HEADS, HEADS, TAILS]] * 5
    yaos = FixedCoinEngine(tosses).six_yaos()
    assert len(yaos) == 6
    assert yaos[0].value == 6
    assert all(yao.value == 7 for yao in yaos[1:])


def test_seeded_engine_is_reproducible():
    first = CoinEngine(random.Random(42)).six_yaos()
    second = CoinEngine(random.Random(42)).six_yaos()
    assert first == second


def test_random_casts_stay_in_range():
    engine = CoinEngine(random.Random(7))
    values = {engine.cast_line().value for _ in range(500)}
    assert values == {6, 7, 8, 9}
    assert cast_line().value in (6, 7, 8, 9)


def test_yin_yang_helpers():
    assert YinYang.get_yin_yang(YaoType.Vieux_Lune) == YinYangType.Yin
    assert YinYang.get_yin_yang(YaoType.Vieux_Soleil) == YinYangType.Yang
    assert YinYang.is_changing(YaoType.Jeune_Lune) is False


@pytest.mark.parametrize(
    "index, total, expected",
    [(0, 9, "初九"), (1, 8, "六二"), (4, 7, "九五"), (5, 6, "上六")],
)
def test_position_name(index, total, expected):
    assert yao_from_sum(total).position_name(index) == expected
