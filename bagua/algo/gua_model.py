from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .category import GuaCategoryRepository, HexagramEntry, HexagramRepository
from .errors import DataIntegrityError
from .gua_types import Yao


def trigram_bits(yaos: Sequence[Yao]) -> int:
    """三爻编码：第 k 爻（自下而上）为阳则第 k 位为 1"""
    if len(yaos) != 3:
        raise ValueError("经卦必须有三爻")
    return sum(0 if yao.yin else 1 << k for k, yao in enumerate(yaos))


def trigram_name(yaos: Sequence[Yao]) -> str:
    name = GuaCategoryRepository.get()["trigrams"].get(str(trigram_bits(yaos)))
    if name is None:
        raise DataIntegrityError(f"未找到三爻编码 {trigram_bits(yaos)} 对应的经卦")
    return name


def transform(yaos: Sequence[Yao]) -> Tuple[Yao, ...]:
    """变卦：老阴老阳反转，其余照抄，结果不再含变爻"""
    return tuple(yao.changed() for yao in yaos)


class Gua:
    """卦对象（值对象风格）"""

    def __init__(self, yaos: Sequence[Yao], *, data_path: Optional[str] = None):
        if len(yaos) != 6:
            raise ValueError("卦必须有六爻")
        self.yaos: Tuple[Yao, ...] = tuple(yaos)
        self.data_path = data_path
        self.gua_category = GuaCategoryRepository.get()
        self.lower = trigram_name(self.yaos[:3])
        self.upper = trigram_name(self.yaos[3:])
        self.key = f"{self.upper}_{self.lower}"
        self.number = self.get_index()
        self.entry = self.get_entry()

    def get_index(self) -> int:
        index = self.gua_category["hexagrams"].get(self.key)
        if index is None:
            raise DataIntegrityError(f"未找到上下卦组合 {self.key} 对应的卦序")
        return index

    def get_entry(self) -> HexagramEntry:
        entry = HexagramRepository.get(self.number, self.data_path)
        if entry is None:
            raise DataIntegrityError(f"卦辞数据集中缺少第 {self.number} 卦")
        return entry

    @property
    def title(self) -> str:
        return self.entry.title

    @property
    def binary(self) -> str:
        return "".join("0" if yao.yin else "1" for yao in self.yaos)

    @property
    def changing_indices(self) -> List[int]:
        return [index for index, yao in enumerate(self.yaos) if yao.changing]

    def focal_index(self) -> Optional[int]:
        """取最上一个变爻作为主变之爻"""
        indices = self.changing_indices
        return indices[-1] if indices else None

    def changed(self) -> "Gua":
        return Gua(transform(self.yaos), data_path=self.data_path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gua):
            return NotImplemented
        return self.yaos == other.yaos

    def __hash__(self) -> int:
        return hash(self.yaos)

    def __str__(self) -> str:
        return f"Gua(number={self.number}, title='{self.title}', binary='{self.binary}')"

    def __repr__(self) -> str:
        return self.__str__()


def resolve(yaos: Sequence[Yao]) -> Gua:
    return Gua(yaos)
