from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from .errors import DataIntegrityError


class YaoType(Enum):
    """三钱之和"""

    Vieux_Lune = 6  # 老阴
    Jeune_Soleil = 7  # 少阳
    Jeune_Lune = 8  # 少阴
    Vieux_Soleil = 9  # 老阳


class YinYangType(Enum):
    Yin = 0
    Yang = 1


class YinYang:
    """阴阳类型工具"""

    @classmethod
    def get_yin_yang(cls, yao_type: YaoType) -> YinYangType:
        if yao_type in (YaoType.Vieux_Lune, YaoType.Jeune_Lune):
            return YinYangType.Yin
        if yao_type in (YaoType.Jeune_Soleil, YaoType.Vieux_Soleil):
            return YinYangType.Yang
        raise DataIntegrityError("未知的爻类型")

    @classmethod
    def is_changing(cls, yao_type: YaoType) -> bool:
        return yao_type in (YaoType.Vieux_Lune, YaoType.Vieux_Soleil)


_POSITIONS = ("初", "二", "三", "四", "五", "上")


@dataclass(frozen=True)
class Yao:
    """一爻：数值仅作记录，阴阳与变动是后续推演真正使用的属性"""

    value: int
    yin: bool
    changing: bool

    @classmethod
    def from_type(cls, yao_type: YaoType) -> "Yao":
        return cls(
            value=yao_type.value,
            yin=YinYang.get_yin_yang(yao_type) == YinYangType.Yin,
            changing=YinYang.is_changing(yao_type),
        )

    @classmethod
    def from_sum(cls, total: int) -> "Yao":
        try:
            yao_type = YaoType(total)
        except ValueError:
            raise DataIntegrityError(f"三钱之和不合法: {total}") from None
        return cls.from_type(yao_type)

    def changed(self) -> "Yao":
        if self.changing:
            return replace(self, yin=not self.yin, changing=False)
        return replace(self, changing=False)

    def position_name(self, index: int) -> str:
        """爻题，如 初九、六二、上六"""
        if not 0 <= index < 6:
            raise ValueError("爻位必须在 0..5 之间")
        polarity = "六" if self.yin else "九"
        position = _POSITIONS[index]
        if index in (0, 5):
            return f"{position}{polarity}"
        return f"{polarity}{position}"
