from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import DataIntegrityError

_DATA_DIR = Path(__file__).parent


class GuaCategoryRepository:
    """八卦/六十四卦对照表仓库（进程内只加载一次）"""

    _instance: Optional[Dict[str, Any]] = None

    @classmethod
    def get(cls) -> Dict[str, Any]:
        if cls._instance is None:
            with open(_DATA_DIR / "trigrams.json", "r", encoding="utf-8") as f:
                data = json.load(f)
            cls.validate(data)
            cls._instance = data
        return cls._instance

    @staticmethod
    def validate(data: Dict[str, Any]) -> None:
        trigrams = data.get("trigrams", {})
        if sorted(trigrams) != [str(bits) for bits in range(8)]:
            raise DataIntegrityError("八卦表必须覆盖 0..7 全部编码")
        names = set(trigrams.values())
        if len(names) != 8:
            raise DataIntegrityError("八卦表存在重复卦名")

        hexagrams = data.get("hexagrams", {})
        expected_keys = {f"{upper}_{lower}" for upper in names for lower in names}
        if set(hexagrams) != expected_keys:
            raise DataIntegrityError("六十四卦表的上下卦组合不完整")
        numbers = sorted(hexagrams.values())
        if numbers != list(range(1, 65)):
            dupes = sorted({n for n in numbers if numbers.count(n) > 1})
            raise DataIntegrityError(f"六十四卦表序号必须是 1..64 的排列，重复: {dupes}")


@dataclass(frozen=True)
class HexagramEntry:
    id: int
    name: str
    title: str
    gua_ci: str
    yao_ci: List[str] = field(default_factory=list)
    tuan: List[str] = field(default_factory=list)
    xiang: List[str] = field(default_factory=list)
    wenyan: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HexagramEntry":
        return cls(
            id=int(raw["id"]),
            name=raw.get("name", ""),
            title=raw["title"],
            gua_ci=raw.get("guaCi", ""),
            yao_ci=list(raw.get("yaoCi", [])),
            tuan=list(raw.get("tuan", [])),
            xiang=list(raw.get("xiang", [])),
            wenyan=list(raw.get("wenyan", [])),
        )


class HexagramRepository:
    """卦辞数据集，按 id 查询；可通过 BAGUA_DATA_PATH 替换为完整语料"""

    _instances: Dict[str, Dict[int, HexagramEntry]] = {}

    @classmethod
    def load(cls, path: str | Path | None = None) -> Dict[int, HexagramEntry]:
        resolved = Path(path or os.getenv("BAGUA_DATA_PATH") or _DATA_DIR / "zhouyi.json")
        key = str(resolved)
        if key not in cls._instances:
            with open(resolved, "r", encoding="utf-8") as f:
                raw = json.load(f)
            entries = {entry.id: entry for entry in map(HexagramEntry.from_dict, raw)}
            if sorted(entries) != list(range(1, 65)) or len(raw) != 64:
                raise DataIntegrityError(f"卦辞数据集必须恰好包含 id 1..64: {resolved}")
            cls._instances[key] = entries
        return cls._instances[key]

    @classmethod
    def get(cls, number: int, path: str | Path | None = None) -> Optional[HexagramEntry]:
        return cls.load(path).get(number)
