from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from bagua.algo.gua_model import Gua
from bagua.algo.session import CastSession


class GuaInput(BaseModel):
    yaos: Optional[List[Union[str, int]]] = Field(
        None, description="六爻（自下而上），支持枚举名或 6/7/8/9；为空则随机起卦"
    )


class YaoOut(BaseModel):
    value: int
    yin: bool
    changing: bool
    name: str


class GuaOut(BaseModel):
    number: int
    name: str
    title: str
    gua_ci: str
    binary: str
    upper: str
    lower: str
    lines: List[YaoOut]
    changing_lines: List[int]

    @classmethod
    def from_gua(cls, gua: Gua) -> "GuaOut":
        return cls(
            number=gua.number,
            name=gua.entry.name,
            title=gua.title,
            gua_ci=gua.entry.gua_ci,
            binary=gua.binary,
            upper=gua.upper,
            lower=gua.lower,
            lines=[
                YaoOut(value=yao.value, yin=yao.yin, changing=yao.changing, name=yao.position_name(i))
                for i, yao in enumerate(gua.yaos)
            ],
            changing_lines=gua.changing_indices,
        )


class GenerateResponse(BaseModel):
    primary: GuaOut
    changed: GuaOut


class CastSnapshot(BaseModel):
    state: str
    token: int
    retrying: bool
    can_retry: bool
    primary: Optional[GuaOut] = None
    changed: Optional[GuaOut] = None
    text: Optional[str] = None

    @classmethod
    def from_session(cls, session: CastSession) -> "CastSnapshot":
        result = session.result
        return cls(
            state=session.state.value,
            token=session.token,
            retrying=session.retrying,
            can_retry=session.can_retry,
            primary=GuaOut.from_gua(result.primary) if result else None,
            changed=GuaOut.from_gua(result.changed) if result else None,
            text=result.text if result else None,
        )
