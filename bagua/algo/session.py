"""起卦会话：一次起卦的状态机。

会话令牌（token）每次起卦或清空时递增；所有异步回调都带着发起时的令牌，
令牌过期即不再改动会话状态。
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Coroutine, Optional, Set, Tuple

from .engine import CoinEngine
from .errors import InterpretationError
from .gua_model import Gua
from .gua_resolver import InterpretationClient
from .gua_types import Yao

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "解读失败："
GENERATING_TEXT = "解读生成中……"
REGENERATING_TEXT = "正在重新生成解读……"


class CastState(Enum):
    IDLE = "idle"
    CASTING = "casting"
    RESULTED = "resulted"


@dataclass
class CastResult:
    primary: Gua
    changed: Gua
    text: str = ""

    @property
    def lines(self) -> Tuple[Yao, ...]:
        return self.primary.yaos

    @property
    def changed_lines(self) -> Tuple[Yao, ...]:
        return self.changed.yaos

    @property
    def failed(self) -> bool:
        return self.text.startswith(FAILURE_PREFIX)


class CastSession:
    def __init__(
        self,
        client: InterpretationClient,
        *,
        engine: Optional[CoinEngine] = None,
        cast_delay: float = 3.0,
        data_path: Optional[str] = None,
    ) -> None:
        self.client = client
        self.engine = engine or CoinEngine()
        self.cast_delay = cast_delay
        self.data_path = data_path
        self.token = 0
        self.state = CastState.IDLE
        self.result: Optional[CastResult] = None
        self.retrying = False
        self._delay: Optional[asyncio.Future] = None
        self._interpretation: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

    @property
    def is_active(self) -> bool:
        return self.state is not CastState.IDLE

    async def toggle(self) -> Optional[CastResult]:
        """同一个按钮：空闲时起卦，否则清空"""
        if self.is_active:
            self.reset()
            return None
        return await self.cast()

    async def cast(self) -> Optional[CastResult]:
        """起卦并等待最短展示延时；期间被清空或被新卦取代则返回 None"""
        if self.is_active:
            self.reset()

        primary = Gua(self.engine.six_yaos(), data_path=self.data_path)
        pending = CastResult(primary=primary, changed=primary.changed())
        self.token += 1
        token = self.token
        self.state = CastState.CASTING
        logger.info("起卦 (会话 %s): 本卦 %s -> 之卦 %s", token, primary.number, pending.changed.number)

        self._interpretation = self._spawn(self._interpret(token, pending))
        delay = asyncio.ensure_future(asyncio.sleep(self.cast_delay))
        self._delay = delay
        try:
            await asyncio.wait({delay})
        except asyncio.CancelledError:
            delay.cancel()
            if token == self.token:
                self.reset()
            raise

        if delay.cancelled() or token != self.token:
            return None
        self._delay = None
        if not pending.text:
            pending.text = GENERATING_TEXT
        self.result = pending
        self.state = CastState.RESULTED
        return pending

    def reset(self) -> None:
        """清空当前结果；进行中的解读请求不中断，只是令牌失效"""
        if self._delay is not None and not self._delay.done():
            self._delay.cancel()
        self._delay = None
        self.token += 1
        self.result = None
        self.retrying = False
        self.state = CastState.IDLE

    @property
    def can_retry(self) -> bool:
        return (
            self.state is CastState.RESULTED
            and self.result is not None
            and self.result.failed
            and not self.retrying
        )

    async def retry(self) -> bool:
        """对同一卦重新请求解读；不满足条件时返回 False"""
        if not self.can_retry:
            return False
        token = self.token
        result = self.result
        self.retrying = True
        result.text = REGENERATING_TEXT
        self._interpretation = self._spawn(self._interpret(token, result))
        try:
            await self._interpretation
        finally:
            if token == self.token:
                self.retrying = False
        return True

    @property
    def interpreting(self) -> bool:
        return self._interpretation is not None and not self._interpretation.done()

    async def wait_interpretation(self) -> Optional[str]:
        if self._interpretation is None:
            return None
        return await self._interpretation

    async def _interpret(self, token: int, result: CastResult) -> str:
        def on_partial(text: str) -> None:
            if token == self.token:
                result.text = text
            else:
                logger.debug("会话 %s 已过期，忽略解读片段", token)

        try:
            text = await self.client.request_interpretation(result.primary, result.changed, on_partial)
        except InterpretationError as exc:
            logger.warning("解读失败 (会话 %s): %s", token, exc)
            text = f"{FAILURE_PREFIX}{exc}"
        except Exception as exc:
            logger.exception("解读任务异常 (会话 %s)", token)
            text = f"{FAILURE_PREFIX}{exc}"
        if token == self.token:
            result.text = text
        return text

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("解读任务异常退出", exc_info=task.exception())
