"""流式解卦客户端。

向 OpenAI 兼容的 `chat/completions` 接口发起一次 `stream=True` 请求，
按行解析 `data: ...` 帧，边收边把累积文本回调给上层。
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from .config import Settings
from .errors import EmptyInterpretationError, StreamUnavailableError, TransportError
from .gua_model import Gua

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
DEFAULT_SYSTEM_ROLE = (
    "你是一位精通《周易》的解卦师。语气温和克制，言之有据，"
    "不作绝对化的吉凶断言，最后给出可以落地的行动建议。"
)

PartialCallback = Callable[[str], None]


class FrameKind(Enum):
    IGNORE = 0
    CONTENT = 1
    DONE = 2


@dataclass(frozen=True)
class Frame:
    kind: FrameKind
    text: str = ""


def extract_content(payload: Any) -> Optional[str]:
    """从一帧 JSON 中取文本：先取增量 `choices[0].delta.content`，
    再回退到非流式形状的 `choices[0].message.content`。
    """
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    for key in ("delta", "message"):
        node = first.get(key)
        if isinstance(node, dict):
            content = node.get("content")
            if isinstance(content, str):
                return content
    return None


def parse_frame(line: str) -> Frame:
    line = line.strip()
    if not line.startswith(DATA_PREFIX):
        return Frame(FrameKind.IGNORE)
    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_SENTINEL:
        return Frame(FrameKind.DONE)
    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        return Frame(FrameKind.IGNORE)
    content = extract_content(payload)
    if not content:
        return Frame(FrameKind.IGNORE)
    return Frame(FrameKind.CONTENT, content)


class StreamDecoder:
    """按换行切帧并累积文本；最后一帧可以没有结尾换行。"""

    def __init__(self, on_partial: Optional[PartialCallback] = None) -> None:
        self.text = ""
        self.done = False
        self._buffer = ""
        self._on_partial = on_partial

    def feed(self, chunk: str) -> None:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._handle(line)

    def close(self) -> str:
        if self._buffer:
            tail, self._buffer = self._buffer, ""
            self._handle(tail)
        return self.text

    def _handle(self, line: str) -> None:
        if self.done:
            return
        frame = parse_frame(line)
        if frame.kind is FrameKind.DONE:
            self.done = True
        elif frame.kind is FrameKind.CONTENT:
            self.text += frame.text
            if self._on_partial is not None:
                self._on_partial(self.text)


class InterpretationClient:
    """封装解卦请求；每次调用独立累积，可对同一卦重复调用（重试）。"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        system_role: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.system_role = system_role or DEFAULT_SYSTEM_ROLE
        self._transport = transport

    @staticmethod
    def describe_focal_line(primary: Gua) -> str:
        index = primary.focal_index()
        if index is None:
            return "无变爻"
        return f"第 {index + 1} 爻（{primary.yaos[index].position_name(index)}）"

    def build_prompt(self, primary: Gua, changed: Gua) -> str:
        return (
            f"本卦：{primary.title}（第 {primary.number} 卦）\n"
            f"卦辞：{primary.entry.gua_ci}\n"
            f"变爻：{self.describe_focal_line(primary)}\n"
            f"之卦：{changed.title}（第 {changed.number} 卦）\n\n"
            "请据此解卦：先概述本卦之象，再说明变爻所示的转折与之卦的走向，最后给出行动建议。"
        )

    def build_payload(self, primary: Gua, changed: Gua) -> Dict[str, Any]:
        return {
            "model": self.settings.model,
            "messages": [
                {"role": "system", "content": self.system_role},
                {"role": "user", "content": self.build_prompt(primary, changed)},
            ],
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
            "stream": True,
        }

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    async def request_interpretation(
        self,
        primary: Gua,
        changed: Gua,
        on_partial: Optional[PartialCallback] = None,
    ) -> str:
        payload = self.build_payload(primary, changed)
        decoder = StreamDecoder(on_partial)
        logger.info(
            "请求解读: 本卦 %s -> 之卦 %s (model=%s)", primary.number, changed.number, self.settings.model
        )
        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self._transport) as client:
                async with client.stream(
                    "POST", self.settings.completions_url, json=payload, headers=self._headers()
                ) as resp:
                    if not resp.is_success:
                        body = (await resp.aread()).decode("utf-8", errors="replace")
                        raise TransportError(resp.status_code, body)
                    async for chunk in resp.aiter_text():
                        decoder.feed(chunk)
                        if decoder.done:
                            break
        except httpx.StreamError as exc:
            raise StreamUnavailableError(f"无法读取流式响应: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(None, str(exc)) from exc

        text = decoder.close()
        if not text:
            raise EmptyInterpretationError()
        logger.info("解读完成: 第 %s 卦, %d 字", primary.number, len(text))
        return text
