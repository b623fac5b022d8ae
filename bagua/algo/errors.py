from __future__ import annotations

from typing import Optional


class BaguaError(Exception):
    """项目内所有异常的基类"""


class DataIntegrityError(BaguaError, ValueError):
    """静态表或起卦结果损坏：正常运行时不应出现"""


class InterpretationError(BaguaError):
    """解读请求失败（可恢复，由会话层转为可展示文本）"""


class TransportError(InterpretationError):
    def __init__(self, status: Optional[int], body: str = "") -> None:
        self.status = status
        self.body = body
        if status is None:
            message = f"网络请求失败: {body}"
        else:
            message = f"接口返回 HTTP {status}: {body}"
        super().__init__(message)


class EmptyInterpretationError(InterpretationError):
    def __init__(self, message: str = "解读内容为空") -> None:
        super().__init__(message)


class StreamUnavailableError(InterpretationError):
    def __init__(self, message: str = "无法读取流式响应") -> None:
        super().__init__(message)
