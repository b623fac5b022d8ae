from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import dotenv

DEFAULT_BASE_URL = "https://dashscope-intl.aliyuncs.com/compatible-mode/v1"
DEFAULT_MODEL = "qwen-plus"


@dataclass(frozen=True)
class Settings:
    """运行配置：启动时从环境变量（及 .env）解析一次"""

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.8
    max_tokens: int = 1200
    timeout: float = 60.0
    cast_delay: float = 3.0
    data_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        dotenv.load_dotenv()
        return cls(
            api_key=os.getenv("DASHSCOPE_API_KEY"),
            base_url=os.getenv("DASHSCOPE_BASE_URL", DEFAULT_BASE_URL),
            model=os.getenv("DASHSCOPE_MODEL", DEFAULT_MODEL),
            temperature=float(os.getenv("BAGUA_TEMPERATURE", "0.8")),
            max_tokens=int(os.getenv("BAGUA_MAX_TOKENS", "1200")),
            timeout=float(os.getenv("BAGUA_TIMEOUT", "60")),
            cast_delay=float(os.getenv("BAGUA_CAST_DELAY", "3.0")),
            data_path=os.getenv("BAGUA_DATA_PATH") or None,
        )

    @property
    def completions_url(self) -> str:
        return self.base_url.rstrip("/") + "/chat/completions"
