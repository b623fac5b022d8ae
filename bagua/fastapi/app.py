from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse

from bagua.algo.config import Settings
from bagua.algo.engine import CoinEngine, yao_from_sum
from bagua.algo.errors import DataIntegrityError, InterpretationError
from bagua.algo.gua_model import Gua
from bagua.algo.gua_resolver import InterpretationClient
from bagua.algo.gua_types import Yao, YaoType
from bagua.algo.session import CastSession
from .schemas import CastSnapshot, GenerateResponse, GuaInput, GuaOut

logger = logging.getLogger(__name__)

_STREAM_END = object()


def _parse_yaos(yaos: Optional[List[object]]) -> Optional[List[Yao]]:
    """将前端传入的爻表示（枚举名或 6/7/8/9）转换为 `Yao` 列表。"""
    if yaos is None:
        return None
    if len(yaos) != 6:
        raise ValueError("卦必须有六爻")
    parsed: List[Yao] = []
    for item in yaos:
        if isinstance(item, bool):
            raise ValueError(f"不支持的爻类型: {type(item)}")
        if isinstance(item, int):
            try:
                parsed.append(yao_from_sum(item))
            except DataIntegrityError:
                raise ValueError(f"无效的爻值: {item}") from None
        elif isinstance(item, str):
            try:
                parsed.append(Yao.from_type(YaoType[item]))
            except KeyError:
                try:
                    parsed.append(yao_from_sum(int(item)))
                except (ValueError, DataIntegrityError):
                    raise ValueError(f"无效的爻名: {item}") from None
        else:
            raise ValueError(f"不支持的爻类型: {type(item)}")
    return parsed


def create_app(
    client: Optional[InterpretationClient] = None,
    *,
    settings: Optional[Settings] = None,
    engine: Optional[CoinEngine] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or Settings.from_env()
        interpreter = client or InterpretationClient(resolved)
        app.state.engine = engine or CoinEngine()
        app.state.client = interpreter
        app.state.data_path = resolved.data_path
        app.state.session = CastSession(
            interpreter,
            engine=app.state.engine,
            cast_delay=resolved.cast_delay,
            data_path=resolved.data_path,
        )
        yield

    app = FastAPI(title="Bagua API", version="0.1.0", lifespan=lifespan)

    def _build_gua(request: Request, input: GuaInput) -> Gua:
        try:
            yaos = _parse_yaos(input.yaos) if input.yaos else None
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        state = request.app.state
        return Gua(yaos if yaos is not None else state.engine.six_yaos(), data_path=state.data_path)

    @app.get("/", response_class=JSONResponse)
    async def health():
        return {"status": "ok"}

    @app.post("/api/generate", response_model=GenerateResponse)
    async def generate(request: Request, input: GuaInput):
        """起卦（传入 `yaos` 则以之为准），返回本卦与之卦。"""
        gua = _build_gua(request, input)
        return GenerateResponse(primary=GuaOut.from_gua(gua), changed=GuaOut.from_gua(gua.changed()))

    @app.post("/api/stream")
    async def stream(request: Request, input: GuaInput):
        """以 SSE 推送累积的解读文本，结束时发送 `data: [DONE]`。"""
        gua = _build_gua(request, input)
        changed = gua.changed()
        interpreter: InterpretationClient = request.app.state.client
        queue: asyncio.Queue = asyncio.Queue()

        async def run() -> None:
            try:
                await interpreter.request_interpretation(gua, changed, queue.put_nowait)
            except InterpretationError as exc:
                logger.warning("流式解读失败: %s", exc)
                queue.put_nowait(exc)
            except Exception as exc:
                logger.exception("流式解读异常")
                queue.put_nowait(exc)
            finally:
                queue.put_nowait(_STREAM_END)

        async def event_generator():
            task = asyncio.create_task(run())
            try:
                while True:
                    item = await queue.get()
                    if item is _STREAM_END:
                        break
                    if await request.is_disconnected():
                        break
                    if isinstance(item, Exception):
                        yield f"data: {json.dumps({'error': str(item)}, ensure_ascii=False)}\n\n"
                    else:
                        yield f"data: {json.dumps({'text': item}, ensure_ascii=False)}\n\n"
                yield "data: [DONE]\n\n"
            finally:
                if not task.done():
                    task.cancel()

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    @app.get("/api/cast", response_model=CastSnapshot)
    async def get_cast(request: Request):
        return CastSnapshot.from_session(request.app.state.session)

    @app.post("/api/cast", response_model=CastSnapshot)
    async def toggle_cast(request: Request):
        """空闲时起卦并等待展示延时；已有结果或正在起卦时清空。"""
        session: CastSession = request.app.state.session
        await session.toggle()
        return CastSnapshot.from_session(session)

    @app.post("/api/cast/reset", response_model=CastSnapshot)
    async def reset_cast(request: Request):
        session: CastSession = request.app.state.session
        session.reset()
        return CastSnapshot.from_session(session)

    @app.post("/api/cast/retry", response_model=CastSnapshot)
    async def retry_cast(request: Request):
        session: CastSession = request.app.state.session
        if not await session.retry():
            raise HTTPException(status_code=409, detail="当前没有可重试的解读")
        return CastSnapshot.from_session(session)

    return app


app = create_app()
