from __future__ import annotations

import argparse
import asyncio
import logging

try:
    from bagua.algo import CastSession, InterpretationClient, Settings
except ModuleNotFoundError:
    import sys
    from pathlib import Path

    project_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(project_root))
    from bagua.algo import CastSession, InterpretationClient, Settings


async def run_demo(delay: float) -> None:
    settings = Settings.from_env()
    session = CastSession(InterpretationClient(settings), cast_delay=delay)

    result = await session.cast()
    if result is None:
        return
    print("本卦:", result.primary)
    print("之卦:", result.changed)
    print("变爻:", [i + 1 for i in result.primary.changing_indices] or "无")

    shown = ""
    while True:
        text = result.text
        if text.startswith(shown):
            print(text[len(shown):], end="", flush=True)
        else:
            print("\n" + text, end="", flush=True)
        shown = text
        if not session.interpreting:
            break
        await asyncio.sleep(0.1)
    print()

    if result.failed and await session.retry():
        print("重试:", result.text)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="三钱起卦并流式解读（需要 DASHSCOPE_API_KEY）")
    parser.add_argument("--delay", type=float, default=1.0, help="最短展示延时（秒）")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)
    asyncio.run(run_demo(args.delay))
