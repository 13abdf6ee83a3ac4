"""Command-line maintenance scripts. Run with ``python -m alumni_portal.scripts.<name>``."""
import asyncio
import sys
from typing import Awaitable

from alumni_portal.core.database import close_db


async def _run_and_close(coro: Awaitable[int]) -> int:
    try:
        return await coro
    finally:
        await close_db()


def run_script(coro: Awaitable[int]) -> None:
    """Run a script coroutine, dispose the engine and exit with its return code"""
    sys.exit(asyncio.run(_run_and_close(coro)))
