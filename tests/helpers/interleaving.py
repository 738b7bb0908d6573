"""Force coroutine interleaving on the in-memory stores.

The stubs never suspend, so coroutines passed to ``asyncio.gather`` would
otherwise run one after another. Wrapping a read so it yields to the event
loop after taking its snapshot behaves like a database round-trip: every
concurrent caller reads the same version before any of them writes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest


def _yielding(read: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        result = await read(*args, **kwargs)
        await asyncio.sleep(0)
        return result

    return wrapper


def yield_after_reads(monkeypatch: pytest.MonkeyPatch, store: object, *names: str) -> None:
    """Make each named async read on ``store`` yield once after returning."""
    for name in names:
        monkeypatch.setattr(store, name, _yielding(getattr(store, name)))
