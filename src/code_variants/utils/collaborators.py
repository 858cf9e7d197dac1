"""Calling supplied collaborator functions."""

import inspect
from typing import Any, Callable


async def call_collaborator(func: Callable[..., Any], *args: Any) -> Any:
    """Call a collaborator that may be a plain or a coroutine function."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
