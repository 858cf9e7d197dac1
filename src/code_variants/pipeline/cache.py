"""Per-call cache of source loads."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger("code_variants.pipeline.cache")


class LoadSourceCache:
    """Maps a resource identifier to its in-flight or completed load.

    One instance is created per top-level resolution and passed down through
    every nested call. Concurrent requests for the same identifier share a
    single task, so the underlying loader runs once per identifier.
    """

    def __init__(self):
        """Initialize an empty cache."""
        self._loads: dict[str, asyncio.Future] = {}

    def __contains__(self, url: str) -> bool:
        return url in self._loads

    def __len__(self) -> int:
        return len(self._loads)

    async def get_or_load(
        self,
        url: str,
        load: Callable[[str], Awaitable[Any]],
    ) -> Any:
        """Return the load result for ``url``, starting the load if needed.

        Args:
            url: Resource identifier.
            load: Coroutine function performing the actual load.

        Returns:
            The (shared) load result.
        """
        future = self._loads.get(url)
        if future is None:
            logger.debug(f"Loading {url}")
            future = asyncio.ensure_future(load(url))
            self._loads[url] = future
        else:
            logger.debug(f"Reusing load for {url}")

        # Shield so one cancelled waiter does not cancel the shared load
        return await asyncio.shield(future)

    def clear(self) -> None:
        """Forget all loads."""
        self._loads.clear()
