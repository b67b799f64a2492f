"""Generation-scoped cache of lazily rolled worlds."""

from typing import Callable, Dict, Optional, Tuple

import structlog

from .world_generator import World

logger = structlog.get_logger()

CacheKey = Tuple[int, int]  # (generation_id, cell_index)


class WorldCache:
    """
    Worlds keyed by ``(generation_id, cell_index)``.

    A world rolled for one generation can never be returned for another,
    even if :meth:`invalidate` is skipped; invalidating only frees memory.
    """

    def __init__(self):
        self._worlds: Dict[CacheKey, World] = {}

    def __len__(self) -> int:
        return len(self._worlds)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._worlds

    def get(self, generation_id: int, cell_index: int) -> Optional[World]:
        return self._worlds.get((generation_id, cell_index))

    def get_or_create(self, generation_id: int, cell_index: int, factory: Callable[[], World]) -> World:
        """Return the cached world or roll and store a new one."""
        key = (generation_id, cell_index)
        world = self._worlds.get(key)
        if world is None:
            world = factory()
            self._worlds[key] = world
        return world

    def invalidate(self) -> None:
        """Drop every cached world."""
        if self._worlds:
            logger.debug("World cache invalidated", dropped=len(self._worlds))
        self._worlds.clear()
