"""Stage registry for mdpipe.

Maps names used in configuration files to factories that create stages.
Example: ``registry.create("pre", "slug")`` → the registered slug stage.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any

from mdpipe.exceptions import PluginError

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ["ENTRY_POINT_GROUP", "STAGE_CATEGORIES", "StageRegistry", "default_registry"]

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "mdpipe.stages"

STAGE_CATEGORIES: tuple[str, ...] = ("pre", "post")


class StageRegistry:
    """Config-driven factory that maps (category, name) → stage instance.

    Categories correspond to pipeline positions: ``"pre"`` stages run on the
    markdown token stream, ``"post"`` stages run on rendered HTML.

    When ``auto_discover`` is ``True``, the first lookup loads every entry
    point in the ``mdpipe.stages`` group. Entry point names take the form
    ``<category>.<name>`` and must resolve to a zero-argument factory.

    Usage::

        registry = StageRegistry()
        registry.register("pre", "slug", SlugStage)
        stage = registry.create("pre", "slug")
    """

    def __init__(self, *, auto_discover: bool = False) -> None:
        self._factories: dict[str, dict[str, Callable[[], Any]]] = {}
        self._auto_discover = auto_discover
        self._discovered = False

    def register(
        self,
        category: str,
        name: str,
        factory: Callable[[], Any],
    ) -> None:
        """Register a stage factory.

        Args:
            category: Pipeline position (``"pre"`` or ``"post"``).
            name: Stage name as written in configuration files.
            factory: Zero-argument callable returning a stage.

        Raises:
            PluginError: If the category is unknown or the name is taken.
        """
        if category not in STAGE_CATEGORIES:
            raise PluginError(
                f"Unknown stage category '{category}'. Available: {list(STAGE_CATEGORIES)}"
            )

        if category not in self._factories:
            self._factories[category] = {}

        if name in self._factories[category]:
            raise PluginError(f"Stage '{name}' already registered in category '{category}'")

        self._factories[category][name] = factory
        logger.debug("Registered stage %s/%s", category, name)

    def _ensure_discovered(self) -> None:
        """Lazily load stages published by installed packages on first use."""
        if self._discovered or not self._auto_discover:
            return
        self._discovered = True

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            category, _, name = ep.name.partition(".")
            if not name or category not in STAGE_CATEGORIES:
                logger.warning("Ignoring malformed stage entry point %r", ep.name)
                continue
            if self.has_stage(category, name):
                continue
            try:
                self.register(category, name, ep.load())
            except (ImportError, AttributeError) as e:
                logger.warning("Failed to load stage entry point %r: %s", ep.name, e)

    def create(self, category: str, name: str) -> Any:
        """Create a stage instance from the registry.

        Raises:
            PluginError: If the category or name is not registered.
        """
        self._ensure_discovered()

        if category not in self._factories:
            raise PluginError(
                f"Unknown stage category '{category}'. Available: {sorted(self._factories)}"
            )

        if name not in self._factories[category]:
            raise PluginError(
                f"Unknown stage '{name}' in category '{category}'. "
                f"Available: {sorted(self._factories[category])}"
            )

        factory = self._factories[category][name]
        logger.info("Creating stage %s/%s", category, name)
        return factory()

    def list_stages(self, category: str) -> list[str]:
        """List registered stage names for a category."""
        self._ensure_discovered()
        if category not in self._factories:
            return []
        return sorted(self._factories[category])

    def has_stage(self, category: str, name: str) -> bool:
        """Check whether a stage is registered."""
        self._ensure_discovered()
        return category in self._factories and name in self._factories[category]


default_registry = StageRegistry(auto_discover=True)
