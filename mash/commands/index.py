from __future__ import annotations

import logging
from typing import Dict, Tuple

from mash.commands.registry import CommandRegistry
from mash.commands.sources import CommandSourceProvider
from mash.core.phases import Phase

logger = logging.getLogger(__name__)


class CommandIndex:
    """
    Commands visible at each phase, discovered lazily.

    A registry is built the first time a phase is asked for and reused
    afterwards. Sources owned by disabled modules or extensions are only
    scanned when ``include_disabled`` is set; those registries are kept
    apart from the normal ones.
    """

    def __init__(self, provider: CommandSourceProvider) -> None:
        self.provider = provider
        self._registries: Dict[Tuple[Phase, bool], CommandRegistry] = {}

    def discover(self, phase: Phase, include_disabled: bool = False, refresh: bool = False) -> CommandRegistry:
        key = (Phase.parse(phase), include_disabled)
        if not refresh and key in self._registries:
            return self._registries[key]

        registry = CommandRegistry()
        sources = self.provider.sources(key[0], include_disabled=include_disabled)
        for source in sources:
            registry.register_all(source.commands)
        logger.debug('Discovered %d command(s) from %d source(s) at phase %s%s',
                     len(registry), len(sources), key[0].label,
                     ' (including disabled)' if include_disabled else '')
        self._registries[key] = registry
        return registry
