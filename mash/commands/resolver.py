from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from mash.commands.index import CommandIndex
from mash.commands.models import ResolvedCommand
from mash.commands.registry import CommandRegistry
from mash.core.phases import Phase

logger = logging.getLogger(__name__)


def _leading_words(argv: Sequence[str]) -> List[str]:
    words = []
    for token in argv:
        if token.startswith('-'):
            break
        words.append(token)
    return words


def match_longest(registry: CommandRegistry, argv: Sequence[str]) -> Optional[ResolvedCommand]:
    """Longest run of leading words in ``argv`` that names a command in ``registry``."""
    words = _leading_words(argv)
    for size in range(min(len(words), registry.max_words), 0, -1):
        command = registry.lookup(tuple(words[:size]))
        if command is not None:
            return ResolvedCommand(command=command, arguments=list(argv[size:]))
    return None


class CommandResolver:

    def __init__(self, index: CommandIndex, default_command: Optional[str] = 'help') -> None:
        self.index = index
        self.default_command = default_command

    def resolve(self, argv: Sequence[str], phase: Optional[Phase]) -> Optional[ResolvedCommand]:
        """
        Resolve ``argv`` against the commands visible at ``phase``.

        ``phase`` is the phase the bootstrap has actually reached; commands
        that only appear deeper are not considered.
        """
        if phase is None:
            return None
        registry = self.index.discover(phase)
        argv = list(argv)
        if not argv and self.default_command:
            argv = self.default_command.split()

        resolved = match_longest(registry, argv)
        if resolved is None:
            logger.debug("No command matches %s at phase %s", argv, phase.label)
            return None
        resolved.phase = phase
        logger.debug("Resolved '%s' at phase %s", resolved.name, phase.label)
        return resolved
