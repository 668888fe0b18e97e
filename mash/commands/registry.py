import logging
from typing import Dict, Iterable, List, Optional, Tuple

from mash.commands.models import Command

logger = logging.getLogger(__name__)


class CommandRegistry:
    """
    Explicit name -> Command mapping for one discovery pass.
    Aliases resolve to the same descriptor as the primary name.
    """

    def __init__(self) -> None:
        self._commands: Dict[str, Command] = {}
        self._invocations: Dict[Tuple[str, ...], str] = {}
        self._registration_order: List[str] = []

    def register(self, command: Command) -> None:
        if not isinstance(command, Command):
            raise TypeError(f"command must be a Command instance, got {type(command)}")

        if command.name in self._commands:
            previous = self._commands[command.name]
            logger.warning(
                "Duplicate command '%s' from %s replaces the one from %s",
                command.name, command.source or 'builtin', previous.source or 'builtin',
            )
            self._registration_order.remove(command.name)
            for key in [k for k, v in self._invocations.items() if v == command.name]:
                del self._invocations[key]

        self._commands[command.name] = command
        self._registration_order.append(command.name)
        for words in command.invocations:
            owner = self._invocations.get(words)
            if owner is not None and owner != command.name:
                logger.warning("Alias '%s' of '%s' shadows command '%s'", ' '.join(words), command.name, owner)
            self._invocations[words] = command.name
        logger.debug("Registered command '%s'", command.name)

    def register_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.register(command)

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def lookup(self, words: Tuple[str, ...]) -> Optional[Command]:
        name = self._invocations.get(tuple(words))
        return self._commands.get(name) if name is not None else None

    @property
    def max_words(self) -> int:
        return max((len(k) for k in self._invocations), default=0)

    def list_commands(self) -> List[Command]:
        return [self._commands[name] for name in self._registration_order]

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __len__(self) -> int:
        return len(self._commands)
