from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mash.core.phases import Phase
from mash.core.results import RequirementViolation

if TYPE_CHECKING:
    from mash.bootstrap.host import HostEnvironment
    from mash.commands.registry import CommandRegistry
    from mash.core.context import ContextStore


class SourceKind(str, Enum):
    TOOL = 'tool'
    EXTENSION = 'extension'
    SITE = 'site'
    MODULE = 'module'


class Command(BaseModel):
    name: str
    path: Tuple[str, ...] = ()
    aliases: List[str] = Field(default_factory=list)
    description: str = ''
    min_phase: Phase = Phase.HOST_FULL
    host_version: Optional[str] = Field(None, description="PEP 440 specifier or bare major versions")
    host_modules: List[str] = Field(default_factory=list)
    tool_extensions: List[str] = Field(default_factory=list)
    owner: Optional[str] = None
    source: Optional[str] = None
    handler: Union[Callable[..., Any], str, None] = None
    errors: List[RequirementViolation] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    @field_validator('name')
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        name = ' '.join(value.split())
        if not name:
            raise ValueError('command name must not be empty')
        return name

    def model_post_init(self, __context: Any) -> None:
        if not self.path:
            self.path = tuple(self.name.split())

    @property
    def invocations(self) -> List[Tuple[str, ...]]:
        return [self.path, *(tuple(alias.split()) for alias in self.aliases)]


class CommandSource(BaseModel):
    name: str
    kind: SourceKind = SourceKind.TOOL
    owner: Optional[str] = None
    phase: Phase = Phase.TOOL
    enabled: bool = True
    location: Optional[Path] = None
    commands: List[Command] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


@dataclass
class ResolvedCommand:
    command: Command
    arguments: List[str] = field(default_factory=list)
    phase: Optional[Phase] = None

    @property
    def name(self) -> str:
        return self.command.name


@dataclass
class CommandInvocation:
    """What a handler receives when its command is dispatched."""
    command: Command
    arguments: List[str]
    context: 'ContextStore'
    host: Optional['HostEnvironment'] = None
    registry: Optional['CommandRegistry'] = None
