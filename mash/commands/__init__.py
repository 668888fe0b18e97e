from .builtin import builtin_commands
from .dispatcher import Dispatcher
from .index import CommandIndex
from .models import Command, CommandInvocation, CommandSource, ResolvedCommand, SourceKind
from .registry import CommandRegistry
from .requirements import RequirementEnforcer
from .resolver import CommandResolver
from .sources import CommandSourceProvider, ManifestSourceProvider, StaticSourceProvider

__all__ = [
    'Command', 'CommandSource', 'CommandInvocation', 'ResolvedCommand', 'SourceKind',
    'CommandRegistry', 'CommandIndex', 'CommandResolver',
    'CommandSourceProvider', 'ManifestSourceProvider', 'StaticSourceProvider',
    'RequirementEnforcer', 'Dispatcher', 'builtin_commands',
]
