"""Commands that ship with mash itself and need nothing from the host."""
from __future__ import annotations

from typing import Any, Dict, List

from mash.commands.models import Command, CommandInvocation
from mash.core.phases import Phase


def help_command(invocation: CommandInvocation) -> str:
    registry = invocation.registry
    commands = registry.list_commands() if registry is not None else []
    if invocation.arguments:
        wanted = ' '.join(invocation.arguments)
        for command in commands:
            if command.name == wanted or wanted in command.aliases:
                aliases = f" (aliases: {', '.join(command.aliases)})" if command.aliases else ''
                return f'{command.name}{aliases}\n  {command.description}'
        return f"No help available for '{wanted}'."

    width = max((len(c.name) for c in commands), default=0)
    lines = ['Available commands:']
    for command in sorted(commands, key=lambda c: c.name):
        lines.append(f'  {command.name.ljust(width)}  {command.description}')
    return '\n'.join(lines)


def version_command(invocation: CommandInvocation) -> str:
    from mash import __version__
    return f'mash version {__version__}'


def status_command(invocation: CommandInvocation) -> Dict[str, Any]:
    host = invocation.host
    context = invocation.context
    status: Dict[str, Any] = {
        'run_id': context.get('run_id'),
        'extensions': sorted(context.get_list('extensions.enabled')),
    }
    if host is not None:
        status.update({
            'host_root': str(host.root) if host.root else None,
            'site': host.site,
            'host_version': host.version(),
            'modules': sorted(host.enabled_modules()),
        })
    return status


def builtin_commands() -> List[Command]:
    return [
        Command(name='help', description='Print this help message, or help for one command.',
                min_phase=Phase.TOOL, handler=help_command),
        Command(name='version', description='Show the mash version.',
                min_phase=Phase.TOOL, handler=version_command),
        Command(name='status', aliases=['st'], description='Show what mash knows about the host.',
                min_phase=Phase.TOOL, handler=status_command),
    ]
