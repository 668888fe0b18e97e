"""
Command sources - where commands come from at each phase.

A commandfile is a YAML document named ``*.mash.yaml``::

    extension: devtools          # optional, marks an extension commandfile
    commands:
      catalog-reindex:
        description: Rebuild the catalog index
        handler: catalog_tools.commands:reindex
        bootstrap: host_full
        core: ">=2.0,<3"
        modules: [catalog]
        extensions: []
        aliases: [cri]
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from mash.bootstrap.host import HostEnvironment
from mash.commands.models import Command, CommandSource, SourceKind
from mash.core.context import ContextStore
from mash.core.phases import Phase
from mash.core.results import RequirementViolation, ViolationCode
from mash.core.utils import is_import_path, load_yaml_robust

logger = logging.getLogger(__name__)

COMMANDFILE_GLOB = '*.mash.yaml'


@runtime_checkable
class CommandSourceProvider(Protocol):
    def sources(self, phase: Phase, include_disabled: bool = False) -> List[CommandSource]: ...


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [str(value)]


def _command_from_spec(name: str, spec: Mapping[str, Any], default_phase: Phase,
                       owner: Optional[str], location: Path) -> Optional[Command]:
    errors: List[RequirementViolation] = []

    phase = default_phase
    if 'bootstrap' in spec:
        try:
            phase = Phase.parse(spec['bootstrap'])
        except ValueError as exc:
            errors.append(RequirementViolation(
                code=ViolationCode.COMMAND_DEFINITION_INVALID,
                message=f"Command {name} in {location.name}: {exc}",
            ))

    handler = spec.get('handler')
    if not isinstance(handler, str) or not is_import_path(handler):
        errors.append(RequirementViolation(
            code=ViolationCode.COMMAND_DEFINITION_INVALID,
            message=f"Command {name} in {location.name} has no valid handler (expected 'pkg.module:function').",
        ))
        handler = None

    core = spec.get('core')
    if isinstance(core, (list, tuple)):
        core = ','.join(str(c) for c in core)

    try:
        return Command(
            name=name,
            aliases=_as_str_list(spec.get('aliases')),
            description=str(spec.get('description', '')),
            min_phase=phase,
            host_version=str(core) if core is not None else None,
            host_modules=_as_str_list(spec.get('modules')),
            tool_extensions=_as_str_list(spec.get('extensions')),
            owner=owner,
            source=str(location),
            handler=handler,
            errors=errors,
        )
    except ValidationError as exc:
        logger.error("Command %r in %s is invalid and was skipped: %s", name, location, exc)
        return None


def load_commandfile(path: Path, kind: SourceKind, phase: Phase, owner: Optional[str] = None,
                     enabled: bool = True) -> Optional[CommandSource]:
    data = load_yaml_robust(path)
    commands_cfg = data.get('commands')
    if not isinstance(commands_cfg, Mapping):
        logger.debug("No 'commands' mapping in %s - skipped", path.name)
        return None

    commands = []
    for name, spec in commands_cfg.items():
        command = _command_from_spec(str(name), spec if isinstance(spec, Mapping) else {}, Phase.HOST_FULL,
                                     owner, path)
        if command is not None:
            commands.append(command)
    return CommandSource(
        name=path.name[:-len('.mash.yaml')],
        kind=kind,
        owner=owner,
        phase=phase,
        enabled=enabled,
        location=path,
        commands=commands,
    )


def _scan(directory: Path) -> List[Path]:
    if not directory.is_dir():
        return []
    return sorted(directory.rglob(COMMANDFILE_GLOB))


class ManifestSourceProvider:
    """
    Enumerates built-in commands and commandfiles found on disk.

    Tool commandfiles live under ``command_paths``; site commandfiles under
    ``<root>/sites/<site>/commands``; module commandfiles anywhere below
    each module's directory.
    """

    def __init__(self, context: ContextStore, host: HostEnvironment,
                 builtins: Optional[Iterable[Command]] = None) -> None:
        self.context = context
        self.host = host
        self.builtins = list(builtins) if builtins is not None else []

    def sources(self, phase: Phase, include_disabled: bool = False) -> List[CommandSource]:
        found: List[CommandSource] = []
        if phase >= Phase.TOOL:
            found.extend(self._tool_sources(include_disabled))
        if phase >= Phase.HOST_SITE:
            found.extend(self._site_sources())
        if phase >= Phase.HOST_FULL:
            found.extend(self._module_sources(include_disabled))
        return found

    def _tool_sources(self, include_disabled: bool) -> List[CommandSource]:
        sources = []
        if self.builtins:
            sources.append(CommandSource(name='mash', kind=SourceKind.TOOL, phase=Phase.TOOL,
                                         commands=self.builtins))
        enabled_extensions = set(self.context.get_list('extensions.enabled'))
        for base in self.context.get_list('command_paths'):
            for path in _scan(Path(str(base)).expanduser()):
                extension = load_yaml_robust(path).get('extension')
                if extension:
                    source = load_commandfile(path, SourceKind.EXTENSION, Phase.TOOL, owner=str(extension),
                                              enabled=str(extension) in enabled_extensions)
                else:
                    source = load_commandfile(path, SourceKind.TOOL, Phase.TOOL)
                if source is not None and (source.enabled or include_disabled):
                    sources.append(source)
        return sources

    def _site_sources(self) -> List[CommandSource]:
        site_dir = self.host.site_path()
        if site_dir is None:
            return []
        sources = []
        for path in _scan(site_dir / 'commands'):
            source = load_commandfile(path, SourceKind.SITE, Phase.HOST_SITE, owner=self.host.site)
            if source is not None:
                sources.append(source)
        return sources

    def _module_sources(self, include_disabled: bool) -> List[CommandSource]:
        sources = []
        for module in self.host.declared_modules():
            if module.path is None or not (module.enabled or include_disabled):
                continue
            for path in _scan(module.path):
                source = load_commandfile(path, SourceKind.MODULE, Phase.HOST_FULL,
                                          owner=module.name, enabled=module.enabled)
                if source is not None:
                    sources.append(source)
        return sources


class StaticSourceProvider:
    """A fixed list of sources, filtered by phase and enablement."""

    def __init__(self, sources: Iterable[CommandSource]) -> None:
        self._sources = list(sources)

    def sources(self, phase: Phase, include_disabled: bool = False) -> List[CommandSource]:
        return [
            s for s in self._sources
            if s.phase <= phase and (s.enabled or include_disabled)
        ]
