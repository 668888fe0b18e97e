"""
Requirement checks for a resolved command.

Four independent checks run against every candidate command: phase depth,
host version, host modules and tool extensions. Each may append a
RequirementViolation; a command is executable only if none of them is
fatal. A command that passes them gets its handler resolved by
check_handler before dispatch. Nothing here raises for a failed requirement.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from mash.bootstrap.host import HostIntrospector, ToolIntrospector
from mash.commands.models import Command
from mash.core.phases import Phase
from mash.core.results import RequirementClass, RequirementViolation, ViolationCode, has_fatal
from mash.core.utils import import_by_path

logger = logging.getLogger(__name__)

_BARE_MAJOR = re.compile(r'^\s*\d+\s*$')


def version_satisfies(version: str, constraint: str) -> bool:
    """``"2"`` or ``"2,3"`` means any 2.x or 3.x release; anything else is a PEP 440 specifier."""
    parts = [p.strip() for p in constraint.split(',') if p.strip()]
    parsed = Version(version)
    if parts and all(_BARE_MAJOR.match(p) for p in parts):
        return any(parsed in SpecifierSet(f'=={p}.*') for p in parts)
    return SpecifierSet(constraint).contains(parsed, prereleases=True)


class RequirementEnforcer:

    def __init__(self, host: HostIntrospector, tool: ToolIntrospector) -> None:
        self.host = host
        self.tool = tool

    def enforce(self, command: Command, reached: Optional[Phase]) -> List[RequirementViolation]:
        violations: List[RequirementViolation] = [e.tagged(reached) for e in command.errors]
        for check in (self.check_phase, self.check_host_version,
                      self.check_host_modules, self.check_tool_extensions):
            violation = check(command, reached)
            if violation is not None:
                violations.append(violation)
        if violations:
            logger.debug("Command '%s' has %d unmet requirement(s)", command.name, len(violations))
        return violations

    def is_executable(self, violations: List[RequirementViolation]) -> bool:
        return not has_fatal(violations)

    def check_handler(self, command: Command, reached: Optional[Phase]) -> List[RequirementViolation]:
        """Resolve the handler without running it; an unusable one yields CommandDefinitionInvalid."""
        handler = command.handler
        label = handler if isinstance(handler, str) else repr(handler)
        problem: Optional[str] = None
        if handler is None:
            problem = 'no handler is defined'
        elif isinstance(handler, str):
            try:
                handler = import_by_path(handler)
            except (ImportError, AttributeError, ValueError) as exc:
                problem = str(exc)
        if problem is None and not callable(handler):
            problem = 'handler is not callable'
        if problem is None:
            return []
        return [RequirementViolation(
            code=ViolationCode.COMMAND_DEFINITION_INVALID,
            message=f"Command {command.name} cannot be run: {problem}.",
            phase=reached,
            details={'handler': label},
        )]

    def check_phase(self, command: Command, reached: Optional[Phase]) -> Optional[RequirementViolation]:
        if reached is not None and command.min_phase <= reached:
            return None
        return RequirementViolation(
            code=ViolationCode.PHASE_UNREACHABLE,
            message=f"Command {command.name} needs a higher bootstrap level to run "
                    f"({command.min_phase.label}); we could not find an applicable site for it.",
            requirement=RequirementClass.PHASE,
            phase=reached,
            details={'required': command.min_phase.label,
                     'reached': reached.label if reached is not None else None},
        )

    def check_host_version(self, command: Command, reached: Optional[Phase]) -> Optional[RequirementViolation]:
        constraint = command.host_version
        version = self.host.version()
        if not constraint or version is None:
            return None
        try:
            if version_satisfies(version, constraint):
                return None
            message = (f"Command {command.name} requires host version {constraint}; "
                       f"the loaded host is version {version}.")
        except (InvalidSpecifier, InvalidVersion) as exc:
            message = f"Command {command.name} has an unusable host version constraint {constraint!r}: {exc}"
        return RequirementViolation(
            code=ViolationCode.VERSION_INCOMPATIBLE,
            message=message,
            requirement=RequirementClass.HOST_VERSION,
            phase=reached,
            details={'constraint': constraint, 'version': version},
        )

    def check_host_modules(self, command: Command, reached: Optional[Phase]) -> Optional[RequirementViolation]:
        enabled = self.host.enabled_modules()
        missing = [m for m in command.host_modules if m not in enabled]
        if not missing:
            return None
        return RequirementViolation(
            code=ViolationCode.MISSING_HOST_MODULE,
            message=f"Command {command.name} needs the following modules installed/enabled to run: "
                    f"{', '.join(missing)}.",
            requirement=RequirementClass.HOST_MODULE,
            phase=reached,
            details={'modules': missing},
        )

    def check_tool_extensions(self, command: Command, reached: Optional[Phase]) -> Optional[RequirementViolation]:
        enabled = self.tool.enabled_extensions()
        missing = [e for e in command.tool_extensions if e not in enabled]
        if not missing:
            return None
        return RequirementViolation(
            code=ViolationCode.MISSING_TOOL_EXTENSION,
            message=f"Command {command.name} needs the following tool extensions enabled to run: "
                    f"{', '.join(missing)}.",
            requirement=RequirementClass.TOOL_EXTENSION,
            phase=reached,
            details={'extensions': missing},
        )
