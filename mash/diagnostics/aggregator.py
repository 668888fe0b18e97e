"""
Error Aggregator - explains why nothing ran.

Used only when the phase loop finishes without dispatching a command. The
violations are gathered in a fixed priority order:

1. the requirement violations of the last candidate command, if any,
   followed by a disabled-dependency error naming its missing host
   modules once full bootstrap was reached;
2. otherwise, for a non-empty argument list, the outcome of a single
   disabled-dependency lookup at full bootstrap;
3. any phase-level errors left on the BootstrapState.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from mash.commands.resolver import match_longest
from mash.core.phases import DEEPEST_PHASE, BootstrapState
from mash.core.results import RequirementViolation, ViolationCode

if TYPE_CHECKING:
    from mash.bootstrap.phase_manager import PhaseManager
    from mash.commands.index import CommandIndex
    from mash.commands.models import ResolvedCommand

logger = logging.getLogger(__name__)


class ErrorAggregator:

    def __init__(self, state: BootstrapState) -> None:
        self.state = state
        self.violations: List[RequirementViolation] = []
        self._recovery_attempted = False

    def add(self, violation: RequirementViolation) -> None:
        self.violations.append(violation.tagged(self.state.current_phase))

    def extend(self, violations: Sequence[RequirementViolation]) -> None:
        for violation in violations:
            self.add(violation)

    def __bool__(self) -> bool:
        return bool(self.violations)

    def __len__(self) -> int:
        return len(self.violations)

    def compose(
        self,
        candidate: Optional['ResolvedCommand'],
        candidate_violations: Sequence[RequirementViolation],
        arguments: Sequence[str],
        phase_manager: 'PhaseManager',
        index: 'CommandIndex',
    ) -> List[RequirementViolation]:
        args = ' '.join(arguments)
        if candidate is not None:
            self.extend(candidate_violations)
            disabled = self._disabled_for_candidate(candidate, candidate_violations, phase_manager)
            if disabled is not None:
                self.add(disabled)
            self._not_executable(args or candidate.name)
        elif arguments:
            recovered = self.find_disabled_dependency(arguments, phase_manager, index)
            if recovered is not None:
                self.add(recovered)
                self._not_executable(args)
            else:
                self.add(RequirementViolation(
                    code=ViolationCode.COMMAND_NOT_FOUND,
                    message=f"The mash command '{args}' could not be found. "
                            "Check that the extension or module providing it is installed.",
                ))

        self.extend(self.state.all_phase_errors())

        if not self.violations:
            self.add(RequirementViolation(
                code=ViolationCode.COMMAND_NOT_FOUND,
                message='No command could be resolved.',
            ))
        return list(self.violations)

    def _disabled_for_candidate(
        self,
        candidate: 'ResolvedCommand',
        violations: Sequence[RequirementViolation],
        phase_manager: 'PhaseManager',
    ) -> Optional[RequirementViolation]:
        if not phase_manager.has_reached(DEEPEST_PHASE):
            return None
        missing: List[str] = []
        for violation in violations:
            if violation.code != ViolationCode.MISSING_HOST_MODULE:
                continue
            for module in violation.details.get('modules', []):
                if module not in missing:
                    missing.append(module)
        if not missing:
            return None
        name = candidate.command.name
        return RequirementViolation(
            code=ViolationCode.DISABLED_MODULE_DEPENDENCY,
            message=f"Command {name} needs the following module(s) enabled to run: {', '.join(missing)}.",
            phase=phase_manager.current_phase(),
            details={'command': name, 'modules': missing},
        )

    def _not_executable(self, args: str) -> None:
        self.add(RequirementViolation(
            code=ViolationCode.COMMAND_NOT_EXECUTABLE,
            message=f"The mash command '{args}' could not be executed.",
        ))

    def find_disabled_dependency(
        self,
        arguments: Sequence[str],
        phase_manager: 'PhaseManager',
        index: 'CommandIndex',
    ) -> Optional[RequirementViolation]:
        """
        Check whether the requested command belongs to a disabled module.

        Escalates to full bootstrap, rebuilds the index there with disabled
        sources included and looks the command up again. Runs at most once.
        """
        if self._recovery_attempted:
            return None
        self._recovery_attempted = True

        if not phase_manager.advance_to(DEEPEST_PHASE):
            logger.debug('Disabled-dependency lookup skipped: %s not reachable', DEEPEST_PHASE.label)
            return None

        registry = index.discover(DEEPEST_PHASE, include_disabled=True, refresh=True)
        resolved = match_longest(registry, arguments)
        if resolved is None:
            return None

        command = resolved.command
        modules = list(command.host_modules) or ([command.owner] if command.owner else [])
        logger.debug("Command '%s' found in disabled source %s", command.name, command.source)
        return RequirementViolation(
            code=ViolationCode.DISABLED_MODULE_DEPENDENCY,
            message=f"Command {command.name} needs the following module(s) enabled to run: "
                    f"{', '.join(modules) or 'unknown'}.",
            phase=phase_manager.current_phase(),
            details={'command': command.name, 'modules': modules},
        )
