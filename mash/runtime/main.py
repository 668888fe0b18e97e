"""
Main entry point of the mash engine.

- Runs the early hook, if one is configured.
- Applies global options such as --debug.
- Bootstraps to the tool phase, then walks the remaining phases, resolving
  the requested command at each one until it can be dispatched.
- Explains, through the ErrorAggregator, why nothing ran when no command
  could be dispatched.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from mash.bootstrap.early_hook import Continue, EarlyHook, Succeed
from mash.bootstrap.host import HostEnvironment, ToolEnvironment
from mash.bootstrap.loaders import default_loaders
from mash.bootstrap.phase_manager import PhaseLoader, PhaseManager
from mash.bootstrap.session import bootstrap_session
from mash.commands.builtin import builtin_commands
from mash.commands.dispatcher import Dispatcher
from mash.commands.index import CommandIndex
from mash.commands.models import ResolvedCommand
from mash.commands.requirements import RequirementEnforcer
from mash.commands.resolver import CommandResolver
from mash.commands.sources import CommandSourceProvider, ManifestSourceProvider
from mash.core.context import ContextStore
from mash.core.phases import BootstrapState, Phase
from mash.core.results import RequirementViolation, RunOutcome
from mash.diagnostics.aggregator import ErrorAggregator
from mash.diagnostics.telemetry import LoggingTelemetrySink, NullTelemetrySink, TelemetrySink

logger = logging.getLogger(__name__)


def tool_log_level(context: ContextStore) -> Optional[int]:
    """Level for the ``mash`` loggers implied by the global flags: debug, then quiet, then verbose."""
    if context.debug:
        return logging.DEBUG
    if context.quiet:
        return logging.ERROR
    if context.verbose:
        return logging.INFO
    return None


def process_global_options(context: ContextStore, state: BootstrapState) -> None:
    if not state.mark_once('global_options'):
        return
    level = tool_log_level(context)
    if level is not None:
        logging.getLogger('mash').setLevel(level)


class MashApplication:
    """
    One run of mash against one argument vector.

    Collaborators can be swapped for tests or embedding: phase loaders,
    the command source provider, the host/tool environments and the
    telemetry sink. Anything not given falls back to the file-based
    defaults.
    """

    def __init__(
        self,
        context: ContextStore,
        loaders: Optional[Mapping[Phase, PhaseLoader]] = None,
        provider: Optional[CommandSourceProvider] = None,
        host: Optional[HostEnvironment] = None,
        tool: Optional[ToolEnvironment] = None,
        telemetry: Optional[TelemetrySink] = None,
        early_hook: Optional[EarlyHook] = None,
    ) -> None:
        self.context = context
        self.host = host if host is not None else HostEnvironment()
        self.tool = tool if tool is not None else ToolEnvironment(
            frozenset(str(e) for e in context.get_list('extensions.enabled'))
        )
        self.loaders: Dict[Phase, PhaseLoader] = dict(loaders) if loaders is not None else default_loaders()
        self.provider = provider if provider is not None else ManifestSourceProvider(
            context, self.host, builtins=builtin_commands()
        )
        if telemetry is None:
            verbose_telemetry = context.debug and not context.quiet
            telemetry = LoggingTelemetrySink() if verbose_telemetry else NullTelemetrySink()
        self.telemetry = telemetry
        self.early_hook = early_hook if early_hook is not None else EarlyHook.from_context(context)

        self.index = CommandIndex(self.provider)
        self.resolver = CommandResolver(self.index, context.get_str('default_command', 'help'))
        self.enforcer = RequirementEnforcer(self.host, self.tool)
        self.phase_manager: Optional[PhaseManager] = None
        self.state: Optional[BootstrapState] = None

    def run(self) -> RunOutcome:
        with bootstrap_session(self.context) as state:
            self.state = state
            hook_result = self.early_hook.invoke()
            if not isinstance(hook_result, Continue):
                value = '' if isinstance(hook_result, Succeed) else hook_result.value
                logger.debug('Early hook finished the run before bootstrap')
                return RunOutcome(early_exit=True, result=value)

            process_global_options(self.context, state)
            self.phase_manager = PhaseManager(state, self.context, self.loaders, self.host, self.telemetry)
            self.phase_manager.advance_to(Phase.TOOL)
            if state.failed_phase is not None:
                aggregator = ErrorAggregator(state)
                aggregator.extend(state.all_phase_errors())
                return RunOutcome(violations=list(aggregator.violations))

            return self._bootstrap_and_dispatch(state)

    def _bootstrap_and_dispatch(self, state: BootstrapState) -> RunOutcome:
        manager = self.phase_manager
        arguments = self.context.arguments
        candidate: Optional[ResolvedCommand] = None
        candidate_violations: List[RequirementViolation] = []

        for phase in Phase:
            if not manager.advance_to(phase):
                break
            resolved = self.resolver.resolve(arguments, manager.current_phase())
            if resolved is None:
                continue

            reached = manager.advance_to(resolved.command.min_phase)
            violations = self.enforcer.enforce(resolved.command, manager.current_phase())
            if reached and self.enforcer.is_executable(violations):
                violations.extend(self.enforcer.check_handler(resolved.command, manager.current_phase()))
            candidate, candidate_violations = resolved, violations

            if reached and self.enforcer.is_executable(violations):
                registry = self.index.discover(manager.current_phase())
                dispatcher = Dispatcher(state, self.context, self.host, self.telemetry)
                result = dispatcher.run(resolved, registry=registry)
                return RunOutcome(executed=True, result=result.value, command=resolved.name)

        aggregator = ErrorAggregator(state)
        violations = aggregator.compose(candidate, candidate_violations, arguments, manager, self.index)
        return RunOutcome(
            violations=violations,
            command=candidate.name if candidate is not None else None,
        )


def mash_main(context: ContextStore, **collaborators) -> RunOutcome:
    return MashApplication(context, **collaborators).run()
