from __future__ import annotations

import logging
import time
import tracemalloc
from typing import Any, Callable, Optional

from mash.bootstrap.host import HostEnvironment
from mash.commands.models import CommandInvocation, ResolvedCommand
from mash.commands.registry import CommandRegistry
from mash.core.context import ContextStore
from mash.core.phases import BootstrapState
from mash.core.results import DispatchResult, normalize_result
from mash.core.utils import import_by_path
from mash.diagnostics.telemetry import NullTelemetrySink, TelemetrySink, format_size
from mash.exceptions import CommandDefinitionError, DispatchError

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs the one command of this process and normalizes what it returns."""

    def __init__(
        self,
        state: BootstrapState,
        context: ContextStore,
        host: Optional[HostEnvironment] = None,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        self.state = state
        self.context = context
        self.host = host
        self.telemetry = telemetry if telemetry is not None else NullTelemetrySink()

    @property
    def dispatched(self) -> bool:
        return 'dispatched' in self.state.side_effects

    def _handler(self, resolved: ResolvedCommand) -> Callable[..., Any]:
        handler = resolved.command.handler
        if isinstance(handler, str):
            try:
                handler = import_by_path(handler, suppress_expected_errors=False)
            except (ImportError, AttributeError, ValueError) as exc:
                raise CommandDefinitionError(str(exc), command=resolved.name) from exc
        if not callable(handler):
            raise CommandDefinitionError(f'Handler for {resolved.name} is not callable', command=resolved.name)
        return handler

    def run(self, resolved: ResolvedCommand, registry: Optional[CommandRegistry] = None) -> DispatchResult:
        if not self.state.mark_once('dispatched'):
            raise DispatchError('A command has already been dispatched in this run', command=resolved.name)

        handler = self._handler(resolved)
        invocation = CommandInvocation(
            command=resolved.command,
            arguments=list(resolved.arguments),
            context=self.context,
            host=self.host,
            registry=registry,
        )
        report = self.context.debug and not self.context.quiet
        tracing = report and not tracemalloc.is_tracing()
        if tracing:
            tracemalloc.start()

        logger.info('Found command: %s (source=%s)', resolved.name, resolved.command.source or 'builtin')
        start = time.perf_counter()
        try:
            value = handler(invocation)
        finally:
            duration = time.perf_counter() - start
            peak: Optional[int] = None
            if report:
                peak = tracemalloc.get_traced_memory()[1]
            if tracing:
                tracemalloc.stop()

        result = DispatchResult(
            command=resolved.name,
            value=normalize_result(value),
            duration_seconds=duration,
            peak_memory_bytes=peak,
        )
        if report:
            self.telemetry.record(f'command.{resolved.name}', duration, 's')
            self.telemetry.record('memory.peak', float(peak or 0), 'bytes')
            logger.debug('Peak memory usage was %s', format_size(peak or 0))
        self.state.metadata['command'] = resolved.name
        return result
