"""
Phase Manager - monotonic state machine over the ordered bootstrap phases.

Each phase is brought up by a PhaseLoader. Phases run strictly in
ascending order, each at most once per run. The first failure is
terminal: the manager stays at the last phase that succeeded, records the
failure on the BootstrapState and refuses to go any deeper.
"""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from mash.bootstrap.host import HostEnvironment
from mash.core.context import ContextStore
from mash.core.phases import BootstrapState, Phase
from mash.core.results import RequirementViolation, ViolationCode
from mash.diagnostics.telemetry import NullTelemetrySink, TelemetrySink

logger = logging.getLogger(__name__)


@dataclass
class PhaseResult:
    """Result of a phase loader execution."""
    success: bool
    message: str
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success_result(
        cls,
        message: str,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        return cls(success=True, message=message, warnings=warnings or [], metadata=metadata or {})

    @classmethod
    def failure_result(
        cls,
        message: str,
        errors: Optional[List[str]] = None,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> 'PhaseResult':
        return cls(success=False, message=message, errors=errors or [message],
                   warnings=warnings or [], metadata=metadata or {})


class PhaseLoader(ABC):
    """
    Brings up one bootstrap phase.

    Subclasses set ``phase`` and implement ``load``. Loaders report
    problems through the returned PhaseResult; an exception escaping
    ``load`` is treated as a failed phase as well.
    """

    phase: Phase

    def __init__(self) -> None:
        self.loader_name = self.__class__.__name__
        self.logger = logging.getLogger(f"mash.bootstrap.{self.loader_name.lower()}")

    @abstractmethod
    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        ...


class PhaseManager:

    def __init__(
        self,
        state: BootstrapState,
        context: ContextStore,
        loaders: Optional[Mapping[Phase, PhaseLoader]] = None,
        host: Optional[HostEnvironment] = None,
        telemetry: Optional[TelemetrySink] = None,
    ) -> None:
        self.state = state
        self.context = context
        self.loaders: Dict[Phase, PhaseLoader] = dict(loaders or {})
        self.host = host if host is not None else HostEnvironment()
        self.telemetry = telemetry if telemetry is not None else NullTelemetrySink()

    def current_phase(self) -> Optional[Phase]:
        return self.state.current_phase

    def has_reached(self, phase: Phase) -> bool:
        return self.state.has_reached(phase)

    @property
    def failed(self) -> bool:
        return self.state.failed_phase is not None

    def advance_to(self, phase: Phase) -> bool:
        """
        Run every pending phase up to and including ``phase``.

        Returns True when ``phase`` has been reached. Asking for a phase that
        is already reached is a no-op. After a failure nothing deeper than
        the current phase is ever attempted again in this run.
        """
        target = Phase.parse(phase)
        if self.has_reached(target):
            return True
        if self.failed:
            logger.debug('Not advancing to %s: bootstrap already failed at %s',
                         target.label, self.state.failed_phase.label)
            return False

        for step in Phase:
            if step > target:
                break
            if step in self.state.completed:
                continue
            if not self._run_phase(step):
                return False
        return True

    def _run_phase(self, phase: Phase) -> bool:
        loader = self.loaders.get(phase)
        if loader is None:
            logger.debug('No loader registered for %s; marking complete', phase.label)
            self.state.mark_completed(phase)
            return True

        logger.debug('Bootstrapping to phase %s with %s', phase.label, loader.loader_name)
        start = time.perf_counter()
        try:
            result = loader.load(self.context, self.host)
        except Exception as exc:
            logger.error('Unexpected error in phase %s: %s', phase.label, exc, exc_info=self.context.debug)
            result = PhaseResult.failure_result(
                f'Phase {phase.label} failed with {type(exc).__name__}: {exc}',
                metadata={'exception_type': type(exc).__name__},
            )
        duration = time.perf_counter() - start

        for warning in result.warnings:
            logger.warning('  Warning (%s): %s', phase.label, warning)

        if not result.success:
            self.state.failed_phase = phase
            for error in result.errors or [result.message]:
                self.state.record_phase_error(phase, RequirementViolation(
                    code=ViolationCode.PHASE_LOAD_FAILED,
                    message=error,
                    phase=phase,
                    details=dict(result.metadata),
                ))
            logger.info('✗ Phase %s failed after %.3fs: %s', phase.label, duration, result.message)
            return False

        self.state.mark_completed(phase)
        self.telemetry.record(f'bootstrap.{phase.label}', duration, 's')
        logger.debug('✓ Phase %s completed in %.3fs - %s', phase.label, duration, result.message)
        return True
