from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Union

if TYPE_CHECKING:
    from mash.core.results import RequirementViolation

__all__ = ['Phase', 'BootstrapState', 'DEEPEST_PHASE']
logger = logging.getLogger(__name__)


class Phase(IntEnum):
    TOOL = 0
    HOST_ROOT = 1
    HOST_SITE = 2
    HOST_CONFIGURATION = 3
    HOST_DATABASE = 4
    HOST_FULL = 5
    HOST_LOGIN = 6

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Union[str, int, 'Phase']) -> 'Phase':
        """Accept a Phase, its integer value, or a name such as ``host_full`` or ``full``."""
        if isinstance(value, Phase):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid bootstrap phase: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            key = value.strip().upper().replace('-', '_')
            if key.isdigit():
                return cls(int(key))
            if key in cls.__members__:
                return cls[key]
            if f'HOST_{key}' in cls.__members__:
                return cls[f'HOST_{key}']
        raise ValueError(f"Invalid bootstrap phase: {value!r}")


# The phase the disabled-dependency recovery escalates to.
DEEPEST_PHASE = Phase.HOST_FULL


@dataclass
class BootstrapState:
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    current_phase: Optional[Phase] = None
    completed: Set[Phase] = field(default_factory=set)
    phase_errors: Dict[Phase, List['RequirementViolation']] = field(default_factory=dict)
    failed_phase: Optional[Phase] = None
    side_effects: Set[str] = field(default_factory=set)
    metadata: Dict[str, Any] = field(default_factory=dict)
    finalized: bool = False

    def has_reached(self, phase: Phase) -> bool:
        return self.current_phase is not None and self.current_phase >= phase

    def mark_completed(self, phase: Phase) -> None:
        self.completed.add(phase)
        if self.current_phase is None or phase > self.current_phase:
            self.current_phase = phase

    def record_phase_error(self, phase: Phase, violation: 'RequirementViolation') -> None:
        self.phase_errors.setdefault(phase, []).append(violation)

    def all_phase_errors(self) -> List['RequirementViolation']:
        return [v for phase in sorted(self.phase_errors) for v in self.phase_errors[phase]]

    def mark_once(self, key: str) -> bool:
        """Return True the first time ``key`` is marked, False afterwards."""
        if key in self.side_effects:
            return False
        self.side_effects.add(key)
        return True

    def finalize(self) -> None:
        if self.finalized:
            logger.debug('BootstrapState %s already finalized', self.run_id)
            return
        self.finalized = True
        reached = self.current_phase.label if self.current_phase is not None else 'none'
        logger.debug('Bootstrap finished for run %s (reached=%s, failed=%s)',
                     self.run_id, reached, self.failed_phase.label if self.failed_phase is not None else 'none')
