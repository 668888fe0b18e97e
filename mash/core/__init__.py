from .context import ContextStore
from .phases import DEEPEST_PHASE, BootstrapState, Phase
from .results import (
    DispatchResult,
    RequirementClass,
    RequirementViolation,
    RunOutcome,
    Severity,
    ViolationCode,
    has_fatal,
    normalize_result,
)

__all__ = [
    'ContextStore',
    'Phase', 'BootstrapState', 'DEEPEST_PHASE',
    'RequirementViolation', 'ViolationCode', 'Severity', 'RequirementClass',
    'DispatchResult', 'RunOutcome', 'has_fatal', 'normalize_result',
]
