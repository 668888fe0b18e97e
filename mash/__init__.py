from __future__ import annotations

__version__ = '1.0.0'
__description__ = 'Staged-bootstrap command shell for host applications'

from .exceptions import *
from .core import ContextStore, Phase, RequirementViolation, RunOutcome, ViolationCode
from .runtime import MashApplication, mash_main

__all__ = [
    'MashApplication', 'mash_main',
    'ContextStore', 'Phase', 'RequirementViolation', 'RunOutcome', 'ViolationCode',
    'MashError', 'ConfigurationError', 'EarlyHookError', 'CommandDefinitionError', 'DispatchError',
]
