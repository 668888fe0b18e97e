from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mash.core.phases import Phase


class ViolationCode(str, Enum):
    PHASE_UNREACHABLE = 'PhaseUnreachable'
    VERSION_INCOMPATIBLE = 'VersionIncompatible'
    MISSING_HOST_MODULE = 'MissingHostModule'
    MISSING_TOOL_EXTENSION = 'MissingToolExtension'
    COMMAND_NOT_FOUND = 'CommandNotFound'
    COMMAND_NOT_EXECUTABLE = 'CommandNotExecutable'
    DISABLED_MODULE_DEPENDENCY = 'DisabledModuleDependency'
    PHASE_LOAD_FAILED = 'PhaseLoadFailed'
    COMMAND_DEFINITION_INVALID = 'CommandDefinitionInvalid'


class Severity(str, Enum):
    FATAL = 'fatal'
    INFORMATIONAL = 'informational'


class RequirementClass(str, Enum):
    PHASE = 'phase'
    HOST_VERSION = 'host_version'
    HOST_MODULE = 'host_module'
    TOOL_EXTENSION = 'tool_extension'


class RequirementViolation(BaseModel):
    code: ViolationCode
    message: str
    severity: Severity = Severity.FATAL
    requirement: Optional[RequirementClass] = None
    phase: Optional[Phase] = Field(None, description="Phase active when the violation was recorded")
    details: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL

    def tagged(self, phase: Optional[Phase]) -> 'RequirementViolation':
        """Copy of this violation tagged with ``phase`` unless already tagged."""
        if self.phase is not None or phase is None:
            return self
        return self.model_copy(update={'phase': phase})

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


def has_fatal(violations: List[RequirementViolation]) -> bool:
    return any(v.is_fatal for v in violations)


def normalize_result(value: Any) -> Any:
    # A bare True from a handler means "done, nothing to print".
    if value is True:
        return ''
    return value


@dataclass
class DispatchResult:
    command: str
    value: Any = ''
    duration_seconds: float = 0.0
    peak_memory_bytes: Optional[int] = None


@dataclass
class RunOutcome:
    executed: bool = False
    early_exit: bool = False
    result: Any = ''
    command: Optional[str] = None
    violations: List[RequirementViolation] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        if self.executed or self.early_exit:
            return 0
        return 1 if self.violations else 0
