"""
Exception classes for mash.

Requirement failures are never raised: they are recorded as
RequirementViolation values. The exceptions below cover the cases that
cannot continue at all, such as broken configuration or a handler that
cannot be imported.
"""

from typing import List, Optional


class MashError(RuntimeError):
    """
    Base exception for all mash errors.

    Carries the bootstrap phase and command that were active when the
    error was raised, when known.
    """

    def __init__(self, message: str, phase: Optional[str] = None, command: Optional[str] = None):
        super().__init__(message)
        self.phase = phase
        self.command = command

    def __str__(self) -> str:
        base_msg = super().__str__()

        context_parts = []
        if self.phase:
            context_parts.append(f"phase={self.phase}")
        if self.command:
            context_parts.append(f"command={self.command}")

        if context_parts:
            return f"{base_msg} ({', '.join(context_parts)})"
        return base_msg


class ConfigurationError(MashError):
    """
    Raised when configuration loading or merging fails.

    This includes malformed values for keys the engine depends on, such as
    a non-list ``command_paths``.
    """

    def __init__(self, message: str, config_path: Optional[str] = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.config_path = config_path
        self.errors = errors or []

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.config_path:
            base_msg = f"{base_msg} (config={self.config_path})"
        if self.errors:
            error_list = "\n  - ".join(self.errors)
            return f"{base_msg}\nConfiguration errors:\n  - {error_list}"
        return base_msg


class EarlyHookError(MashError):
    """Raised when the configured early hook cannot be loaded."""
    pass


class CommandDefinitionError(MashError):
    """
    Raised when a resolved command cannot be invoked.

    Typically the handler path does not import, or names something that is
    not callable.
    """
    pass


class DispatchError(MashError):
    """Raised when a second command dispatch is attempted in one run."""
    pass


__all__ = [
    'MashError',
    'ConfigurationError',
    'EarlyHookError',
    'CommandDefinitionError',
    'DispatchError',
]
