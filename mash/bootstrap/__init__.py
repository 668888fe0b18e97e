from .early_hook import Continue, EarlyHook, EarlyHookResult, Return, Succeed, to_hook_result
from .host import HostEnvironment, HostIntrospector, HostModule, ToolEnvironment, ToolIntrospector
from .loaders import default_loaders
from .phase_manager import PhaseLoader, PhaseManager, PhaseResult
from .session import bootstrap_session

__all__ = [
    'PhaseManager', 'PhaseLoader', 'PhaseResult', 'default_loaders',
    'HostEnvironment', 'HostModule', 'HostIntrospector', 'ToolEnvironment', 'ToolIntrospector',
    'EarlyHook', 'EarlyHookResult', 'Continue', 'Succeed', 'Return', 'to_hook_result',
    'bootstrap_session',
]
