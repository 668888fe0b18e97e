from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from mash.bootstrap.host import HostEnvironment, HostModule, ToolEnvironment
from mash.bootstrap.phase_manager import PhaseLoader, PhaseResult
from mash.core.context import ContextStore
from mash.core.phases import Phase


class RecordingLoader(PhaseLoader):
    """Loader that succeeds (or not) on demand and remembers every call."""

    def __init__(self, phase: Phase, calls: List[Phase], succeed: bool = True,
                 raises: Optional[Exception] = None,
                 effect: Optional[Callable[[HostEnvironment], None]] = None) -> None:
        super().__init__()
        self.phase = phase
        self.calls = calls
        self.succeed = succeed
        self.raises = raises
        self.effect = effect

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        self.calls.append(self.phase)
        if self.raises is not None:
            raise self.raises
        if not self.succeed:
            return PhaseResult.failure_result(f'{self.phase.label} could not be loaded')
        if self.effect is not None:
            self.effect(host)
        return PhaseResult.success_result(f'{self.phase.label} ok')


def make_loaders(calls: List[Phase], fail_at: Optional[Phase] = None,
                 effects: Optional[Dict[Phase, Callable[[HostEnvironment], None]]] = None) -> Dict[Phase, PhaseLoader]:
    effects = effects or {}
    return {
        phase: RecordingLoader(phase, calls, succeed=(phase != fail_at), effect=effects.get(phase))
        for phase in Phase
    }


def activate_modules(host: HostEnvironment) -> None:
    host.modules_active = True


@pytest.fixture
def calls() -> List[Phase]:
    return []


@pytest.fixture
def context() -> ContextStore:
    return ContextStore({'debug': False, 'quiet': False, 'extensions': {'enabled': []}})


@pytest.fixture
def host() -> HostEnvironment:
    return HostEnvironment(
        root=Path('/srv/host'),
        site='default',
        host_version='2.4.1',
        modules={
            'catalog': HostModule('catalog', enabled=True),
            'reports': HostModule('reports', enabled=False),
        },
    )


@pytest.fixture
def tool() -> ToolEnvironment:
    return ToolEnvironment(frozenset({'devtools'}))


@pytest.fixture(name='make_loaders')
def make_loaders_fixture():
    return make_loaders


@pytest.fixture(name='recording_loader')
def recording_loader_fixture():
    return RecordingLoader


@pytest.fixture(autouse=True)
def restore_tool_log_level():
    tool_logger = logging.getLogger('mash')
    previous = tool_logger.level
    yield
    tool_logger.setLevel(previous)
