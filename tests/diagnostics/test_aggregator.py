from unittest.mock import MagicMock

import pytest

from mash.bootstrap.phase_manager import PhaseManager
from mash.commands.index import CommandIndex
from mash.commands.models import Command, CommandSource, ResolvedCommand, SourceKind
from mash.commands.sources import StaticSourceProvider
from mash.core.phases import BootstrapState, Phase
from mash.core.results import RequirementViolation, ViolationCode
from mash.diagnostics.aggregator import ErrorAggregator


def noop(invocation):
    return True


@pytest.fixture
def provider():
    return StaticSourceProvider([
        CommandSource(name='catalog', kind=SourceKind.MODULE, owner='catalog', phase=Phase.HOST_FULL, commands=[
            Command(name='catalog-reindex', owner='catalog', handler=noop),
        ]),
        CommandSource(name='reports', kind=SourceKind.MODULE, owner='reports', phase=Phase.HOST_FULL,
                      enabled=False, commands=[
                          Command(name='extension-action', owner='reports', handler=noop),
                          Command(name='report-export', owner='reports', host_modules=['reports', 'billing'],
                                  handler=noop),
                      ]),
    ])


@pytest.fixture
def setup(context, host, calls, make_loaders, provider):
    def build(fail_at=None):
        state = BootstrapState()
        loaders = make_loaders(calls, fail_at=fail_at,
                               effects={Phase.HOST_FULL: lambda h: setattr(h, 'modules_active', True)})
        manager = PhaseManager(state, context, loaders, host)
        manager.advance_to(Phase.HOST_CONFIGURATION)
        return state, manager, CommandIndex(provider)
    return build


def test_candidate_violations_lead(setup):
    state, manager, index = setup()
    candidate = ResolvedCommand(command=Command(name='catalog-reindex'), arguments=[])
    missing = RequirementViolation(code=ViolationCode.MISSING_HOST_MODULE, message='needs catalog')

    violations = ErrorAggregator(state).compose(candidate, [missing], ['catalog-reindex'], manager, index)

    assert [v.code for v in violations] == [ViolationCode.MISSING_HOST_MODULE, ViolationCode.COMMAND_NOT_EXECUTABLE]
    assert violations[1].message == "The mash command 'catalog-reindex' could not be executed."
    assert all(v.phase == Phase.HOST_CONFIGURATION for v in violations)
    # A candidate never triggers the disabled-dependency lookup.
    assert not manager.has_reached(Phase.HOST_FULL)


def test_disabled_module_is_named(setup):
    state, manager, index = setup()

    violations = ErrorAggregator(state).compose(None, [], ['extension-action', '--flag'], manager, index)

    assert [v.code for v in violations] == [
        ViolationCode.DISABLED_MODULE_DEPENDENCY,
        ViolationCode.COMMAND_NOT_EXECUTABLE,
    ]
    assert violations[0].details == {'command': 'extension-action', 'modules': ['reports']}
    assert 'reports' in violations[0].message
    assert violations[0].phase == Phase.HOST_FULL
    assert "'extension-action --flag'" in violations[1].message


def test_declared_modules_take_precedence_over_owner(setup):
    state, manager, index = setup()
    recovered = ErrorAggregator(state).find_disabled_dependency(['report-export'], manager, index)
    assert recovered.details['modules'] == ['reports', 'billing']


def test_recovery_runs_at_most_once(setup):
    state, manager, _ = setup()
    index = MagicMock()
    index.discover.return_value = MagicMock(max_words=1, lookup=MagicMock(return_value=None))
    aggregator = ErrorAggregator(state)

    assert aggregator.find_disabled_dependency(['unknown'], manager, index) is None
    assert aggregator.find_disabled_dependency(['unknown'], manager, index) is None
    assert index.discover.call_count == 1
    index.discover.assert_called_with(Phase.HOST_FULL, include_disabled=True, refresh=True)


def test_unknown_command_is_not_found(setup):
    state, manager, index = setup()
    [violation] = ErrorAggregator(state).compose(None, [], ['nope'], manager, index)

    assert violation.code == ViolationCode.COMMAND_NOT_FOUND
    assert "'nope'" in violation.message


def test_lookup_skipped_when_full_bootstrap_fails(setup, calls):
    state, manager, index = setup(fail_at=Phase.HOST_DATABASE)

    violations = ErrorAggregator(state).compose(None, [], ['extension-action'], manager, index)

    assert [v.code for v in violations] == [ViolationCode.COMMAND_NOT_FOUND, ViolationCode.PHASE_LOAD_FAILED]
    assert violations[1].phase == Phase.HOST_DATABASE
    assert Phase.HOST_FULL not in calls


def test_fallback_when_nothing_else_to_report(setup):
    state, manager, index = setup()
    [violation] = ErrorAggregator(state).compose(None, [], [], manager, index)
    assert violation.code == ViolationCode.COMMAND_NOT_FOUND


def test_candidate_missing_modules_named_at_full_bootstrap(setup):
    state, manager, index = setup()
    manager.advance_to(Phase.HOST_FULL)
    candidate = ResolvedCommand(command=Command(name='report-sync', host_modules=['reports']), arguments=[])
    missing = RequirementViolation(code=ViolationCode.MISSING_HOST_MODULE, message='needs reports',
                                   details={'modules': ['reports']})

    violations = ErrorAggregator(state).compose(candidate, [missing], ['report-sync'], manager, index)

    assert [v.code for v in violations] == [
        ViolationCode.MISSING_HOST_MODULE,
        ViolationCode.DISABLED_MODULE_DEPENDENCY,
        ViolationCode.COMMAND_NOT_EXECUTABLE,
    ]
    assert violations[1].details == {'command': 'report-sync', 'modules': ['reports']}
    assert violations[1].phase == Phase.HOST_FULL
