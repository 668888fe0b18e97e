import pytest

from mash.bootstrap.host import HostEnvironment, ToolEnvironment
from mash.commands.models import Command
from mash.commands.requirements import RequirementEnforcer, version_satisfies
from mash.core.phases import Phase
from mash.core.results import RequirementClass, RequirementViolation, ViolationCode


@pytest.fixture
def enforcer(host, tool):
    host.modules_active = True
    return RequirementEnforcer(host, tool)


def codes(violations):
    return [v.code for v in violations]


def test_satisfied_command_has_no_violations(enforcer):
    command = Command(name='catalog-reindex', host_version='>=2.0,<3', host_modules=['catalog'],
                      tool_extensions=['devtools'])
    violations = enforcer.enforce(command, Phase.HOST_FULL)

    assert violations == []
    assert enforcer.is_executable(violations)


@pytest.mark.parametrize('required', [p for p in Phase if p > Phase.HOST_SITE])
def test_phase_deeper_than_reached_is_unreachable(enforcer, required):
    command = Command(name='deep', min_phase=required)
    [violation] = enforcer.enforce(command, Phase.HOST_SITE)

    assert violation.code == ViolationCode.PHASE_UNREACHABLE
    assert violation.requirement == RequirementClass.PHASE
    assert violation.phase == Phase.HOST_SITE
    assert not enforcer.is_executable([violation])


def test_nothing_reached_is_unreachable(enforcer):
    assert codes(enforcer.enforce(Command(name='x', min_phase=Phase.TOOL), None)) == [ViolationCode.PHASE_UNREACHABLE]


@pytest.mark.parametrize('constraint, ok', [
    ('>=2.0,<3', True),
    ('>=3.0', False),
    ('2', True),
    ('1,2', True),
    ('3', False),
    ('~=2.4', True),
])
def test_host_version_constraint(enforcer, constraint, ok):
    violations = enforcer.enforce(Command(name='v', host_version=constraint), Phase.HOST_FULL)
    assert (violations == []) is ok
    if not ok:
        assert codes(violations) == [ViolationCode.VERSION_INCOMPATIBLE]


def test_invalid_constraint_is_fatal(enforcer):
    [violation] = enforcer.enforce(Command(name='v', host_version='banana'), Phase.HOST_FULL)
    assert violation.code == ViolationCode.VERSION_INCOMPATIBLE
    assert 'unusable' in violation.message


def test_unknown_host_version_skips_version_check(tool):
    enforcer = RequirementEnforcer(HostEnvironment(), tool)
    command = Command(name='v', host_version='>=9', min_phase=Phase.TOOL)
    assert enforcer.enforce(command, Phase.TOOL) == []


def test_missing_host_modules_are_named(enforcer):
    command = Command(name='report', host_modules=['catalog', 'reports', 'billing'])
    [violation] = enforcer.enforce(command, Phase.HOST_FULL)

    assert violation.code == ViolationCode.MISSING_HOST_MODULE
    assert violation.details['modules'] == ['reports', 'billing']
    assert 'reports, billing' in violation.message


def test_missing_tool_extensions_are_named(enforcer):
    [violation] = enforcer.enforce(Command(name='x', tool_extensions=['devtools', 'deploy']), Phase.HOST_FULL)

    assert violation.code == ViolationCode.MISSING_TOOL_EXTENSION
    assert violation.details['extensions'] == ['deploy']


def test_checks_are_independent(enforcer):
    command = Command(name='all-wrong', min_phase=Phase.HOST_LOGIN, host_version='>=3',
                      host_modules=['reports'], tool_extensions=['deploy'])
    assert codes(enforcer.enforce(command, Phase.HOST_FULL)) == [
        ViolationCode.PHASE_UNREACHABLE,
        ViolationCode.VERSION_INCOMPATIBLE,
        ViolationCode.MISSING_HOST_MODULE,
        ViolationCode.MISSING_TOOL_EXTENSION,
    ]


def test_predetected_errors_come_first_and_are_tagged(enforcer):
    bad = RequirementViolation(code=ViolationCode.COMMAND_DEFINITION_INVALID, message='no handler')
    violations = enforcer.enforce(Command(name='broken', errors=[bad]), Phase.HOST_FULL)

    assert codes(violations) == [ViolationCode.COMMAND_DEFINITION_INVALID]
    assert violations[0].phase == Phase.HOST_FULL


def test_version_satisfies_accepts_prereleases():
    assert version_satisfies('2.5.0rc1', '>=2.4')


@pytest.mark.parametrize('handler, fragment', [
    ('mash.nowhere:handler', "Could not import module 'mash.nowhere'"),
    ('mash.commands.builtin:no_such_command', "'no_such_command' not found"),
    ('mash:__version__', 'not callable'),
    (None, 'no handler'),
])
def test_unusable_handlers_are_definition_errors(enforcer, handler, fragment):
    [violation] = enforcer.check_handler(Command(name='broken', handler=handler), Phase.HOST_FULL)

    assert violation.code == ViolationCode.COMMAND_DEFINITION_INVALID
    assert fragment in violation.message
    assert violation.phase == Phase.HOST_FULL


def test_importable_handler_passes(enforcer):
    command = Command(name='version', handler='mash.commands.builtin:version_command')
    assert enforcer.check_handler(command, Phase.TOOL) == []
