import yaml

from mash.bootstrap.host import HostEnvironment
from mash.bootstrap.loaders import default_loaders, find_host_root
from mash.bootstrap.phase_manager import PhaseManager
from mash.core.context import ContextStore
from mash.core.phases import BootstrapState, Phase
from mash.core.results import ViolationCode


def write_host(root, database=None, modules=None, version='2.4.1'):
    manifest = {
        'version': version,
        'modules': modules if modules is not None else {
            'catalog': {'enabled': True, 'path': 'modules/catalog'},
            'reports': {'enabled': False, 'path': 'modules/reports'},
        },
    }
    if database is not None:
        manifest['database'] = database
    (root / 'host.yaml').write_text(yaml.safe_dump(manifest))
    return root


def manager_for(root, **values):
    context = ContextStore({'host': {'root': str(root), 'manifest': 'host.yaml', 'site': 'default'}, **values})
    host = HostEnvironment()
    return PhaseManager(BootstrapState(), context, default_loaders(), host), host


def test_full_bootstrap_against_manifest(tmp_path):
    (tmp_path / 'var').mkdir()
    (tmp_path / 'var' / 'host.db').write_bytes(b'')
    write_host(tmp_path, database={'driver': 'sqlite', 'path': 'var/host.db'})
    manager, host = manager_for(tmp_path, user='admin')

    assert manager.advance_to(Phase.HOST_LOGIN) is True

    assert host.root == tmp_path.resolve()
    assert host.version() == '2.4.1'
    assert host.enabled_modules() == frozenset({'catalog'})
    assert host.user == 'admin'


def test_modules_are_not_reported_enabled_before_full_phase(tmp_path):
    write_host(tmp_path, database={'driver': 'mysql'})
    manager, host = manager_for(tmp_path)

    manager.advance_to(Phase.HOST_DATABASE)
    assert host.enabled_modules() == frozenset()

    manager.advance_to(Phase.HOST_FULL)
    assert host.enabled_modules() == frozenset({'catalog'})


def test_missing_database_stops_before_database_phase(tmp_path):
    write_host(tmp_path)
    manager, host = manager_for(tmp_path)

    assert manager.advance_to(Phase.HOST_FULL) is False
    assert manager.current_phase() == Phase.HOST_CONFIGURATION
    [error] = manager.state.phase_errors[Phase.HOST_DATABASE]
    assert error.code == ViolationCode.PHASE_LOAD_FAILED
    assert 'No database driver' in error.message


def test_root_not_found_fails_root_phase(tmp_path):
    context = ContextStore({'host': {'manifest': 'host.yaml'}, 'cwd': str(tmp_path)})
    manager = PhaseManager(BootstrapState(), context, default_loaders(), HostEnvironment())

    assert manager.advance_to(Phase.HOST_ROOT) is False
    assert manager.current_phase() == Phase.TOOL


def test_find_host_root_walks_upwards(tmp_path):
    write_host(tmp_path)
    nested = tmp_path / 'a' / 'b'
    nested.mkdir(parents=True)

    assert find_host_root(nested) == tmp_path.resolve()


def test_unknown_site_fails_site_phase(tmp_path):
    write_host(tmp_path)
    context = ContextStore({'host': {'root': str(tmp_path), 'site': 'shop'}})
    manager = PhaseManager(BootstrapState(), context, default_loaders(), HostEnvironment())

    assert manager.advance_to(Phase.HOST_SITE) is False
    assert manager.current_phase() == Phase.HOST_ROOT


def test_malformed_manifest_fails_configuration_phase(tmp_path):
    write_host(tmp_path, modules={'catalog': {'enabled': 'yes please'}}, database={'driver': 'mysql'})
    manager, host = manager_for(tmp_path)

    assert manager.advance_to(Phase.HOST_CONFIGURATION) is False
    [error] = manager.state.phase_errors[Phase.HOST_CONFIGURATION]
    assert error.message.startswith('Schema validation failed')
    assert 'modules.catalog' in error.message
    assert host.modules == {}
