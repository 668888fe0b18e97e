import yaml

from mash.bootstrap.host import HostEnvironment, HostModule
from mash.commands.builtin import builtin_commands
from mash.commands.models import SourceKind
from mash.commands.sources import ManifestSourceProvider, load_commandfile
from mash.core.context import ContextStore
from mash.core.phases import Phase
from mash.core.results import ViolationCode


def write_commandfile(path, commands, **extra):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump({'commands': commands, **extra}))
    return path


def test_commandfile_fields_are_parsed(tmp_path):
    path = write_commandfile(tmp_path / 'catalog.mash.yaml', {
        'catalog-reindex': {
            'description': 'Rebuild the index',
            'handler': 'catalog_tools.commands:reindex',
            'bootstrap': 'host_database',
            'core': ['2', '3'],
            'modules': ['catalog'],
            'aliases': 'cri',
        },
    })
    source = load_commandfile(path, SourceKind.MODULE, Phase.HOST_FULL, owner='catalog')

    [command] = source.commands
    assert source.name == 'catalog'
    assert command.min_phase == Phase.HOST_DATABASE
    assert command.host_version == '2,3'
    assert command.host_modules == ['catalog']
    assert command.aliases == ['cri']
    assert command.owner == 'catalog'
    assert command.errors == []


def test_malformed_entries_become_predetected_errors(tmp_path):
    path = write_commandfile(tmp_path / 'bad.mash.yaml', {
        'broken': {'bootstrap': 'stratosphere', 'handler': 'not a path'},
    })
    [command] = load_commandfile(path, SourceKind.TOOL, Phase.TOOL).commands

    assert [e.code for e in command.errors] == [ViolationCode.COMMAND_DEFINITION_INVALID] * 2
    assert command.min_phase == Phase.HOST_FULL
    assert command.handler is None


def test_file_without_commands_is_skipped(tmp_path):
    path = tmp_path / 'empty.mash.yaml'
    path.write_text('description: nothing here\n')
    assert load_commandfile(path, SourceKind.TOOL, Phase.TOOL) is None


def test_provider_layers_sources_by_phase(tmp_path):
    tool_dir = tmp_path / 'tool'
    write_commandfile(tool_dir / 'general.mash.yaml', {'hello': {'handler': 'pkg.mod:hello', 'bootstrap': 'tool'}})
    write_commandfile(tool_dir / 'deploy.mash.yaml', {'deploy': {'handler': 'pkg.mod:deploy'}}, extension='deploy')
    root = tmp_path / 'host'
    write_commandfile(root / 'sites' / 'default' / 'commands' / 'site.mash.yaml',
                      {'site-backup': {'handler': 'pkg.mod:backup'}})
    write_commandfile(root / 'modules' / 'catalog' / 'catalog.mash.yaml',
                      {'catalog-reindex': {'handler': 'pkg.mod:reindex'}})
    write_commandfile(root / 'modules' / 'reports' / 'reports.mash.yaml',
                      {'extension-action': {'handler': 'pkg.mod:action'}})

    host = HostEnvironment(root=root, site='default', modules={
        'catalog': HostModule('catalog', True, root / 'modules' / 'catalog'),
        'reports': HostModule('reports', False, root / 'modules' / 'reports'),
    })
    context = ContextStore({'command_paths': [str(tool_dir)], 'extensions': {'enabled': []}})
    provider = ManifestSourceProvider(context, host, builtins=builtin_commands())

    def names(phase, include_disabled=False):
        return {c.name for s in provider.sources(phase, include_disabled) for c in s.commands}

    assert names(Phase.TOOL) == {'help', 'version', 'status', 'hello'}
    assert 'site-backup' in names(Phase.HOST_SITE)
    assert 'catalog-reindex' not in names(Phase.HOST_CONFIGURATION)
    full = names(Phase.HOST_FULL)
    assert 'catalog-reindex' in full and 'extension-action' not in full
    everything = names(Phase.HOST_FULL, include_disabled=True)
    assert {'extension-action', 'deploy'} <= everything

    context.set('extensions.enabled', ['deploy'])
    assert 'deploy' in names(Phase.TOOL)


def test_undecodable_commandfile_is_skipped(tmp_path, caplog):
    path = tmp_path / 'broken.mash.yaml'
    path.write_bytes(b'commands:\n  broken:\n    description: \xff\xfe\n')

    assert load_commandfile(path, SourceKind.TOOL, Phase.TOOL) is None
    assert 'broken.mash.yaml' in caplog.text


def test_undecodable_commandfile_leaves_builtins_usable(tmp_path):
    (tmp_path / 'broken.mash.yaml').write_bytes(b'\xff\xfe commands')
    context = ContextStore({'command_paths': [str(tmp_path)]})
    provider = ManifestSourceProvider(context, HostEnvironment(), builtins=builtin_commands())

    names = {c.name for s in provider.sources(Phase.TOOL) for c in s.commands}
    assert names == {'help', 'version', 'status'}


def test_command_rejected_by_model_is_skipped(tmp_path, caplog):
    path = tmp_path / 'mixed.mash.yaml'
    path.write_text("commands:\n  '':\n    handler: pkg.mod:nameless\n  good:\n    handler: pkg.mod:good\n")

    source = load_commandfile(path, SourceKind.TOOL, Phase.TOOL)

    assert [c.name for c in source.commands] == ['good']
    assert 'invalid and was skipped' in caplog.text
