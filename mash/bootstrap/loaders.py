"""
Default phase loaders.

These bring up a host described by a YAML manifest (``host.yaml`` by
default) sitting at the host root::

    version: 2.4.1
    database:
      driver: sqlite
      path: var/host.db
    modules:
      catalog: {enabled: true, path: modules/catalog}
      reports: {enabled: false, path: modules/reports}

Each loader only fills in the part of HostEnvironment its phase owns.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import jsonschema

from mash.bootstrap.host import HostEnvironment, HostModule
from mash.bootstrap.phase_manager import PhaseLoader, PhaseResult
from mash.core.context import ContextStore
from mash.core.phases import Phase
from mash.core.utils import load_yaml_robust

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = 'host.yaml'

HOST_MANIFEST_SCHEMA: Dict[str, Any] = {
    'type': 'object',
    'properties': {
        'version': {'type': ['string', 'number']},
        'modules': {
            'type': ['object', 'null'],
            'additionalProperties': {
                'anyOf': [
                    {'type': 'boolean'},
                    {
                        'type': 'object',
                        'properties': {
                            'enabled': {'type': 'boolean'},
                            'path': {'type': 'string'},
                        },
                    },
                ],
            },
        },
        'database': {
            'type': ['object', 'null'],
            'properties': {'driver': {'type': 'string'}},
        },
    },
}


def validate_manifest(manifest: Mapping[str, Any]) -> List[str]:
    try:
        jsonschema.validate(dict(manifest), HOST_MANIFEST_SCHEMA)
    except jsonschema.ValidationError as exc:
        loc = '.'.join(map(str, exc.absolute_path)) if exc.absolute_path else '<root>'
        return [f'Schema validation failed: {exc.message} at {loc}']
    logger.debug('✓ Host manifest schema validation passed')
    return []


def _manifest_name(context: ContextStore) -> str:
    return context.get_str('host.manifest', DEFAULT_MANIFEST) or DEFAULT_MANIFEST


def find_host_root(start: Path, manifest_name: str = DEFAULT_MANIFEST) -> Optional[Path]:
    start = start.resolve()
    for candidate in [start, *start.parents]:
        if (candidate / manifest_name).is_file():
            return candidate
    return None


class ToolPhaseLoader(PhaseLoader):
    phase = Phase.TOOL

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        enabled = context.get_list('extensions.enabled')
        bad = [ext for ext in enabled if not isinstance(ext, str) or not ext]
        if bad:
            return PhaseResult.failure_result(f'Invalid tool extension names in configuration: {bad}')
        return PhaseResult.success_result(
            f'Tool ready with {len(enabled)} extension(s)',
            metadata={'extensions': sorted(enabled)},
        )


class HostRootLoader(PhaseLoader):
    phase = Phase.HOST_ROOT

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        manifest_name = _manifest_name(context)
        explicit = context.get_str('host.root')
        if explicit:
            root = Path(explicit).expanduser().resolve()
            if not (root / manifest_name).is_file():
                return PhaseResult.failure_result(
                    f"The host root '{root}' does not contain {manifest_name}.",
                    metadata={'root': str(root)},
                )
        else:
            cwd = Path(context.get_str('cwd') or Path.cwd())
            root = find_host_root(cwd, manifest_name)
            if root is None:
                return PhaseResult.failure_result(
                    f'No host root found from {cwd}. Use --root to point at a directory containing {manifest_name}.'
                )
        host.root = root
        self.logger.debug('Host root: %s', root)
        return PhaseResult.success_result(f'Host root found at {root}')


class HostSiteLoader(PhaseLoader):
    phase = Phase.HOST_SITE

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        site = context.get_str('host.site', 'default') or 'default'
        host.site = site
        site_dir = host.site_path()
        if site != 'default' and (site_dir is None or not site_dir.is_dir()):
            return PhaseResult.failure_result(f"Site '{site}' not found under {host.root}/sites.")
        return PhaseResult.success_result(f"Site '{site}' selected")


class HostConfigurationLoader(PhaseLoader):
    phase = Phase.HOST_CONFIGURATION

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        manifest_path = host.root / _manifest_name(context)
        manifest = load_yaml_robust(manifest_path)
        if not manifest:
            return PhaseResult.failure_result(f'Host manifest {manifest_path} is empty or unreadable.')

        errors = validate_manifest(manifest)
        if errors:
            return PhaseResult.failure_result(f'Host manifest {manifest_path} is invalid.', errors=errors)

        modules_cfg = manifest.get('modules') or {}
        modules: Dict[str, HostModule] = {}
        for name, spec in modules_cfg.items():
            spec = spec if isinstance(spec, Mapping) else {'enabled': bool(spec)}
            path = spec.get('path')
            modules[str(name)] = HostModule(
                name=str(name),
                enabled=bool(spec.get('enabled', False)),
                path=(host.root / str(path)) if path else None,
            )

        version = manifest.get('version')
        host.manifest = manifest
        host.host_version = str(version) if version is not None else None
        host.modules = modules
        host.database = dict(manifest.get('database') or {})
        return PhaseResult.success_result(
            f'Host configuration loaded (version={host.host_version}, modules={len(modules)})'
        )


class HostDatabaseLoader(PhaseLoader):
    phase = Phase.HOST_DATABASE

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        database = host.database
        driver = database.get('driver')
        if not driver:
            return PhaseResult.failure_result('No database driver configured for the host.')
        if driver == 'sqlite':
            db_path = database.get('path')
            if not db_path or not (host.root / str(db_path)).is_file():
                return PhaseResult.failure_result(f'SQLite database {db_path!r} does not exist.')
        return PhaseResult.success_result(f'Database settings validated (driver={driver})')


class HostFullLoader(PhaseLoader):
    phase = Phase.HOST_FULL

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        host.modules_active = True
        enabled = sorted(host.enabled_modules())
        return PhaseResult.success_result(f'{len(enabled)} module(s) enabled', metadata={'modules': enabled})


class HostLoginLoader(PhaseLoader):
    phase = Phase.HOST_LOGIN

    def load(self, context: ContextStore, host: HostEnvironment) -> PhaseResult:
        host.user = context.get_str('user', 'anonymous')
        return PhaseResult.success_result(f'Logged in as {host.user}')


def default_loaders() -> Dict[Phase, PhaseLoader]:
    loaders = [
        ToolPhaseLoader(),
        HostRootLoader(),
        HostSiteLoader(),
        HostConfigurationLoader(),
        HostDatabaseLoader(),
        HostFullLoader(),
        HostLoginLoader(),
    ]
    return {loader.phase: loader for loader in loaders}
