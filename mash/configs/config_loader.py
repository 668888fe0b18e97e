from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Final, List, Mapping, Optional, Sequence

import yaml

from mash.configs.config_utils import ConfigMerger
from mash.exceptions import ConfigurationError

__all__: Sequence[str] = ('ConfigLoader', 'DEFAULT_CONFIG')
logger = logging.getLogger(__name__)

_ENV_DEFAULT: Final[str] = 'default'
CONFIG_ENV_VAR: Final[str] = 'MASH_CONFIG'

DEFAULT_CONFIG: Dict[str, Any] = {
    'env': _ENV_DEFAULT,
    'debug': False,
    'quiet': False,
    'verbose': False,
    'early': None,
    'default_command': 'help',
    'command_paths': [],
    'extensions': {
        'enabled': [],
    },
    'host': {
        'root': None,
        'manifest': 'host.yaml',
        'site': 'default',
    },
    'user': None,
    'logging': {
        'level': 'WARNING',
        'format': '%(levelname)-8s %(name)s: %(message)s',
    },
}

_RE_ENV_DEFAULT: Final[re.Pattern[str]] = re.compile('\\$\\{([A-Za-z_][A-Za-z0-9_]*)(?::-|[:-])(.*?)\\}')


def _interpolate_env(value: str) -> str:
    if not isinstance(value, str):
        return value

    def _repl(match: re.Match[str]) -> str:
        var, default = (match.group(1), match.group(2))
        return os.getenv(var, default)

    before = value
    value = _RE_ENV_DEFAULT.sub(_repl, value)
    value = os.path.expandvars(value)

    if before != value:
        logger.debug("Env expand: '%s' → '%s'", before, value)
    elif '${' in before:
        logger.warning("Unresolved env var in '%s'", before)

    return value


def _expand_tree(node: Any) -> Any:
    if isinstance(node, dict):
        return {k: _expand_tree(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_expand_tree(v) for v in node]
    if isinstance(node, str):
        return _interpolate_env(node)
    return node


def _load_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding='utf-8')
        if path.suffix.lower() == '.json':
            data = json.loads(text) or {}
        else:
            data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            logger.warning('%s does not contain a top-level mapping, ignored', path)
            return {}
        return data

    except FileNotFoundError:
        logger.debug('Config file not found: %s', path)
        return {}
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error('Failed to read %s: %s', path, exc)
        return {}


class ConfigLoader:
    """
    Layers mash configuration: built-in defaults, the user file, the
    project file, ``$MASH_CONFIG``, an explicit ``--config`` file and
    finally command-line overrides.
    """

    def __init__(self, home: Optional[Path] = None, cwd: Optional[Path] = None) -> None:
        self._home = home if home is not None else Path.home()
        self._cwd = cwd if cwd is not None else Path.cwd()

    def config_layers(self, config_path: Optional[str] = None) -> List[tuple[str, Path]]:
        layers = [
            ('USER_CONFIG', self._home / '.mash' / 'mash.yaml'),
            ('PROJECT_CONFIG', self._cwd / 'mash.yaml'),
        ]
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            layers.append((CONFIG_ENV_VAR, Path(env_path).expanduser()))
        if config_path:
            layers.append(('CLI_CONFIG', Path(config_path).expanduser()))
        return layers

    def load(
        self,
        config_path: Optional[str] = None,
        env: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        cfg: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        for label, path in self.config_layers(config_path):
            data = _load_file(path)
            if data:
                cfg = ConfigMerger.merge(cfg, data, label)
                logger.debug('Merged %s: %s', label, path)
            elif label == 'CLI_CONFIG' and not path.exists():
                raise ConfigurationError('Configuration file not found', config_path=str(path))

        env = env or cfg.get('env') or _ENV_DEFAULT
        env_section = (cfg.get('environments') or {}).get(env)
        if isinstance(env_section, dict):
            cfg = ConfigMerger.merge(cfg, env_section, f'ENV ({env})')
        cfg['env'] = env

        if overrides:
            cfg = ConfigMerger.merge(cfg, dict(overrides), 'CLI_OVERRIDES')

        cfg = _expand_tree(cfg)
        self._validate(cfg, config_path)
        logger.debug('Resolved configuration keys: %s', list(cfg))
        return cfg

    @staticmethod
    def _validate(cfg: Mapping[str, Any], config_path: Optional[str]) -> None:
        errors = []
        if not isinstance(cfg.get('command_paths'), list):
            errors.append("'command_paths' must be a list of directories")
        extensions = cfg.get('extensions')
        if not isinstance(extensions, dict) or not isinstance(extensions.get('enabled'), list):
            errors.append("'extensions.enabled' must be a list of extension names")
        if not isinstance(cfg.get('host'), dict):
            errors.append("'host' must be a mapping")
        if errors:
            raise ConfigurationError('Invalid mash configuration', config_path=config_path, errors=errors)
