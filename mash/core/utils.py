import importlib
import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Mapping, Union

import yaml

logger = logging.getLogger(__name__)


def import_by_path(path: str, suppress_expected_errors: bool = True) -> Any:
    """Import ``pkg.mod:attr`` or ``pkg.mod.attr`` and return the attribute."""
    if not isinstance(path, str):
        raise TypeError(f'Import path must be a string, got {type(path)}')
    if ':' in path:
        module_name, attr_name = path.split(':', 1)
    elif '.' in path:
        module_name, attr_name = path.rsplit('.', 1)
    else:
        raise ValueError(f"Import path '{path}' is ambiguous. Use 'pkg.mod:func' or 'pkg.mod.func'.")

    if not module_name or not attr_name:
        raise ValueError(f'Invalid import path format: {path}. Could not determine module and attribute.')

    log_level = logging.DEBUG if suppress_expected_errors else logging.ERROR
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        logger.log(log_level, "Failed to import module '%s' from path '%s': %s", module_name, path, e)
        raise ImportError(f"Could not import module '{module_name}': {e}") from e
    try:
        return getattr(module, attr_name)
    except AttributeError as e:
        logger.log(log_level, "Attribute '%s' not found in module '%s'", attr_name, module_name)
        raise AttributeError(f"Attribute '{attr_name}' not found in module '{module_name}': {e}") from e


def is_import_path(path: str) -> bool:
    if ':' in path:
        module_name, _, attr_name = path.partition(':')
    else:
        module_name, _, attr_name = path.rpartition('.')
    return bool(module_name) and bool(attr_name) and all(
        part.isidentifier() for part in module_name.split('.')
    ) and attr_name.isidentifier()


def load_module_from_file(path: Union[str, Path], module_name: str) -> ModuleType:
    file_path = Path(path)
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from '{file_path}'")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def load_yaml_robust(path: Union[str, Path, None]) -> Dict[str, Any]:
    if not path:
        return {}

    actual_path = Path(path)
    if not actual_path.exists():
        logger.debug("YAML file not found: '%s'. Returning empty mapping.", actual_path)
        return {}
    try:
        with open(actual_path, 'r', encoding='utf-8') as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, Mapping):
            logger.error("Top-level YAML object in '%s' must be a mapping. Found %s.", actual_path, type(data).__name__)
            return {}
        return dict(data)
    except yaml.YAMLError as exc:
        logger.error("Error parsing YAML file '%s': %s", actual_path, exc)
        return {}
    except (OSError, ValueError) as exc:
        logger.error("Could not read YAML file '%s': %s", actual_path, exc)
        return {}
