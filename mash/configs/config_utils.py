import copy
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class ConfigMerger:
    @staticmethod
    def merge(base: Dict[str, Any], override: Dict[str, Any], layer: str = 'config') -> Dict[str, Any]:
        """
        Lay one configuration layer over another.

        Nested mappings merge key by key; any other value in ``override``
        replaces the one in ``base``. Neither input is modified.
        """
        merged = copy.deepcopy(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = ConfigMerger.merge(current, value, f'{layer}.{key}')
                continue
            if key in merged and current != value:
                logger.debug('[%s] %s overridden', layer, key)
            merged[key] = copy.deepcopy(value)
        return merged
