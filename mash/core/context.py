from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

__all__ = ['ContextStore']
logger = logging.getLogger(__name__)

_MISSING = object()


class ContextStore:
    """
    Process-wide flags and configuration for one mash run.

    Every component receives the store explicitly; nothing looks it up
    globally. Keys may be dotted (``host.root``) to reach into nested
    configuration sections.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = copy.deepcopy(dict(values)) if values else {}

    @classmethod
    def from_config(cls, config: Mapping[str, Any], arguments: Optional[List[str]] = None) -> 'ContextStore':
        store = cls(config)
        store.set('arguments', list(arguments or []))
        return store

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._values
        for part in key.split('.'):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        parts = key.split('.')
        node = self._values
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(key, default)
        if value is None or value == '':
            return default
        return str(value)

    def get_list(self, key: str) -> List[Any]:
        value = self.get(key)
        if value is None:
            return []
        if isinstance(value, (list, tuple, set)):
            return list(value)
        return [value]

    # Flags every component reads.
    @property
    def debug(self) -> bool:
        return self.get_bool('debug')

    @property
    def quiet(self) -> bool:
        return self.get_bool('quiet')

    @property
    def verbose(self) -> bool:
        return self.get_bool('verbose')

    @property
    def early_hook(self) -> Optional[str]:
        return self.get_str('early')

    @property
    def arguments(self) -> List[str]:
        return [str(a) for a in self.get_list('arguments')]

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ContextStore(keys={sorted(self._values)})"
