"""
Early hook - a pre-bootstrap override entry point.

When ``early`` is configured, the hook runs before any phase is touched.
It can let the normal bootstrap continue, finish the run successfully with
no output, or finish it with a value of its own.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from mash.core.context import ContextStore
from mash.core.utils import import_by_path, load_module_from_file
from mash.exceptions import EarlyHookError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Continue:
    pass


@dataclass(frozen=True)
class Succeed:
    pass


@dataclass(frozen=True)
class Return:
    value: Any


EarlyHookResult = Continue | Succeed | Return


def to_hook_result(raw: Any) -> EarlyHookResult:
    if isinstance(raw, (Continue, Succeed, Return)):
        return raw
    if raw is None or raw is False:
        return Continue()
    if raw is True:
        return Succeed()
    return Return(raw)


class EarlyHook:

    def __init__(self, spec: Optional[str]) -> None:
        self.spec = spec

    @classmethod
    def from_context(cls, context: ContextStore) -> 'EarlyHook':
        return cls(context.early_hook)

    @property
    def configured(self) -> bool:
        return bool(self.spec)

    def _load(self) -> Optional[Callable[[], Any]]:
        spec = self.spec
        if spec.endswith('.py'):
            path = Path(spec).expanduser()
            if not path.is_file():
                raise EarlyHookError(f"Early hook file '{path}' does not exist.")
            try:
                module = load_module_from_file(path, f'mash_early_{path.stem}')
            except Exception as exc:
                raise EarlyHookError(f"Early hook file '{path}' could not be loaded: {exc}") from exc
            func = getattr(module, f'early_{path.stem}', None)
            if func is None:
                logger.warning("Early hook file '%s' defines no early_%s(); continuing", path, path.stem)
            return func
        try:
            return import_by_path(spec, suppress_expected_errors=False)
        except (ImportError, AttributeError, ValueError) as exc:
            raise EarlyHookError(f"Early hook '{spec}' could not be imported: {exc}") from exc

    def invoke(self) -> EarlyHookResult:
        if not self.configured:
            return Continue()
        func = self._load()
        if func is None:
            return Continue()
        if not callable(func):
            raise EarlyHookError(f"Early hook '{self.spec}' is not callable.")
        result = to_hook_result(func())
        logger.debug('Early hook %s returned %s', self.spec, type(result).__name__)
        return result
