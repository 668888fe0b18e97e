from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class HostIntrospector(Protocol):
    def version(self) -> Optional[str]: ...

    def enabled_modules(self) -> FrozenSet[str]: ...


@runtime_checkable
class ToolIntrospector(Protocol):
    def enabled_extensions(self) -> FrozenSet[str]: ...


@dataclass
class HostModule:
    name: str
    enabled: bool = False
    path: Optional[Path] = None


@dataclass
class HostEnvironment:
    """What the phase loaders have learned about the host so far."""
    root: Optional[Path] = None
    site: Optional[str] = None
    manifest: Dict[str, Any] = field(default_factory=dict)
    host_version: Optional[str] = None
    modules: Dict[str, HostModule] = field(default_factory=dict)
    database: Dict[str, Any] = field(default_factory=dict)
    modules_active: bool = False
    user: Optional[str] = None

    def version(self) -> Optional[str]:
        return self.host_version

    def enabled_modules(self) -> FrozenSet[str]:
        # Module state is only trustworthy once the full phase activated it.
        if not self.modules_active:
            return frozenset()
        return frozenset(name for name, mod in self.modules.items() if mod.enabled)

    def declared_modules(self) -> Iterable[HostModule]:
        return self.modules.values()

    def site_path(self) -> Optional[Path]:
        if self.root is None or self.site is None:
            return None
        return self.root / 'sites' / self.site


@dataclass
class ToolEnvironment:
    extensions: FrozenSet[str] = frozenset()

    def enabled_extensions(self) -> FrozenSet[str]:
        return self.extensions
