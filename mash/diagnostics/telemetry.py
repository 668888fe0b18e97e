from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Protocol, Tuple, runtime_checkable

__all__ = ['TelemetrySink', 'LoggingTelemetrySink', 'NullTelemetrySink', 'format_size']
logger = logging.getLogger(__name__)


@runtime_checkable
class TelemetrySink(Protocol):
    def record(self, name: str, value: float, unit: str) -> None: ...


class NullTelemetrySink:
    def record(self, name: str, value: float, unit: str) -> None:
        pass


@dataclass
class LoggingTelemetrySink:
    """Keeps every sample and logs it."""
    samples: List[Tuple[str, float, str]] = field(default_factory=list)
    level: int = logging.INFO

    def record(self, name: str, value: float, unit: str) -> None:
        self.samples.append((name, value, unit))
        if unit == 'bytes':
            logger.log(self.level, '%s: %s', name, format_size(int(value)))
        else:
            logger.log(self.level, '%s: %.3f%s', name, value, unit)


def format_size(size: int) -> str:
    if size < 1024:
        return f'{size} bytes'
    if size < 1024 * 1024:
        return f'{size / 1024:.2f} KB'
    return f'{size / (1024 * 1024):.2f} MB'
