"""Diagnostics collected during one generation run.

Generation never stops for odd input; anything worth telling the user is
recorded here and logged as it happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_LEVELS: dict[str, int] = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    severity: str
    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.severity}: {self.location}: {self.message}"


@dataclass
class Diagnostics:
    items: list[Diagnostic] = field(default_factory=list)

    def add(self, severity: str, location: str, message: str) -> Diagnostic:
        diagnostic = Diagnostic(severity, location, message)
        self.items.append(diagnostic)
        logger.log(_LEVELS.get(severity, logging.WARNING), "%s: %s", location, message)
        return diagnostic

    def info(self, location: str, message: str) -> Diagnostic:
        return self.add("info", location, message)

    def warning(self, location: str, message: str) -> Diagnostic:
        return self.add("warning", location, message)

    def error(self, location: str, message: str) -> Diagnostic:
        return self.add("error", location, message)

    def for_location(self, location: str) -> list[Diagnostic]:
        return [d for d in self.items if d.location == location]

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
