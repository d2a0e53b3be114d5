"""Diagnostics emitted while applying the retention policy.

Operations never write to global logging state themselves. They take an
optional sink and hand it every diagnostic they produce; the same
diagnostics are also kept on the operation's result object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

Level = Literal["debug", "warning"]

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "warning": logging.WARNING,
}


@dataclass(frozen=True)
class Diagnostic:
    """A single non-fatal message about a path."""

    level: Level
    message: str
    path: Path | None = None

    def __str__(self) -> str:
        return self.message


class DiagnosticSink(Protocol):
    """Anything that can receive diagnostics."""

    def emit(self, diagnostic: Diagnostic) -> None: ...


class LoggingSink:
    """Forward diagnostics to a stdlib logger.

    This is the default sink. The CLI installs a rich handler on the
    ``repodata_keeper`` logger hierarchy.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("repodata_keeper")

    def emit(self, diagnostic: Diagnostic) -> None:
        self.logger.log(_LOG_LEVELS[diagnostic.level], diagnostic.message)


@dataclass
class CollectingSink:
    """Keep diagnostics in memory."""

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.level == "warning"]

    @property
    def messages(self) -> list[str]:
        return [d.message for d in self.diagnostics]


class Reporter:
    """Fold diagnostics for one operation.

    Every reported diagnostic is recorded locally and passed on to the sink.
    A reporter is itself a sink, so nested operations can report into it.
    """

    def __init__(self, sink: DiagnosticSink | None = None):
        self.sink = sink if sink is not None else LoggingSink()
        self.diagnostics: list[Diagnostic] = []

    def debug(self, message: str, path: Path | None = None) -> None:
        self.emit(Diagnostic("debug", message, path))

    def warning(self, message: str, path: Path | None = None) -> None:
        self.emit(Diagnostic("warning", message, path))

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self.sink.emit(diagnostic)
