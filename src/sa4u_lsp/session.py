"""Per-document state owned by the server, keyed by document URI.

A session is created when a document opens and torn down when it closes. It
holds the settings resolved for the document, the diagnostics last published
for it together with the version they were computed against, and the
validation currently in flight.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from lsprotocol.types import Diagnostic, Range

from sa4u_lsp.config import AnalyzerSettings
from sa4u_lsp.extraction.model import Repair
from sa4u_lsp.quickfix.payload import repair_from_data

LOGGER = logging.getLogger(__name__)


@dataclass
class DocumentSession:
    uri: str
    settings: AnalyzerSettings
    diagnostics: list[Diagnostic] = field(default_factory=list)
    diagnosed_version: int | None = None
    generation: int = 0
    task: asyncio.Task[None] | None = None

    def begin_validation(self) -> int:
        """Supersede any validation in flight and return the new generation."""
        previous = self.task
        if previous is not None and not previous.done():
            LOGGER.debug("cancelling superseded validation of %s", self.uri)
            previous.cancel()
        self.task = None
        self.generation += 1
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def record(
        self, generation: int, version: int | None, diagnostics: list[Diagnostic]
    ) -> bool:
        if not self.is_current(generation):
            return False
        self.diagnostics = list(diagnostics)
        self.diagnosed_version = version
        self.task = None
        return True

    def repair_for(self, target: Range, change: str) -> Repair | None:
        for diagnostic in self.diagnostics:
            if diagnostic.range != target:
                continue
            repair = repair_from_data(diagnostic.data)
            if repair is not None and repair.change == change:
                return repair
        return None

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()
        self.task = None
        self.generation += 1


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, DocumentSession] = {}

    def open(self, uri: str, settings: AnalyzerSettings) -> DocumentSession:
        session = self._sessions.get(uri)
        if session is None:
            session = DocumentSession(uri=uri, settings=settings)
            self._sessions[uri] = session
        return session

    def get(self, uri: str) -> DocumentSession | None:
        return self._sessions.get(uri)

    def close(self, uri: str) -> DocumentSession | None:
        session = self._sessions.pop(uri, None)
        if session is not None:
            session.cancel()
        return session

    def __contains__(self, uri: object) -> bool:
        return uri in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
