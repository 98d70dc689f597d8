from __future__ import annotations

import asyncio

from lsprotocol.types import Position, Range

from sa4u_lsp.config import AnalyzerSettings
from sa4u_lsp.extraction import parse_output
from sa4u_lsp.publisher import to_diagnostics
from sa4u_lsp.session import SessionRegistry
from tests.harness.server_command_harness import CALL_LINE, STORE_LINE, analyzer_output


def test_open_is_idempotent_and_close_discards() -> None:
    sessions = SessionRegistry()
    first = sessions.open("file:///a.cpp", AnalyzerSettings())
    assert sessions.open("file:///a.cpp", AnalyzerSettings(image="other")) is first
    assert "file:///a.cpp" in sessions
    assert sessions.close("file:///a.cpp") is first
    assert sessions.get("file:///a.cpp") is None
    assert sessions.close("file:///a.cpp") is None
    assert len(sessions) == 0


def test_only_current_generation_records() -> None:
    session = SessionRegistry().open("file:///a.cpp", AnalyzerSettings())
    stale = session.begin_validation()
    current = session.begin_validation()
    diagnostics = to_diagnostics(parse_output(analyzer_output(CALL_LINE.format(line=1))))
    assert not session.record(stale, 1, diagnostics)
    assert session.diagnostics == []
    assert session.record(current, 2, diagnostics)
    assert session.diagnostics == diagnostics
    assert session.diagnosed_version == 2


def test_begin_validation_cancels_task_in_flight() -> None:
    async def scenario() -> tuple[bool, bool]:
        session = SessionRegistry().open("file:///a.cpp", AnalyzerSettings())
        session.begin_validation()
        blocker = asyncio.create_task(asyncio.Event().wait())
        session.task = blocker
        await asyncio.sleep(0)
        session.begin_validation()
        await asyncio.wait({blocker})
        return blocker.cancelled(), session.task is None

    cancelled, cleared = asyncio.run(scenario())
    assert cancelled
    assert cleared


def test_close_cancels_and_invalidates() -> None:
    async def scenario() -> tuple[bool, bool]:
        sessions = SessionRegistry()
        session = sessions.open("file:///a.cpp", AnalyzerSettings())
        generation = session.begin_validation()
        blocker = asyncio.create_task(asyncio.Event().wait())
        session.task = blocker
        await asyncio.sleep(0)
        sessions.close("file:///a.cpp")
        await asyncio.wait({blocker})
        return blocker.cancelled(), session.is_current(generation)

    cancelled, current = asyncio.run(scenario())
    assert cancelled
    assert not current


def test_repair_lookup_requires_exact_range_and_change() -> None:
    session = SessionRegistry().open("file:///a.cpp", AnalyzerSettings())
    generation = session.begin_validation()
    session.record(
        generation,
        1,
        to_diagnostics(parse_output(analyzer_output(STORE_LINE.format(line=2)))),
    )
    exact = Range(start=Position(line=1, character=0), end=Position(line=2, character=0))
    shifted = Range(start=Position(line=1, character=0), end=Position(line=2, character=1))
    repair = session.repair_for(exact, " * 100")
    assert repair is not None
    assert repair.backtrack == 3
    assert session.repair_for(shifted, " * 100") is None
    assert session.repair_for(exact, " * 1000") is None
