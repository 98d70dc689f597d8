"""Turning a selected quick fix into a single versioned insert.

Offsets are computed in code points over the document's lines, the same
line splitting the workspace uses; positions are converted to the client's
units only when the edit is built.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, Sequence

from lsprotocol.types import (
    ApplyWorkspaceEditParams,
    OptionalVersionedTextDocumentIdentifier,
    Position,
    Range,
    TextDocumentEdit,
    TextEdit,
    WorkspaceEdit,
)

from sa4u_lsp.exceptions import FixPayloadError, StaleDocumentError
from sa4u_lsp.extraction.model import DEFAULT_BACKTRACK
from sa4u_lsp.quickfix.payload import FixRequest

if TYPE_CHECKING:
    from sa4u_lsp.session import SessionRegistry

LOGGER = logging.getLogger(__name__)


class _PositionCodec(Protocol):
    def position_from_client_units(self, lines: Sequence[str], position: Position) -> Position: ...

    def position_to_client_units(self, lines: Sequence[str], position: Position) -> Position: ...


class LiveDocument(Protocol):
    uri: str
    version: int | None
    position_codec: _PositionCodec

    @property
    def lines(self) -> list[str]: ...


def offset_at(lines: Sequence[str], position: Position) -> int:
    line_count = len(lines)
    if position.line > line_count or (position.line == line_count and position.character):
        raise FixPayloadError(
            f"position {position.line}:{position.character} is outside the document"
        )
    prefix = sum(len(line) for line in lines[: position.line])
    if position.line == line_count:
        return prefix
    current = lines[position.line]
    if position.character > len(current):
        raise FixPayloadError(
            f"position {position.line}:{position.character} is past the end of its line"
        )
    return prefix + position.character


def position_at(lines: Sequence[str], offset: int) -> Position:
    if offset < 0:
        raise FixPayloadError(f"offset {offset} is before the start of the document")
    remaining = offset
    for index, line in enumerate(lines):
        if remaining < len(line):
            return Position(line=index, character=remaining)
        remaining -= len(line)
    if remaining == 0:
        return Position(line=len(lines), character=0)
    raise FixPayloadError(f"offset {offset} is past the end of the document")


def insertion_offset(lines: Sequence[str], target: Range, backtrack: int) -> int:
    """``offset(target.end) - backtrack``, kept inside the diagnosed span."""
    end = offset_at(lines, target.end)
    start = offset_at(lines, target.start)
    offset = end - backtrack
    if offset < start:
        raise FixPayloadError(
            f"insertion point {offset} falls before the diagnosed range at {start}"
        )
    return offset


def build_fix_edit(
    document: LiveDocument,
    request: FixRequest,
    *,
    backtrack: int = DEFAULT_BACKTRACK,
) -> TextDocumentEdit:
    lines = document.lines
    codec = document.position_codec
    target = Range(
        start=codec.position_from_client_units(lines, request.target.start),
        end=codec.position_from_client_units(lines, request.target.end),
    )
    offset = insertion_offset(lines, target, backtrack)
    at = codec.position_to_client_units(lines, position_at(lines, offset))
    return TextDocumentEdit(
        text_document=OptionalVersionedTextDocumentIdentifier(
            uri=document.uri, version=document.version
        ),
        edits=[TextEdit(range=Range(start=at, end=at), new_text=request.change)],
    )


async def apply_fix(ls, sessions: SessionRegistry, request: FixRequest) -> TextDocumentEdit:
    """Apply ``request`` to the live document or raise a ``FixRejected``.

    The live version must still be the one the diagnostics were computed
    against, and the fix must belong to one of those diagnostics.
    """
    session = sessions.get(request.uri)
    if session is None:
        raise StaleDocumentError(
            f"{request.uri} is not open", expected=None, actual=None
        )
    document = ls.workspace.get_text_document(request.uri)
    if document.version != session.diagnosed_version:
        raise StaleDocumentError(
            "document changed since it was analyzed; save to re-run the analyzer",
            expected=session.diagnosed_version,
            actual=document.version,
        )
    repair = session.repair_for(request.target, request.change)
    if repair is None:
        raise StaleDocumentError(
            "no current diagnostic offers this fix",
            expected=session.diagnosed_version,
            actual=document.version,
        )
    edit = build_fix_edit(document, request, backtrack=repair.backtrack)
    result = await ls.workspace_apply_edit_async(
        ApplyWorkspaceEditParams(
            edit=WorkspaceEdit(document_changes=[edit]),
            label=repair.title,
        )
    )
    if not result.applied:
        raise StaleDocumentError(
            result.failure_reason or "the editor refused the edit",
            expected=document.version,
            actual=None,
        )
    LOGGER.info("applied %r to %s", repair.title, request.uri)
    return edit
