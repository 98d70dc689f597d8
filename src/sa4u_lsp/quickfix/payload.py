"""Validation of the repair payload and of ``sa4u.fix`` command arguments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from lsprotocol.types import Position, Range
from pydantic import ValidationError

from sa4u_lsp.exceptions import FixPayloadError
from sa4u_lsp.extraction.model import Repair
from sa4u_lsp.schema import FixCommandDTO, RangeDTO, RepairPayloadDTO


@dataclass(frozen=True)
class FixRequest:
    uri: str
    change: str
    target: Range


def range_to_dto(target: Range) -> RangeDTO:
    return RangeDTO.model_validate(
        {
            "start": {"line": target.start.line, "character": target.start.character},
            "end": {"line": target.end.line, "character": target.end.character},
        }
    )


def dto_to_range(target: RangeDTO) -> Range:
    return Range(
        start=Position(line=target.start.line, character=target.start.character),
        end=Position(line=target.end.line, character=target.end.character),
    )


def _range_payload(value: object) -> object:
    if isinstance(value, Range):
        return range_to_dto(value)
    return value


def repair_from_data(data: object) -> Repair | None:
    """Read the repair carried on a diagnostic's ``data`` field, if any."""
    if not isinstance(data, dict):
        return None
    try:
        payload = RepairPayloadDTO.model_validate(data)
    except ValidationError:
        return None
    return Repair(title=payload.title, change=payload.change, backtrack=payload.backtrack)


def parse_fix_arguments(arguments: Sequence[object] | None) -> FixRequest:
    """Validate ``[documentUri, insertionText, range]``."""
    if arguments is None or len(arguments) < 3:
        count = 0 if arguments is None else len(arguments)
        raise FixPayloadError(f"expected 3 command arguments, got {count}")
    uri, change, target = arguments[0], arguments[1], arguments[2]
    try:
        command = FixCommandDTO.model_validate(
            {"uri": uri, "change": change, "range": _range_payload(target)}
        )
    except ValidationError as exc:
        raise FixPayloadError(f"malformed fix payload: {exc}") from exc
    return FixRequest(uri=command.uri, change=command.change, target=dto_to_range(command.range))
