from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr

from sa4u_lsp.extraction.model import DEFAULT_BACKTRACK


class PositionDTO(BaseModel):
    line: StrictInt = Field(ge=0)
    character: StrictInt = Field(ge=0)


class RangeDTO(BaseModel):
    start: PositionDTO
    end: PositionDTO


class RepairPayloadDTO(BaseModel):
    title: StrictStr
    change: StrictStr
    backtrack: StrictInt = Field(default=DEFAULT_BACKTRACK, ge=0)


class FixCommandDTO(BaseModel):
    uri: StrictStr = Field(min_length=1)
    change: StrictStr
    range: RangeDTO


class FindingDTO(BaseModel):
    category: str
    severity: str
    source: str
    line: int
    range: RangeDTO
    message: str
    data: Optional[RepairPayloadDTO] = None


class FindingReportDTO(BaseModel):
    path: str
    findings: List[FindingDTO] = []
    errors: List[str] = []
