"""Request/response schemas for the diff view API.

The renderer only ever sees these: plain JSON rows, no markup.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from diffpane.core.diff_view import DiffView
from diffpane.core.line_model import CollapsedRange, LineRecord
from diffpane.core.minimap import ChangeMark


class CollapsedRangeModel(BaseModel):
    old_start: int
    old_end: int
    new_start: int
    new_end: int
    line_count: int

    @classmethod
    def from_range(cls, gap: CollapsedRange) -> CollapsedRangeModel:
        return cls(
            old_start=gap.old_start,
            old_end=gap.old_end,
            new_start=gap.new_start,
            new_end=gap.new_end,
            line_count=gap.line_count,
        )


class LineRecordModel(BaseModel):
    """One row on one side of the view"""

    content: str
    line_number: int | None
    kind: str  # LineKind value, e.g. "added", "context-header"
    collapsed: CollapsedRangeModel | None = None

    @classmethod
    def from_record(cls, record: LineRecord) -> LineRecordModel:
        return cls(
            content=record.content,
            line_number=record.line_number,
            kind=record.kind.value,
            collapsed=CollapsedRangeModel.from_range(record.collapsed) if record.collapsed else None,
        )


class ChangeMarkModel(BaseModel):
    kind: str
    line_number: int | None
    position: float  # 0-100
    preview_text: str

    @classmethod
    def from_mark(cls, mark: ChangeMark) -> ChangeMarkModel:
        return cls(
            kind=mark.kind.value,
            line_number=mark.line_number,
            position=round(mark.position, 3),
            preview_text=mark.preview_text,
        )


class AlignRequest(BaseModel):
    """Align a diff, optionally with both full snapshots supplied inline"""

    diff_text: str = ""
    before: str | None = None
    after: str | None = None
    context_lines: int | None = Field(default=None, ge=0)
    expand_functions: bool = False


class RemoteAlignRequest(BaseModel):
    """Align a diff, fetching the snapshots from the hosting provider"""

    diff_text: str = ""
    provider: Literal["github", "azure_devops"]
    organization: str
    repository: str
    project: str | None = None
    path: str
    base_revision: str | None = None
    head_revision: str | None = None
    context_lines: int | None = Field(default=None, ge=0)
    expand_functions: bool = False


class DiffViewResponse(BaseModel):
    """Aligned rows plus overview marks for one file"""

    strategy: str
    degraded: bool
    degradations: list[str]
    original_lines: list[LineRecordModel]
    modified_lines: list[LineRecordModel]
    change_marks: list[ChangeMarkModel]

    @classmethod
    def from_view(cls, view: DiffView) -> DiffViewResponse:
        return cls(
            strategy=view.strategy.value,
            degraded=view.degraded,
            degradations=view.degradations,
            original_lines=[LineRecordModel.from_record(r) for r in view.pair.original_lines],
            modified_lines=[LineRecordModel.from_record(r) for r in view.pair.modified_lines],
            change_marks=[ChangeMarkModel.from_mark(m) for m in view.marks],
        )
