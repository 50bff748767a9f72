from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Segment(BaseModel):
    """One statement-shaped run of log lines and the recipe type header in effect."""

    id: Optional[str] = None
    recipe_type: Optional[str] = Field(None, alias="recipeType")
    start_line: int = Field(alias="startLine")
    end_line: int = Field(alias="endLine")
    raw_text: Optional[str] = Field(None, alias="rawText")

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @model_validator(mode="after")
    def _check_line_range(self) -> "Segment":
        if self.start_line > self.end_line:
            raise ValueError(
                f"startLine ({self.start_line}) must not exceed endLine ({self.end_line})"
            )
        return self

    @property
    def lines(self) -> List[str]:
        if self.raw_text is None:
            return []
        return self.raw_text.split("\n")

    @property
    def first_line(self) -> str:
        lines = self.lines
        return lines[0].strip() if lines else ""


class SegmentRecord(BaseModel):
    id: str
    recipe_type: Optional[str] = Field(None, alias="recipeType")
    start_line: int = Field(alias="startLine")
    end_line: int = Field(alias="endLine")
    status: Literal["pending"] = "pending"
    raw_text: Optional[str] = Field(None, alias="rawText")

    model_config = ConfigDict(populate_by_name=True)


class SegmentBatch(BaseModel):
    generated_at: datetime = Field(alias="generatedAt")
    count: int
    segments: List[SegmentRecord]

    model_config = ConfigDict(populate_by_name=True)
