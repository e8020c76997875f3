from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from format_poker.core.validation import normalize_single_line
from format_poker.models.format import FormatStatus


class FormatSort(str, Enum):
    VOTES_DESC = "votes-desc"
    VOTES_ASC = "votes-asc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    NEWEST = "newest"

    @classmethod
    def parse(cls, value: str | None) -> "FormatSort":
        """Lenient parse: unknown or empty values fall back to votes-desc."""
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.VOTES_DESC


class FormatSubmission(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: str = Field(..., min_length=1, max_length=20)

    @field_validator("name", "kind")
    @classmethod
    def normalize_single_line_fields(cls, v: str) -> str:
        normalized = normalize_single_line(v)
        if not normalized:
            raise ValueError("must not be blank")
        return normalized


class FormatCreate(FormatSubmission):
    status: FormatStatus = FormatStatus.REQUESTED


class FormatStatusUpdate(BaseModel):
    status: FormatStatus


class FormatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    kind: str
    status: str
    created_at: datetime
    votes: int
