import re
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Range of the Integer columns the record is stored in
INT_MIN = -2**31
INT_MAX = 2**31 - 1

_INTEGER_TEXT = re.compile(r"[+-]?\d+")


class StudentRecord(BaseModel):
    """One decoded CSV row, in column order."""
    name: str
    age: int = Field(ge=INT_MIN, le=INT_MAX)
    grade: int = Field(ge=INT_MIN, le=INT_MAX)
    gender: str

    model_config = ConfigDict(frozen=True)

    @field_validator("age", "grade", mode="before")
    @classmethod
    def integer_text_only(cls, v):
        """Reject text like "20.0" or "1_000" that int coercion would accept."""
        if isinstance(v, str):
            if not _INTEGER_TEXT.fullmatch(v):
                raise ValueError("must be an integer")
            return int(v)
        return v


class DecodeFailure(BaseModel):
    line: int
    raw: Tuple[str, ...]
    reason: str

    model_config = ConfigDict(frozen=True)
