"""
Edit Scope Analysis

Recommends how large an edit a repair needs (line, expression, block) and
which edit primitive the repairing agent should reach for. The report
generator only depends on the ScopeAnalyzer protocol; callers can inject a
smarter analyzer (or a mock in tests).
"""

from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel

from codeguard.validation.models import ValidationError


class ScopeLevel(str, Enum):
    LINE = "line"
    EXPRESSION = "expression"
    BLOCK = "block"


class EditPrimitive(str, Enum):
    EDIT = "edit_file"
    MULTI_EDIT = "multi_edit_file"
    REPLACE = "replace_in_file"


class ScopeRecommendation(BaseModel):
    level: ScopeLevel
    primitive: EditPrimitive
    note: Optional[str] = None

    def describe(self) -> str:
        text = f"{self.level.value}-level edit using {self.primitive.value}"
        return f"{text} ({self.note})" if self.note else text


class ScopeAnalyzer(Protocol):
    def analyze(self, error: ValidationError, content: str, file_path: str) -> ScopeRecommendation:
        ...


class DefaultScopeAnalyzer:
    """
    Trivial analyzer: located errors get a line-level edit, unlocated ones
    (build output, missing files) a block-level replacement.
    """

    def analyze(self, error: ValidationError, content: str, file_path: str) -> ScopeRecommendation:
        if error.line is None:
            return ScopeRecommendation(level=ScopeLevel.BLOCK, primitive=EditPrimitive.REPLACE)
        if error.column is not None:
            return ScopeRecommendation(level=ScopeLevel.EXPRESSION, primitive=EditPrimitive.EDIT)
        return ScopeRecommendation(level=ScopeLevel.LINE, primitive=EditPrimitive.EDIT)
