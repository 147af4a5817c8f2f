"""
CodeGuard Validation Models

The uniform diagnostic model every analyzer adapter parses into, and the
result shapes handed back to the agent retry loop.

Invariants (enforced by the constructors on ValidationResult):
- is_valid  <=>  no errors
- fixable_errors is exactly the fixable subset of errors
- can_auto_fix  <=>  fixable_errors is non-empty

Diagnostics are frozen. Enrichment (ErrorClassifier) produces new records
via model_copy, it never mutates the adapter's original.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# ENUMS
# ============================================================================

class ErrorKind(str, Enum):
    """Which stage of the pipeline produced the diagnostic."""
    SYNTAX = "syntax"           # type-check / lint
    BUILD = "build"             # compilation / bundling
    DEPENDENCY = "dependency"   # missing packages / modules
    RUNTIME = "runtime"         # a validation step itself failed


class Severity(str, Enum):
    """Errors block validity, warnings never do."""
    ERROR = "error"
    WARNING = "warning"


class WarningKind(str, Enum):
    """Informational category for warnings."""
    STYLE = "style"
    PERFORMANCE = "performance"
    BEST_PRACTICE = "best-practice"


# ============================================================================
# DIAGNOSTICS
# ============================================================================

class ValidationError(BaseModel):
    """
    A single blocking (or downgraded) diagnostic.

    Attributes:
        kind: Pipeline stage that produced it
        file: Project-relative path (or a pseudo-location like "build process")
        line: 1-indexed line, when known
        column: 1-indexed column, when known
        message: Human-readable description
        rule: Tool rule / code (e.g. "no-undef", "TS2305")
        severity: error or warning
        fixable: Whether the pipeline believes it can repair this safely
    """
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    file: str
    line: Optional[int] = None
    column: Optional[int] = None
    message: str
    rule: Optional[str] = None
    severity: Severity = Severity.ERROR
    fixable: bool = False

    @property
    def location(self) -> str:
        """file:line:col, omitting parts that are unknown."""
        parts = [self.file]
        if self.line is not None:
            parts.append(str(self.line))
            if self.column is not None:
                parts.append(str(self.column))
        return ":".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "rule": self.rule,
            "severity": self.severity.value,
            "fixable": self.fixable,
        }


class ValidationWarning(BaseModel):
    """Informational diagnostic; never affects validity."""
    model_config = ConfigDict(frozen=True)

    kind: WarningKind = WarningKind.STYLE
    file: str
    line: Optional[int] = None
    column: Optional[int] = None
    message: str
    rule: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "message": self.message,
            "rule": self.rule,
        }


# ============================================================================
# RESULTS
# ============================================================================

class ValidationResult(BaseModel):
    """
    Outcome of one adapter or of a merged pipeline run.

    Build instances with from_findings(), ok() or merge() so the derived
    fields stay consistent with the error list.
    """
    is_valid: bool = True
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    fixable_errors: List[ValidationError] = Field(default_factory=list)
    can_auto_fix: bool = False

    @classmethod
    def from_findings(
        cls,
        errors: Optional[Iterable[ValidationError]] = None,
        warnings: Optional[Iterable[ValidationWarning]] = None,
    ) -> "ValidationResult":
        error_list = list(errors or [])
        fixable = [e for e in error_list if e.fixable]
        return cls(
            is_valid=len(error_list) == 0,
            errors=error_list,
            warnings=list(warnings or []),
            fixable_errors=fixable,
            can_auto_fix=len(fixable) > 0,
        )

    @classmethod
    def ok(cls, warnings: Optional[Iterable[ValidationWarning]] = None) -> "ValidationResult":
        """An empty, valid result (optionally carrying warnings)."""
        return cls.from_findings([], warnings)

    @classmethod
    def merge(cls, results: Iterable["ValidationResult"]) -> "ValidationResult":
        """Concatenate errors and warnings of several results, in order."""
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []
        for result in results:
            errors.extend(result.errors)
            warnings.extend(result.warnings)
        return cls.from_findings(errors, warnings)

    def with_errors(self, errors: Iterable[ValidationError]) -> "ValidationResult":
        """Same warnings, replaced error list (derived fields recomputed)."""
        return ValidationResult.from_findings(errors, self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        """Machine-consumable shape for the agent loop."""
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "fixableErrors": [e.to_dict() for e in self.fixable_errors],
            "canAutoFix": self.can_auto_fix,
        }


class FixResult(BaseModel):
    """Outcome of one auto-fix invocation."""
    success: bool = False
    fixed_errors: List[ValidationError] = Field(default_factory=list)
    remaining_errors: List[ValidationError] = Field(default_factory=list)
    changed_files: List[str] = Field(default_factory=list)

    @classmethod
    def combine(cls, results: Iterable["FixResult"]) -> "FixResult":
        """Aggregate several fixers' results; changed files are de-duplicated."""
        success = False
        fixed: List[ValidationError] = []
        remaining: List[ValidationError] = []
        changed: List[str] = []
        for result in results:
            success = success or result.success
            fixed.extend(result.fixed_errors)
            remaining.extend(result.remaining_errors)
            for path in result.changed_files:
                if path not in changed:
                    changed.append(path)
        return cls(
            success=success,
            fixed_errors=fixed,
            remaining_errors=remaining,
            changed_files=changed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "fixedErrors": [e.to_dict() for e in self.fixed_errors],
            "remainingErrors": [e.to_dict() for e in self.remaining_errors],
            "changedFiles": list(self.changed_files),
        }
