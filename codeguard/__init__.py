"""
CodeGuard - validation and auto-remediation for agent-edited projects.

Usage:
    from codeguard import ValidationOrchestrator, AutoFixer, generate_error_report

    orchestrator = ValidationOrchestrator()
    result = await orchestrator.validate_project("/path/to/project")
    print(generate_error_report(result))
"""

from codeguard.validation.models import (
    ErrorKind,
    Severity,
    WarningKind,
    ValidationError,
    ValidationWarning,
    ValidationResult,
    FixResult,
)
from codeguard.validation.orchestrator import ValidationOrchestrator
from codeguard.validation.auto_fixer import AutoFixer
from codeguard.validation.report import generate_error_report

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "Severity",
    "WarningKind",
    "ValidationError",
    "ValidationWarning",
    "ValidationResult",
    "FixResult",
    "ValidationOrchestrator",
    "AutoFixer",
    "generate_error_report",
]
