"""
CodeGuard Validation Pipeline

- orchestrator: fast path + concurrent full pass
- auto_fixer: ESLint --fix, contrast rewrites, npm install
- classifier: suggestions and dominant-pattern detection
- report: agent-facing rendering
"""

from codeguard.validation.models import FixResult, ValidationError, ValidationResult, ValidationWarning
from codeguard.validation.orchestrator import ValidationOrchestrator
from codeguard.validation.auto_fixer import AutoFixer
from codeguard.validation.report import generate_error_report

__all__ = [
    "FixResult",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "ValidationOrchestrator",
    "AutoFixer",
    "generate_error_report",
]
