"""
CodeGuard Analyzer Adapters

Each adapter wraps one external tool (or a static scan) and parses its
output into a ValidationResult.

Adapters:
- TypeScriptChecker (tsc --noEmit)
- ESLintChecker (eslint, FULL or SYNTAX mode)
- BuildChecker (npm run build, hard timeout)
- DependencyChecker (manifest / node_modules)
- StyleContrastChecker (button and color-contrast scan)
"""

from codeguard.checkers.base import BaseChecker, CommandOutput, run_command
from codeguard.checkers.typescript import TypeScriptChecker
from codeguard.checkers.eslint import ESLintChecker, LintMode
from codeguard.checkers.build import BuildChecker
from codeguard.checkers.dependency import DependencyChecker
from codeguard.checkers.style_contrast import StyleContrastChecker

__all__ = [
    # Base
    "BaseChecker",
    "CommandOutput",
    "run_command",
    # Adapters
    "TypeScriptChecker",
    "ESLintChecker",
    "LintMode",
    "BuildChecker",
    "DependencyChecker",
    "StyleContrastChecker",
]
