"""
ESLint Checker Module

Runs `npx eslint` for JavaScript/TypeScript projects in one of two modes:

- FULL: the project's own rule configuration over every source file.
- SYNTAX: a throwaway inline ruleset containing only `no-undef`, used as
  a cheap confirmation pass after the type check.

Diagnostics are split by ESLint severity (2 = error, 1 = warning). A
table of noise rules additionally moves tooling/config chatter from
errors into warnings; critical syntax patterns are checked first and are
never moved.
"""

import json
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from codeguard.checkers.base import BaseChecker, CommandOutput, logger
from codeguard.validation.models import (
    ErrorKind, FixResult, Severity, ValidationError, ValidationResult,
    ValidationWarning, WarningKind,
)


class LintMode(str, Enum):
    FULL = "full"
    SYNTAX = "syntax"


# ============================================================================
# NOISE CLASSIFICATION
# ============================================================================

CRITICAL_PATTERNS = [
    re.compile(r"Duplicate export"),
    re.compile(r"Unexpected token `\w+`\. Expected jsx identifier"),
    re.compile(r"Expression expected"),
    re.compile(r"Missing semicolon"),
    re.compile(r"Unterminated string"),
    re.compile(r"Unexpected token.*Expected.*"),
    re.compile(r"Invalid.*import"),
    re.compile(r"Invalid.*export"),
]

NON_CRITICAL_MESSAGE_PATTERNS = [
    # Build tooling noise
    re.compile(r"Cannot find module.*lightningcss"),
    re.compile(r"An error occurred in.*next/font"),
    re.compile(r"Build failed because of webpack errors"),
    re.compile(r"Failed to compile"),
    # Type annotations parsed as JS
    re.compile(r"Unexpected token.*:(?!.*Expected)"),
    re.compile(r"The keyword 'interface' is reserved"),
    re.compile(r"Unexpected token interface"),
    re.compile(r"Unexpected token type"),
    # Parser configuration
    re.compile(r"Parsing error.*parser"),
    re.compile(r"Cannot find module.*/@"),
]

NON_CRITICAL_RULES = {
    "import/no-unresolved",
    "@typescript-eslint/parser-error",
}

LintMessage = Dict[str, Any]

# Ordered (predicate, is_noise) table; the first matching predicate decides.
NOISE_RULES: List[Tuple[Callable[[LintMessage], bool], bool]] = [
    (lambda m: any(p.search(m.get("message") or "") for p in CRITICAL_PATTERNS), False),
    (lambda m: any(p.search(m.get("message") or "") for p in NON_CRITICAL_MESSAGE_PATTERNS), True),
    (lambda m: m.get("ruleId") in NON_CRITICAL_RULES, True),
    (lambda m: m.get("fatal") is True, True),
]


def is_non_critical(message: LintMessage) -> bool:
    """True if an ESLint message is tooling noise rather than a code defect."""
    for predicate, is_noise in NOISE_RULES:
        if predicate(message):
            return is_noise
    return False


# ============================================================================
# CHECKER
# ============================================================================

class ESLintChecker(BaseChecker):
    """
    JavaScript/TypeScript linter using ESLint.

    Runs `npx eslint <pattern> --format json`. Unparseable output degrades
    to an empty, valid result: a broken linter must not abort validation.
    """

    def __init__(self, mode: LintMode = LintMode.FULL, config=None):
        super().__init__(config)
        self.mode = mode

    @property
    def name(self) -> str:
        return f"lint-{self.mode.value}"

    @property
    def command(self) -> List[str]:
        cmd = [
            "npx", "eslint", self.config.lint_pattern,
            "--format", "json",
            "--no-error-on-unmatched-pattern",
        ]
        if self.config.excluded_marker:
            cmd += ["--ignore-pattern", f"**/{self.config.excluded_marker}/**"]
        if self.mode == LintMode.SYNTAX:
            cmd += [
                "--no-eslintrc",
                "--env", "browser,node,es2022",
                "--parser-options", "ecmaVersion:latest",
                "--parser-options", "sourceType:module",
                "--rule", "no-undef: error",
            ]
        return cmd

    @property
    def fix_command(self) -> List[str]:
        return self.command + ["--fix"]

    async def check(self, project_dir: str) -> ValidationResult:
        try:
            output = await self._run(self.command, project_dir, self.config.analyzer_timeout)
        except OSError as e:
            logger.warning(f"[{self.name}] ESLint unavailable, skipping: {e}")
            return ValidationResult.ok()

        if output.timed_out:
            logger.warning(f"[{self.name}] ESLint timed out after {self.config.analyzer_timeout}s, skipping")
            return ValidationResult.ok()

        file_results = self._load_json(output)
        if file_results is None:
            return ValidationResult.ok()

        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []

        for file_result in file_results:
            file_path = self.relative_path(project_dir, file_result.get("filePath", ""))
            if self.is_excluded(file_path):
                continue
            for message in file_result.get("messages", []):
                if message.get("severity") == 2 and not is_non_critical(message):
                    errors.append(self._to_error(file_path, message))
                else:
                    warnings.append(self._to_warning(file_path, message))

        logger.info(f"[{self.name}] {len(errors)} errors, {len(warnings)} warnings")
        return ValidationResult.from_findings(errors, warnings)

    async def auto_fix(self, project_dir: str) -> FixResult:
        """
        Run `eslint --fix`, rewriting files in place.

        Changed files are those ESLint returned rewritten `output` for.
        Remaining severity-2 messages are reported as remaining errors.
        """
        try:
            output = await self._run(self.fix_command, project_dir, self.config.analyzer_timeout)
        except OSError as e:
            logger.warning(f"[{self.name}] ESLint auto-fix unavailable: {e}")
            return FixResult(success=False)

        file_results = None if output.timed_out else self._load_json(output)
        if file_results is None:
            return FixResult(success=False)

        changed: List[str] = []
        remaining: List[ValidationError] = []
        for file_result in file_results:
            file_path = self.relative_path(project_dir, file_result.get("filePath", ""))
            if "output" in file_result:
                changed.append(file_path)
            for message in file_result.get("messages", []):
                if message.get("severity") == 2:
                    remaining.append(self._to_error(file_path, message))

        logger.info(f"[{self.name}] Auto-fix changed {len(changed)} files, {len(remaining)} errors remain")
        return FixResult(
            success=output.returncode == 0,
            remaining_errors=remaining,
            changed_files=changed,
        )

    def _load_json(self, output: CommandOutput) -> Optional[List[Dict[str, Any]]]:
        text = output.stdout.strip()
        if not text:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning(f"[{self.name}] Failed to parse ESLint output, assuming no errors")
            return None
        if not isinstance(data, list):
            logger.warning(f"[{self.name}] Unexpected ESLint output shape, assuming no errors")
            return None
        return data

    @staticmethod
    def _to_error(file_path: str, message: LintMessage) -> ValidationError:
        return ValidationError(
            kind=ErrorKind.SYNTAX,
            file=file_path,
            line=message.get("line"),
            column=message.get("column"),
            message=message.get("message", ""),
            rule=message.get("ruleId"),
            severity=Severity.ERROR,
            fixable=message.get("fix") is not None,
        )

    @staticmethod
    def _to_warning(file_path: str, message: LintMessage) -> ValidationWarning:
        return ValidationWarning(
            kind=WarningKind.STYLE,
            file=file_path,
            line=message.get("line"),
            column=message.get("column"),
            message=message.get("message", ""),
            rule=message.get("ruleId"),
        )
