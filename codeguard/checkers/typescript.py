"""
TypeScript Checker Module

Runs `tsc --noEmit` to check TypeScript projects for type errors.
This is the first and cheapest gate of the fast path.

Detection:
- Looks for `tsconfig.json` in project root

Output Formats:
- file(line,col): error TS1234: message
- file:line:col - error TS1234: message
"""

import re
from pathlib import Path
from typing import List, Optional

from codeguard.checkers.base import BaseChecker, logger
from codeguard.core.logger import truncate_for_log
from codeguard.validation.models import (
    ErrorKind, Severity, ValidationError, ValidationResult,
    ValidationWarning, WarningKind,
)


PAREN_FORMAT = re.compile(r"^(.+?)\((\d+),(\d+)\):\s*error\s+(TS\d+):\s*(.+)$")
DASH_FORMAT = re.compile(r"^(.+?):(\d+):(\d+)\s+-\s+error\s+(TS\d+):\s*(.+)$")

# Import/export resolution errors that can be repaired by touching only
# the import statement.
SURGICAL_IMPORT_PATTERNS = [
    re.compile(r"has no exported member", re.IGNORECASE),
    re.compile(r"has no default export", re.IGNORECASE),
    re.compile(r"declares '[^']+' locally, but it is not exported"),
    re.compile(r"can only be default-imported using"),
    re.compile(r"is not a module"),
    re.compile(r"Did you mean to use 'import .+ from"),
]

SURGICAL_RULE = "surgical-import-export"


class TypeScriptChecker(BaseChecker):
    """
    TypeScript type checker using the TypeScript compiler.

    Runs `npx tsc --noEmit --pretty false`. A non-zero exit that yields
    no parseable diagnostic becomes one generic error carrying the raw
    output, so a broken compiler run can never pass silently.
    """

    @property
    def name(self) -> str:
        return "typecheck"

    @property
    def command(self) -> List[str]:
        return ["npx", "tsc", "--noEmit", "--pretty", "false"]

    async def check(self, project_dir: str) -> ValidationResult:
        if not (Path(project_dir) / "tsconfig.json").exists():
            return ValidationResult.ok([ValidationWarning(
                kind=WarningKind.BEST_PRACTICE,
                file="tsconfig.json",
                message="No tsconfig.json found; type check skipped",
                rule="typecheck-config",
            )])

        try:
            output = await self._run(self.command, project_dir, self.config.analyzer_timeout)
        except OSError as e:
            logger.error(f"[{self.name}] Could not start type checker: {e}")
            return ValidationResult.from_findings([ValidationError(
                kind=ErrorKind.RUNTIME,
                file="typecheck",
                message=f"Failed to run type checker: {e}",
            )])

        if output.timed_out:
            logger.warning(f"[{self.name}] Type check timed out after {self.config.analyzer_timeout}s")
            return ValidationResult.from_findings([ValidationError(
                kind=ErrorKind.SYNTAX,
                file="typecheck",
                message=f"Type check timed out after {self.config.analyzer_timeout} seconds",
            )])

        parsed = self.parse_output(output.combined, project_dir)
        errors = [e for e in parsed if not self.is_excluded(e.file)]

        if output.returncode != 0 and not parsed:
            raw = output.combined.strip()
            logger.warning(f"[{self.name}] Exit {output.returncode} with no parseable diagnostics: {truncate_for_log(raw)}")
            errors.append(ValidationError(
                kind=ErrorKind.SYNTAX,
                file="typecheck",
                message=f"Type check failed with code {output.returncode}.\n\n{raw}" if raw
                else f"Type check failed with code {output.returncode}.",
            ))

        logger.info(f"[{self.name}] {len(errors)} errors")
        return ValidationResult.from_findings(errors)

    def parse_output(self, output: str, project_dir: str) -> List[ValidationError]:
        """Parse every compiler diagnostic line; vendor filtering is left to check()."""
        errors = []
        for line in output.splitlines():
            error = self._parse_line(line.strip(), project_dir)
            if error is not None:
                errors.append(error)
        return errors

    def _parse_line(self, line: str, project_dir: str) -> Optional[ValidationError]:
        match = PAREN_FORMAT.match(line) or DASH_FORMAT.match(line)
        if not match:
            return None

        message = match.group(5).strip()
        surgical = any(p.search(message) for p in SURGICAL_IMPORT_PATTERNS)

        return ValidationError(
            kind=ErrorKind.SYNTAX,
            file=self.relative_path(project_dir, match.group(1).strip()),
            line=int(match.group(2)),
            column=int(match.group(3)),
            message=message,
            rule=SURGICAL_RULE if surgical else match.group(4),
            severity=Severity.ERROR,
            fixable=surgical,
        )
