"""
Build Checker Module

Runs the project's `build` script to verify the code compiles and bundles.

Detection:
- package.json with a "build" script. Without one there is nothing to
  validate and no subprocess is spawned.

The build gets a hard timeout (240s by default); when it fires the
process is killed and a single timeout error is returned, so this
adapter never hangs the pipeline.
"""

import re
from typing import List, Optional, Tuple

from codeguard.checkers.base import BaseChecker, CommandOutput, logger
from codeguard.core.logger import truncate_for_log
from codeguard.validation.models import (
    ErrorKind, ValidationError, ValidationResult,
    ValidationWarning, WarningKind,
)


MODULE_NOT_FOUND = re.compile(r"Module not found: (?:Error: )?Can't resolve '([^']+)'")
FILE_REFERENCE = re.compile(r"\./([^:\s]+):(\d+):(\d+)")
ERROR_MARKER = re.compile(r"Error|⨯")

# Lines that look like errors but are bundler progress chatter.
NOISE_LINE_PATTERNS = [
    re.compile(r"webpack.*chunk|chunk.*webpack", re.IGNORECASE),
    re.compile(r"Entry point"),
]

# Generic lines skipped unless they also match a critical pattern.
CRITICAL_BUILD_PATTERNS = [
    re.compile(r"Duplicate export"),
    re.compile(r"SyntaxError"),
    re.compile(r"TypeError.*Cannot"),
    re.compile(r"Invalid.*import"),
    re.compile(r"Invalid.*export"),
    re.compile(r"Module not found.*components"),
]
NON_CRITICAL_BUILD_PATTERNS = [
    re.compile(r"Cannot find module.*lightningcss"),
    re.compile(r"Error occurred in.*next/font"),
    re.compile(r"Build failed because of webpack errors"),
    re.compile(r"ESLint.*Parsing error"),
    re.compile(r"TypeScript.*parsing error"),
    re.compile(r"Warning.*deprecated"),
    re.compile(r"Warning.*configuration"),
    re.compile(r"eslint.*warning", re.IGNORECASE),
    re.compile(r"lint.*warning", re.IGNORECASE),
]


def is_noise_line(line: str) -> bool:
    if any(p.search(line) for p in NOISE_LINE_PATTERNS):
        return True
    if any(p.search(line) for p in CRITICAL_BUILD_PATTERNS):
        return False
    return any(p.search(line) for p in NON_CRITICAL_BUILD_PATTERNS)


class BuildChecker(BaseChecker):
    """
    Build verification checker.

    Runs `npm run build` and scans the combined output line by line.
    """

    @property
    def name(self) -> str:
        return "build"

    @property
    def command(self) -> List[str]:
        return ["npm", "run", "build"]

    async def check(self, project_dir: str) -> ValidationResult:
        try:
            manifest = self.read_manifest(project_dir)
        except (OSError, ValueError):
            return ValidationResult.from_findings([ValidationError(
                kind=ErrorKind.DEPENDENCY,
                file="package.json",
                message="Cannot read package.json",
            )])

        scripts = manifest.get("scripts") or {}
        if not scripts.get("build"):
            return ValidationResult.ok([ValidationWarning(
                kind=WarningKind.BEST_PRACTICE,
                file="package.json",
                message="No build script found in package.json",
                rule="build-script",
            )])

        timeout = self.config.build_timeout
        try:
            output = await self._run(self.command, project_dir, timeout)
        except OSError as e:
            logger.error(f"[{self.name}] Failed to start build: {e}")
            return ValidationResult.from_findings([ValidationError(
                kind=ErrorKind.BUILD,
                file="build process",
                message=f"Failed to run build command: {e}",
            )])

        if output.timed_out:
            logger.warning(f"[{self.name}] Build killed after {timeout:g}s")
            return ValidationResult.from_findings([ValidationError(
                kind=ErrorKind.BUILD,
                file="build process",
                message=f"Build process timed out after {timeout:g} seconds",
            )])

        if output.returncode == 0:
            logger.info(f"[{self.name}] Build passed")
            return ValidationResult.ok()

        logger.debug(f"[{self.name}] Build output: {truncate_for_log(output.combined.strip())}")
        parsed = self.parse_output(output.combined)
        errors = [e for e in parsed if not self.is_excluded(e.file)]
        if not parsed:
            errors.append(self._synthesize_error(output))

        logger.info(f"[{self.name}] Build failed with {len(errors)} errors")
        return ValidationResult.from_findings(errors)

    def parse_output(self, output: str) -> List[ValidationError]:
        """
        Extract errors from failed build output.

        Patterns, in priority order per line:
        1. Module not found         -> fixable dependency error
        2. ./path:line:col + marker -> located build error
        3. ./path:line:col alone    -> location for the next error line
        4. any line with "error"    -> build error, located if a pending
                                       location precedes it

        Next.js prints the location on its own line with the message below
        it. A location never followed by an error line is reported as-is.
        A bare "Failed to compile" header is only reported when nothing
        more specific was found.
        """
        errors: List[ValidationError] = []
        lines = output.splitlines()
        pending: Optional[Tuple[re.Match, str]] = None
        header: Optional[str] = None

        def flush_pending() -> None:
            nonlocal pending
            if pending is not None:
                location, text = pending
                errors.append(self._located(location, text))
                pending = None

        for index, raw_line in enumerate(lines):
            line = raw_line.strip()
            if not line:
                continue

            module_match = MODULE_NOT_FOUND.search(line)
            if module_match:
                # The importing file is printed on the line before
                location = FILE_REFERENCE.search(lines[index - 1]) if index > 0 else None
                pending = None
                errors.append(ValidationError(
                    kind=ErrorKind.DEPENDENCY,
                    file=location.group(1) if location else "unknown",
                    line=int(location.group(2)) if location else None,
                    column=int(location.group(3)) if location else None,
                    message=f"Missing dependency: {module_match.group(1)}",
                    rule="module-not-found",
                    fixable=True,
                ))
                continue

            if is_noise_line(line):
                continue

            location = FILE_REFERENCE.search(line)
            if location and ERROR_MARKER.search(line):
                flush_pending()
                message = re.sub(r"^.*Error:\s*", "", line)
                message = re.sub(r"^⨯\s*", "", message).strip()
                errors.append(self._located(location, message or line))
                continue

            if location:
                flush_pending()
                pending = (location, line)
                continue

            if "error" in line.lower():
                if pending is not None:
                    errors.append(self._located(pending[0], line))
                    pending = None
                else:
                    errors.append(ValidationError(kind=ErrorKind.BUILD, file="unknown", message=line))
                continue

            if "Failed to compile" in line and header is None:
                header = line

        flush_pending()
        if not errors and header is not None:
            errors.append(ValidationError(kind=ErrorKind.BUILD, file="unknown", message=header))
        return errors

    @staticmethod
    def _located(location: re.Match, message: str) -> ValidationError:
        return ValidationError(
            kind=ErrorKind.BUILD,
            file=location.group(1),
            line=int(location.group(2)),
            column=int(location.group(3)),
            message=message,
        )

    @staticmethod
    def _synthesize_error(output: CommandOutput) -> ValidationError:
        message = f"Build failed with code {output.returncode}."
        if output.stderr.strip():
            message += f"\n\nSTDERR:\n{output.stderr.strip()}"
        if output.stdout.strip():
            message += f"\n\nSTDOUT:\n{output.stdout.strip()}"
        return ValidationError(
            kind=ErrorKind.BUILD,
            file="unknown",
            message=message,
        )
