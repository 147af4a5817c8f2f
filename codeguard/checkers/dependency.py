"""
Dependency Checker Module

Static checks on the manifest and installed packages. No subprocess.

Checks:
- node_modules exists (fixable: run the installer)
- Required runtime libraries are declared (fixable)
- Tailwind utility classes used without tailwindcss declared (warning only,
  nothing is broken yet)
"""

import re
from pathlib import Path
from typing import Any, Dict

from codeguard.checkers.base import BaseChecker, logger
from codeguard.checkers.files import find_source_files
from codeguard.validation.models import (
    ErrorKind, ValidationError, ValidationResult,
    ValidationWarning, WarningKind,
)


TAILWIND_SIGNATURE = re.compile(
    r"className=[\"'][^\"']*(?:bg-|text-|p-|m-|w-|h-|flex|grid|rounded|shadow)"
)

INSTALL_HINT = 'node_modules directory not found. Run "npm install" to install dependencies.'


def declares(manifest: Dict[str, Any], package: str) -> bool:
    return package in (manifest.get("dependencies") or {}) or \
        package in (manifest.get("devDependencies") or {})


class DependencyChecker(BaseChecker):
    """Manifest and install-state checker."""

    @property
    def name(self) -> str:
        return "dependency"

    async def check(self, project_dir: str) -> ValidationResult:
        errors = []
        warnings = []

        try:
            manifest = self.read_manifest(project_dir)
        except (OSError, ValueError) as e:
            return ValidationResult.from_findings([ValidationError(
                kind=ErrorKind.DEPENDENCY,
                file="package.json",
                message=f"Cannot validate dependencies: {e}",
            )])

        if not (Path(project_dir) / "node_modules").is_dir():
            errors.append(ValidationError(
                kind=ErrorKind.DEPENDENCY,
                file="node_modules",
                message=INSTALL_HINT,
                rule="install-dependencies",
                fixable=True,
            ))

        for package in self.config.required_dependencies:
            if not declares(manifest, package):
                errors.append(ValidationError(
                    kind=ErrorKind.DEPENDENCY,
                    file="package.json",
                    message=f"Missing required dependency: {package}",
                    rule="required-dependency",
                    fixable=True,
                ))

        if self._uses_tailwind(project_dir) and not declares(manifest, "tailwindcss"):
            warnings.append(ValidationWarning(
                kind=WarningKind.BEST_PRACTICE,
                file="package.json",
                message="Tailwind CSS classes detected but tailwindcss not found in dependencies",
                rule="tailwind-dependency",
            ))

        logger.info(f"[{self.name}] {len(errors)} errors, {len(warnings)} warnings")
        return ValidationResult.from_findings(errors, warnings)

    def _uses_tailwind(self, project_dir: str) -> bool:
        """Sample the first few source files for utility-class markup."""
        files = find_source_files(
            project_dir,
            self.config.source_roots,
            self.config.source_extensions,
            self.config.excluded_marker,
        )
        for path in files[:self.config.dependency_sample_size]:
            try:
                if TAILWIND_SIGNATURE.search(path.read_text(encoding="utf-8")):
                    return True
            except (OSError, UnicodeDecodeError):
                continue
        return False
