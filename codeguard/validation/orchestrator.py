"""
Validation Orchestrator

Sequences the analyzer adapters for one project directory:

1. Fast path (fail-fast, in order): type check -> syntax-only lint ->
   build confirmation. Type errors are the cheapest to find and the most
   likely to cascade into unreadable lint/build noise, so they gate
   everything downstream.
2. Full pass (concurrent): full lint, build, dependency and style-contrast
   adapters, merged into one ValidationResult.

validate_project() runs under the per-directory lock. Callers that already
serialize access at a coarser grain can use validate_project_without_lock().
"""

import asyncio
from typing import Awaitable, Callable, Optional

from codeguard.checkers import (
    BaseChecker, BuildChecker, DependencyChecker, ESLintChecker,
    LintMode, StyleContrastChecker, TypeScriptChecker,
)
from codeguard.checkers.files import is_vendor_path
from codeguard.core.config import GuardConfig, get_config
from codeguard.core.errors import LockTimeoutError
from codeguard.core.logger import get_logger, log_timing
from codeguard.services.lock_manager import LockManager, lock_manager as default_lock_manager
from codeguard.validation.classifier import enhance_error_context
from codeguard.validation.models import ErrorKind, ValidationError, ValidationResult

logger = get_logger("orchestrator")


def runtime_failure(message: str) -> ValidationResult:
    """A failing result describing a pipeline-internal problem."""
    return ValidationResult.from_findings([ValidationError(
        kind=ErrorKind.RUNTIME,
        file="validation",
        message=message,
    )])


class ValidationOrchestrator:
    """
    Runs the layered validation pipeline.

    Adapters and the lock manager are injectable so tests can replace
    the external tools with stubs.
    """

    def __init__(
        self,
        config: Optional[GuardConfig] = None,
        locks: Optional[LockManager] = None,
        typecheck: Optional[BaseChecker] = None,
        syntax_lint: Optional[BaseChecker] = None,
        full_lint: Optional[BaseChecker] = None,
        build: Optional[BaseChecker] = None,
        dependency: Optional[BaseChecker] = None,
        style: Optional[BaseChecker] = None,
    ):
        self.config = config or get_config()
        self.locks = locks or default_lock_manager
        self.typecheck = typecheck or TypeScriptChecker(self.config)
        self.syntax_lint = syntax_lint or ESLintChecker(LintMode.SYNTAX, self.config)
        self.full_lint = full_lint or ESLintChecker(LintMode.FULL, self.config)
        self.build = build or BuildChecker(self.config)
        self.dependency = dependency or DependencyChecker(self.config)
        self.style = style or StyleContrastChecker(self.config)

    async def validate_syntax_only(self, project_dir: str) -> ValidationResult:
        """
        Fast path: each stage must pass before the next one runs.

        A stage fails only on errors outside the vendor directory.
        """
        logger.info(f"[VALIDATION] Fast path on {project_dir}")

        result = self._without_vendor(await self.typecheck.check(project_dir))
        if not result.is_valid:
            logger.info(f"[VALIDATION] Type check failed ({len(result.errors)} errors), stopping")
            return result

        result = self._without_vendor(await self.syntax_lint.check(project_dir))
        if not result.is_valid:
            logger.info(f"[VALIDATION] Syntax lint failed ({len(result.errors)} errors), stopping")
            return result

        return self._without_vendor(await self.build.check(project_dir))

    def _without_vendor(self, result: ValidationResult) -> ValidationResult:
        kept = [e for e in result.errors if not is_vendor_path(e.file, self.config.excluded_marker)]
        if len(kept) == len(result.errors):
            return result
        logger.debug(f"[VALIDATION] Ignoring {len(result.errors) - len(kept)} vendor diagnostics")
        return result.with_errors(kept)

    @log_timing(logger)
    async def validate_project(self, project_dir: str, syntax_only: bool = False) -> ValidationResult:
        """
        Full pipeline under the directory lock.

        Never raises: lock timeouts and unexpected failures come back as a
        failing result with a runtime error.
        """
        try:
            return await self.locks.with_lock(
                project_dir,
                lambda: self._validate(project_dir, syntax_only),
                self.config.lock_timeout,
            )
        except LockTimeoutError as e:
            logger.error(f"[VALIDATION] {e}")
            return runtime_failure(f"Validation already in progress for this project: {e}")
        except Exception as e:
            logger.exception(f"[VALIDATION] Pipeline crashed on {project_dir}")
            return runtime_failure(f"Validation pipeline failed: {e}")

    async def validate_project_without_lock(self, project_dir: str, syntax_only: bool = False) -> ValidationResult:
        """Same pipeline, relying on the caller to serialize access."""
        try:
            return await self._validate(project_dir, syntax_only)
        except Exception as e:
            logger.exception(f"[VALIDATION] Pipeline crashed on {project_dir}")
            return runtime_failure(f"Validation pipeline failed: {e}")

    async def _validate(self, project_dir: str, syntax_only: bool) -> ValidationResult:
        fast = await self.validate_syntax_only(project_dir)
        if not fast.is_valid:
            # Vendor errors are already gone, so enhancement keeps this result failing
            return fast.with_errors(enhance_error_context(fast.errors, project_dir, self.config))
        if syntax_only:
            return fast

        results = await asyncio.gather(
            self._guarded("lint", lambda: self.full_lint.check(project_dir)),
            self.build.check(project_dir),
            self._guarded("dependency", lambda: self.dependency.check(project_dir)),
            self._guarded("style-contrast", lambda: self.style.check(project_dir)),
        )
        merged = ValidationResult.merge(results)

        logger.info(f"[VALIDATION] Validation complete: {'PASSED' if merged.is_valid else 'FAILED'}")
        logger.info(
            f"[VALIDATION] Errors: {len(merged.errors)}, Warnings: {len(merged.warnings)}, "
            f"Fixable: {len(merged.fixable_errors)}"
        )
        return merged

    @staticmethod
    async def _guarded(name: str, run: Callable[[], Awaitable[ValidationResult]]) -> ValidationResult:
        """One broken adapter must not abort the whole pass."""
        try:
            return await run()
        except Exception as e:
            logger.warning(f"[VALIDATION] {name} validation failed, ignoring: {e}")
            return ValidationResult.ok()
