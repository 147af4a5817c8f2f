"""
Auto Fixer

Applies the repairs the pipeline considers safe:

- ESLint's own --fix mode (rewrites files in place)
- A button-contrast rewriter over every source file
- `npm install` when the dependency check reports no node_modules

Both fixers run concurrently under the directory lock; their changed-file
lists are merged and de-duplicated into one FixResult. Running the fixer
twice on a fixed tree changes nothing the second time.
"""

import asyncio
from typing import Callable, List, Optional, Tuple

from codeguard.checkers import DependencyChecker, ESLintChecker, LintMode, run_command
from codeguard.checkers.base import BaseChecker
from codeguard.checkers.files import find_source_files
from codeguard.checkers.style_contrast import (
    CLASS_ATTRIBUTE, DARK_BACKGROUND, TEXT_COLOR, THEMED_BUTTONS,
    DANGEROUS_PAIRS, is_button, split_classes,
)
from codeguard.core.config import GuardConfig, get_config
from codeguard.core.errors import LockTimeoutError
from codeguard.core.logger import get_logger, log_timing
from codeguard.services.lock_manager import LockManager, lock_manager as default_lock_manager
from codeguard.validation.models import ErrorKind, FixResult, ValidationError

logger = get_logger("autofix")


# ============================================================================
# CONTRAST REWRITES
# ============================================================================

def strip_themed_text_color(tokens: List[str]) -> List[str]:
    """Themed buttons get their text color from the theme."""
    if not any(t in THEMED_BUTTONS for t in tokens):
        return tokens
    return [t for t in tokens if not TEXT_COLOR.match(t)]


def strip_unbacked_white_text(tokens: List[str]) -> List[str]:
    """text-white on a button without an explicit dark background."""
    if not is_button(tokens) or "text-white" not in tokens:
        return tokens
    if any(DARK_BACKGROUND.match(t) for t in tokens):
        return tokens
    return [t for t in tokens if t != "text-white"]


def swap_dangerous_pairs(tokens: List[str]) -> List[str]:
    for background, text, safe_text, _ in DANGEROUS_PAIRS:
        if background in tokens and text in tokens:
            tokens = [safe_text if t == text else t for t in tokens]
    return tokens


# Applied in order to every className attribute.
CONTRAST_REWRITES: List[Tuple[str, Callable[[List[str]], List[str]]]] = [
    ("themed-button-text-color", strip_themed_text_color),
    ("button-text-white", strip_unbacked_white_text),
    ("dangerous-contrast-pair", swap_dangerous_pairs),
]


def rewrite_contrast(content: str) -> Tuple[str, List[str]]:
    """
    Apply the contrast rewrites to every className attribute.

    Returns:
        (new content, names of rewrites that fired)
    """
    fired: List[str] = []

    def rewrite_attribute(match) -> str:
        tokens = split_classes(match.group(1))
        original = list(tokens)
        for name, rewrite in CONTRAST_REWRITES:
            updated = rewrite(tokens)
            if updated != tokens:
                fired.append(name)
                tokens = updated
        if tokens == original:
            return match.group(0)
        return f'className="{" ".join(tokens)}"'

    return CLASS_ATTRIBUTE.sub(rewrite_attribute, content), fired


# ============================================================================
# AUTO FIXER
# ============================================================================

class AutoFixer:
    """Runs every automatic repair for a project directory."""

    def __init__(
        self,
        config: Optional[GuardConfig] = None,
        locks: Optional[LockManager] = None,
        lint: Optional[ESLintChecker] = None,
        dependency: Optional[BaseChecker] = None,
    ):
        self.config = config or get_config()
        self.locks = locks or default_lock_manager
        self.lint = lint or ESLintChecker(LintMode.FULL, self.config)
        self.dependency = dependency or DependencyChecker(self.config)

    @log_timing(logger)
    async def auto_fix_project(self, project_dir: str) -> FixResult:
        """
        Run all fixers under the directory lock.

        Never raises: a lock timeout or crash comes back as an unsuccessful
        FixResult carrying one runtime error.
        """
        try:
            return await self.locks.with_lock(
                project_dir,
                lambda: self._fix(project_dir),
                self.config.lock_timeout,
            )
        except LockTimeoutError as e:
            logger.error(f"[AUTOFIX] {e}")
            return self._failure(f"Auto-fix already in progress for this project: {e}")
        except Exception as e:
            logger.exception(f"[AUTOFIX] Auto-fix crashed on {project_dir}")
            return self._failure(f"Auto-fix failed: {e}")

    async def _fix(self, project_dir: str) -> FixResult:
        logger.info(f"[AUTOFIX] Attempting auto-fix on: {project_dir}")

        lint_result, contrast_result = await asyncio.gather(
            self.lint.auto_fix(project_dir),
            self.auto_fix_button_contrast(project_dir),
        )

        dependency_result = await self.dependency.check(project_dir)
        needs_install = any(
            "node_modules" in e.message or "npm install" in e.message
            for e in dependency_result.errors
        )
        if needs_install:
            await self.install_dependencies(project_dir)

        combined = FixResult.combine([lint_result, contrast_result])
        logger.info(f"[AUTOFIX] Changed {len(combined.changed_files)} files")
        return combined

    async def auto_fix_button_contrast(self, project_dir: str) -> FixResult:
        """Rewrite dangerous button/contrast classes in every source file."""
        changed: List[str] = []
        files = find_source_files(
            project_dir,
            self.config.source_roots,
            self.config.source_extensions,
            self.config.excluded_marker,
        )

        for path in files:
            relative = path.relative_to(project_dir).as_posix()
            try:
                content = path.read_text(encoding="utf-8")
                updated, fired = rewrite_contrast(content)
                if not fired:
                    continue
                path.write_text(updated, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"[AUTOFIX] Could not process {relative} for contrast fixes: {e}")
                continue
            changed.append(relative)
            logger.info(f"[AUTOFIX] Fixed contrast in {relative}: {', '.join(fired)}")

        return FixResult(success=len(changed) > 0, changed_files=changed)

    async def install_dependencies(self, project_dir: str) -> bool:
        """Run `npm install`; failures are logged, never raised."""
        logger.info("[AUTOFIX] Running npm install to fix dependency issues...")
        try:
            output = await run_command(["npm", "install"], project_dir, self.config.install_timeout)
        except OSError as e:
            logger.error(f"[AUTOFIX] npm install could not start: {e}")
            return False

        if output.timed_out:
            logger.error(f"[AUTOFIX] npm install timed out after {self.config.install_timeout:g}s")
            return False
        if output.returncode != 0:
            logger.error(f"[AUTOFIX] npm install failed with code {output.returncode}")
            return False
        return True

    @staticmethod
    def _failure(message: str) -> FixResult:
        return FixResult(
            success=False,
            remaining_errors=[ValidationError(
                kind=ErrorKind.RUNTIME,
                file="auto-fix",
                message=message,
            )],
        )
