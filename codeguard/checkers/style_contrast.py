"""
Style Contrast Checker Module

Scans source files for UI class combinations that produce unreadable or
badly styled buttons. Pure text scan, no subprocess.

Rules (per className attribute):
- daisyui-button-contrast: themed button (btn-primary/btn-secondary) with an
  explicit text color; the theme should control contrast. Fixable.
- button-text-contrast: button with text-white but no guaranteed dark
  background. Fixable.
- color-contrast: light-on-light or dark-on-dark background/text pair. Fixable.
- button-padding: plain `btn` with no padding utility. Warning only.
"""

import re
from typing import List, Tuple

from codeguard.checkers.base import BaseChecker, logger
from codeguard.checkers.files import find_source_files
from codeguard.validation.models import (
    ErrorKind, ValidationError, ValidationResult,
    ValidationWarning, WarningKind,
)


CLASS_ATTRIBUTE = re.compile(r'className="([^"]*)"')

THEMED_BUTTONS = {"btn-primary", "btn-secondary"}
TEXT_COLOR = re.compile(r"^text-(?:white|black|transparent|current|inherit|[a-z]+-\d{2,3})$")
DARK_BACKGROUND = re.compile(r"^bg-(?:black|gray-900|(?:blue|red|green|purple|indigo)-\d+)$")
PADDING = re.compile(r"^p-\d+$")

# (background, unreadable text, safe replacement text, description)
DANGEROUS_PAIRS: List[Tuple[str, str, str, str]] = [
    ("bg-white", "text-white", "text-gray-900", "White text on white background"),
    ("bg-black", "text-black", "text-white", "Black text on black background"),
    ("bg-gray-100", "text-white", "text-gray-900", "White text on light gray background"),
    ("bg-gray-900", "text-black", "text-white", "Black text on dark gray background"),
]


def split_classes(classes: str) -> List[str]:
    return classes.split()


def is_button(tokens: List[str]) -> bool:
    return any(t == "btn" or t.startswith("btn-") for t in tokens)


def has_themed_text_color(tokens: List[str]) -> bool:
    return any(t in THEMED_BUTTONS for t in tokens) and any(TEXT_COLOR.match(t) for t in tokens)


def has_unbacked_white_text(tokens: List[str]) -> bool:
    return (
        is_button(tokens)
        and "text-white" in tokens
        and not any(DARK_BACKGROUND.match(t) for t in tokens)
    )


def dangerous_pairs(tokens: List[str]) -> List[Tuple[str, str, str, str]]:
    return [pair for pair in DANGEROUS_PAIRS if pair[0] in tokens and pair[1] in tokens]


def lacks_padding(tokens: List[str]) -> bool:
    if "btn" not in tokens:
        return False
    if any(PADDING.match(t) for t in tokens):
        return False
    has_px = any(t.startswith("px-") for t in tokens)
    has_py = any(t.startswith("py-") for t in tokens)
    return not (has_px or has_py)


class StyleContrastChecker(BaseChecker):
    """Line-by-line scan for dangerous button and contrast patterns."""

    @property
    def name(self) -> str:
        return "style-contrast"

    async def check(self, project_dir: str) -> ValidationResult:
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []

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
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"[{self.name}] Could not read {relative}: {e}")
                continue

            for line_number, line in enumerate(content.splitlines(), start=1):
                file_errors, file_warnings = self.scan_line(relative, line_number, line)
                errors.extend(file_errors)
                warnings.extend(file_warnings)

        logger.info(f"[{self.name}] {len(errors)} errors, {len(warnings)} warnings in {len(files)} files")
        return ValidationResult.from_findings(errors, warnings)

    def scan_line(
        self, file_path: str, line_number: int, line: str
    ) -> Tuple[List[ValidationError], List[ValidationWarning]]:
        errors = []
        warnings = []

        for match in CLASS_ATTRIBUTE.finditer(line):
            classes = match.group(1)
            tokens = split_classes(classes)

            if has_themed_text_color(tokens):
                errors.append(self._error(
                    file_path, line_number, "daisyui-button-contrast",
                    f'DaisyUI button with explicit text color: "{classes}". '
                    f"Remove text color and let DaisyUI handle button styling.",
                ))
            elif has_unbacked_white_text(tokens):
                errors.append(self._error(
                    file_path, line_number, "button-text-contrast",
                    f'Button with text-white but no guaranteed dark background: "{classes}". '
                    f"Either add explicit dark background or remove text-white.",
                ))

            for _, _, _, description in dangerous_pairs(tokens):
                errors.append(self._error(
                    file_path, line_number, "color-contrast",
                    f'{description}: "{classes}". This creates unreadable text.',
                ))

            if lacks_padding(tokens):
                warnings.append(ValidationWarning(
                    kind=WarningKind.STYLE,
                    file=file_path,
                    line=line_number,
                    message=f'Button without padding: "{classes}". Consider adding px-4 py-2 for better UX.',
                    rule="button-padding",
                ))

        return errors, warnings

    @staticmethod
    def _error(file_path: str, line_number: int, rule: str, message: str) -> ValidationError:
        return ValidationError(
            kind=ErrorKind.SYNTAX,
            file=file_path,
            line=line_number,
            message=message,
            rule=rule,
            fixable=True,
        )
