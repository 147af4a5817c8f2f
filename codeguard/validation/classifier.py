"""
Error Classifier

Two jobs:
- enhance_error_context(): drop vendor/fixture diagnostics and append
  recovery suggestions to the rest (first matching category only).
- detect_error_pattern(): name the failure category that dominates a run,
  used to pick the guidance sentence of the initial report.

Both are driven by ordered (predicate, payload) tables so each rule can be
tested on its own.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from codeguard.checkers.files import is_vendor_path
from codeguard.core.config import GuardConfig, get_config
from codeguard.core.logger import get_logger
from codeguard.validation.models import ValidationError

logger = get_logger("classifier")

Predicate = Callable[[str], bool]


def _contains_any(*needles: str) -> Predicate:
    return lambda message: any(n in message for n in needles)


def _contains_any_ci(*needles: str) -> Predicate:
    lowered = [n.lower() for n in needles]
    return lambda message: any(n in message.lower() for n in lowered)


# ============================================================================
# RECOVERY SUGGESTIONS
# ============================================================================

@dataclass(frozen=True)
class SuggestionRule:
    category: str
    matches: Predicate
    suggestions: Tuple[str, ...]


SUGGESTION_RULES: List[SuggestionRule] = [
    SuggestionRule(
        category="unclosed_jsx",
        matches=_contains_any_ci("jsx", "closing tag", "unterminated jsx", "expected corresponding"),
        suggestions=(
            "Check that every opening JSX tag has a matching closing tag",
            "Look for self-closing elements missing the trailing '/>'",
            "Make sure the component returns a single root element",
        ),
    ),
    SuggestionRule(
        category="incomplete_expression",
        matches=_contains_any_ci("expression expected", "unexpected end of", "declaration or statement expected"),
        suggestions=(
            "Look for an expression cut off mid-way (dangling operator, comma or arrow)",
            "Check for code left after the component's closing brace",
        ),
    ),
    SuggestionRule(
        category="unbalanced_brackets",
        matches=_contains_any("'}' expected", "')' expected", "']' expected", "Missing", "Unexpected token"),
        suggestions=(
            "Count opening and closing braces, parentheses and brackets in the block",
            "Add the missing closer at the end of the enclosing function or object",
        ),
    ),
    SuggestionRule(
        category="import_export",
        matches=_contains_any_ci("import", "export", "module"),
        suggestions=(
            "Verify the imported name is actually exported by the target module",
            "Switch between default and named import to match the export",
            "Fix the module path if the file was moved or renamed",
        ),
    ),
    SuggestionRule(
        category="duplicate_declaration",
        matches=_contains_any_ci("duplicate", "already declared", "already been declared"),
        suggestions=(
            "Remove the duplicated declaration, keeping the most complete version",
            "Check the end of the file for a pasted second copy of the component",
        ),
    ),
]


def suggestions_for(message: str) -> Optional[SuggestionRule]:
    """First suggestion rule whose predicate matches the message."""
    for rule in SUGGESTION_RULES:
        if rule.matches(message):
            return rule
    return None


def enhance_error_context(
    errors: List[ValidationError],
    project_dir: str,
    config: Optional[GuardConfig] = None,
) -> List[ValidationError]:
    """
    Return new error records enriched with recovery suggestions.

    Errors located in the vendor/fixture directory are dropped. The input
    records are left untouched.
    """
    config = config or get_config()
    marker = config.excluded_marker
    enhanced = []

    for error in errors:
        if is_vendor_path(error.file, marker):
            continue

        rule = suggestions_for(error.message)
        if rule is None:
            enhanced.append(error)
            continue

        bullets = "\n".join(f"  - {s}" for s in rule.suggestions)
        enhanced.append(error.model_copy(update={
            "message": f"{error.message}\n\nSuggestions:\n{bullets}",
        }))

    dropped = len(errors) - len(enhanced)
    if dropped:
        logger.debug(f"[CLASSIFIER] Dropped {dropped} diagnostics from {marker} in {project_dir}")
    return enhanced


# ============================================================================
# DOMINANT PATTERN DETECTION
# ============================================================================

MIXED_ISSUES = "mixed_issues"

PATTERN_SIGNATURES: List[Tuple[str, Predicate]] = [
    ("duplicate_code", _contains_any("duplicate", "Duplicate", "already declared")),
    ("jsx_structure", _contains_any("JSX", "Expected", "tag")),
    ("missing_brackets", _contains_any("Missing", "expected", "}")),
    ("import_export", _contains_any("import", "export", "module")),
]


def detect_error_pattern(
    errors: List[ValidationError],
    threshold: Optional[float] = None,
) -> str:
    """
    Name the category covering more than `threshold` of all errors.

    Categories are counted independently, so one message may count toward
    several. Returns "mixed_issues" when none dominates (or no errors).
    """
    if not errors:
        return MIXED_ISSUES
    threshold = threshold if threshold is not None else get_config().dominant_pattern_threshold

    total = len(errors)
    for category, matches in PATTERN_SIGNATURES:
        share = sum(1 for e in errors if matches(e.message)) / total
        if share > threshold:
            return category
    return MIXED_ISSUES
