"""
Report Generator

Renders a ValidationResult for the agent retry loop, in one of two forms:

- Initial report (is_fix_task=False): dominant-pattern guidance, errors
  grouped by file with line/column/rule annotations, then counts of
  auto-fixable errors and warnings.
- Fix-task report (is_fix_task=True): errors only, each with its location
  and exactly one fix instruction, plus an optional edit-scope
  recommendation. No strategy prose, so a repairing agent stays on task.
"""

import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from codeguard.validation.classifier import detect_error_pattern
from codeguard.validation.edit_scope import DefaultScopeAnalyzer, ScopeAnalyzer
from codeguard.validation.models import ValidationError, ValidationResult


SUCCESS_MESSAGE = "✅ All validation checks passed! The project has no errors."


# ============================================================================
# PATTERN GUIDANCE (initial report)
# ============================================================================

PATTERN_GUIDANCE: Dict[str, Tuple[str, List[str]]] = {
    "duplicate_code": (
        "Most errors come from duplicated code; remove repeated declarations before anything else.",
        [
            "Look for repeated functions, components, or JSX sections",
            "Keep the most complete version and delete the rest",
            "Ensure only one export statement per component",
        ],
    ),
    "jsx_structure": (
        "Most errors come from broken JSX structure; fix tag nesting first.",
        [
            "Every opening tag needs a corresponding closing tag",
            "Check for missing return statement parentheses",
            "Verify proper JSX nesting and hierarchy",
        ],
    ),
    "missing_brackets": (
        "Most errors come from unbalanced brackets; close open blocks first.",
        [
            "Count opening and closing braces",
            "Check for missing parentheses in function calls",
            "Verify array and object literals are properly closed",
        ],
    ),
    "import_export": (
        "Most errors come from imports and exports; fix module wiring first.",
        [
            "Remove duplicate import/export statements",
            "Fix malformed import paths",
            "Ensure default exports are singular",
        ],
    ),
    "mixed_issues": (
        "Errors are mixed; fix syntax errors first, then structure, then the rest.",
        [
            "Fix brackets and semicolons first",
            "Then address structural issues (JSX, imports)",
            "Finally handle any remaining parsing errors",
        ],
    ),
}


def _initial_report(result: ValidationResult) -> str:
    pattern = detect_error_pattern(result.errors)
    sentence, bullets = PATTERN_GUIDANCE.get(pattern, PATTERN_GUIDANCE["mixed_issues"])

    report = ["❌ Validation failed. Please fix the following issues:", ""]
    report.append(f"💡 {sentence}")
    report.extend(f"  - {b}" for b in bullets)
    report.append("")

    by_file: Dict[str, List[ValidationError]] = {}
    for error in result.errors:
        by_file.setdefault(error.file, []).append(error)

    for file, errors in by_file.items():
        report.append(f"📄 File: {file}")
        for error in errors:
            location = ""
            if error.line is not None:
                column = f":{error.column}" if error.column is not None else ""
                location = f" (line {error.line}{column})"
            rule = f" [{error.rule}]" if error.rule else ""
            report.append(f"  • {error.message}{location}{rule}")
        report.append("")

    if result.fixable_errors:
        report.append(f"🔧 {len(result.fixable_errors)} errors can be auto-fixed.")
    if result.warnings:
        report.append(f"⚠️  {len(result.warnings)} warnings found (not blocking deployment).")

    return "\n".join(report)


# ============================================================================
# FIX INSTRUCTIONS (fix-task report)
# ============================================================================

KNOWN_IMPORTS = {
    "useState": "import { useState } from 'react'",
    "useEffect": "import { useEffect } from 'react'",
    "useRef": "import { useRef } from 'react'",
    "useMemo": "import { useMemo } from 'react'",
    "useCallback": "import { useCallback } from 'react'",
    "useContext": "import { useContext } from 'react'",
    "React": "import React from 'react'",
    "Link": "import Link from 'next/link'",
    "Image": "import Image from 'next/image'",
}


def _missing_identifier(match: re.Match) -> str:
    name = match.group(1)
    if name in KNOWN_IMPORTS:
        return f"Add the import: {KNOWN_IMPORTS[name]}"
    if name[:1].isupper():
        return f"Import {name} from the module that defines it, or replace <{name}> with a standard HTML element"
    return f"Declare or import '{name}' before it is used"


def _invalid_literal(match: re.Match) -> str:
    allowed = re.findall(r"\"([^\"]+)\"|'([^']+)'", match.group(2))
    values = [a or b for a, b in allowed]
    if values:
        return f"Replace {match.group(1)} with one of the allowed values: {', '.join(values)}"
    return f"Replace {match.group(1)} with a value of type {match.group(2)}"


FIX_INSTRUCTIONS: List[Tuple[Pattern, Callable[[re.Match], str]]] = [
    (re.compile(r"Cannot find name '([^']+)'"), _missing_identifier),
    (re.compile(r"'([^']+)' is not defined"), _missing_identifier),
    (re.compile(r"Type '(.+?)' is not assignable to type '(.+)'"), _invalid_literal),
    (re.compile(r"[Dd]uplicate|already (?:been )?declared"), lambda m: "Remove the duplicate declaration"),
    (re.compile(r"JSX|closing tag|jsx identifier"),
     lambda m: "Fix the JSX structure: close or rebalance the element at this location"),
]

DEFAULT_INSTRUCTION = "Fix the syntax error at this location"


def fix_instruction(message: str) -> str:
    """Exactly one instruction: the first matching table entry, else the default."""
    for pattern, build in FIX_INSTRUCTIONS:
        match = pattern.search(message)
        if match:
            return build(match)
    return DEFAULT_INSTRUCTION


def _read_source(project_dir: Optional[str], file_path: str) -> str:
    if not project_dir:
        return ""
    path = Path(project_dir) / file_path
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


def _fix_task_report(
    result: ValidationResult,
    project_dir: Optional[str],
    scope_analyzer: Optional[ScopeAnalyzer],
) -> str:
    report = [f"Errors to fix ({len(result.errors)}):", ""]
    for index, error in enumerate(result.errors, start=1):
        report.append(f"{index}. {error.location} - {error.message}")
        report.append(f"   Fix: {fix_instruction(error.message)}")
        if scope_analyzer is not None:
            content = _read_source(project_dir, error.file)
            recommendation = scope_analyzer.analyze(error, content, error.file)
            report.append(f"   Scope: {recommendation.describe()}")
    return "\n".join(report)


def generate_error_report(
    result: ValidationResult,
    is_fix_task: bool = False,
    project_dir: Optional[str] = None,
    scope_analyzer: Optional[ScopeAnalyzer] = None,
) -> str:
    """
    Render a validation result for the agent loop.

    Args:
        result: Validation outcome
        is_fix_task: Use the terse fix-task rendering
        project_dir: Project root, used to load file content for scope analysis
        scope_analyzer: Edit-scope collaborator for fix-task reports;
            DefaultScopeAnalyzer when omitted
    """
    if result.is_valid:
        return SUCCESS_MESSAGE

    if is_fix_task:
        return _fix_task_report(result, project_dir, scope_analyzer or DefaultScopeAnalyzer())
    return _initial_report(result)
