"""
Tests for the error classifier

Tests cover:
- First-match suggestion categories
- Context enhancement (vendor drop, immutability)
- Dominant pattern detection
"""

from codeguard.validation.classifier import (
    MIXED_ISSUES, detect_error_pattern, enhance_error_context, suggestions_for,
)
from codeguard.validation.models import ErrorKind, ValidationError


def make_error(message, file="src/App.jsx"):
    return ValidationError(kind=ErrorKind.SYNTAX, file=file, message=message)


class TestSuggestions:

    def test_jsx_category(self):
        assert suggestions_for("JSX element 'div' has no corresponding closing tag.").category == "unclosed_jsx"

    def test_bracket_category(self):
        assert suggestions_for("'}' expected.").category == "unbalanced_brackets"

    def test_first_match_wins(self):
        # Mentions both "import" and "duplicate": import_export is listed first
        assert suggestions_for("Duplicate import of 'React'").category == "import_export"

    def test_no_match(self):
        assert suggestions_for("Something unusual happened") is None


class TestEnhanceErrorContext:

    def test_appends_suggestions(self, config):
        original = make_error("'}' expected.")
        [enhanced] = enhance_error_context([original], "/project", config)

        assert enhanced.message.startswith("'}' expected.\n\nSuggestions:\n  - ")
        assert original.message == "'}' expected."

    def test_drops_vendor_errors(self, config):
        errors = [
            make_error("Cannot find name 'x'", file="src/default_components/Nav.jsx"),
            make_error("Something unusual happened"),
        ]
        enhanced = enhance_error_context(errors, "/project", config)

        assert [e.file for e in enhanced] == ["src/App.jsx"]
        assert enhanced[0] is errors[1]


class TestDetectErrorPattern:

    def test_dominant_duplicates(self):
        errors = [make_error("Duplicate identifier 'App'.")] * 3 + [make_error("Something odd")]
        assert detect_error_pattern(errors, threshold=0.6) == "duplicate_code"

    def test_threshold_is_strict(self):
        errors = [make_error("Duplicate identifier 'App'.")] * 3 + [make_error("odd")] * 2
        assert detect_error_pattern(errors, threshold=0.6) == MIXED_ISSUES

    def test_mixed(self):
        errors = [
            make_error("Duplicate identifier 'a'."),
            make_error("Cannot find name 'b'."),
            make_error("odd"),
            make_error("stranger"),
        ]
        assert detect_error_pattern(errors, threshold=0.6) == MIXED_ISSUES

    def test_empty(self):
        assert detect_error_pattern([], threshold=0.6) == MIXED_ISSUES
