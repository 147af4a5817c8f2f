"""
Tests for the analyzer adapters

External tools are never spawned: each adapter's _run() is replaced with
an AsyncMock returning canned CommandOutput.

Tests cover:
- TypeScriptChecker output parsing and failure modes
- ESLintChecker JSON parsing, noise rules and auto-fix
- BuildChecker detection, timeout and output parsing
- DependencyChecker manifest checks
- StyleContrastChecker scan rules
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from codeguard.checkers import (
    BuildChecker, CommandOutput, DependencyChecker, ESLintChecker,
    LintMode, StyleContrastChecker, TypeScriptChecker,
)
from codeguard.checkers.eslint import is_non_critical
from codeguard.validation.models import ErrorKind
from tests.conftest import write


def output(returncode=0, stdout="", stderr="", timed_out=False):
    return CommandOutput(returncode=returncode, stdout=stdout, stderr=stderr, timed_out=timed_out)


# ============================================================================
# TYPESCRIPT
# ============================================================================

class TestTypeScriptChecker:

    @pytest.fixture
    def ts_project(self, project):
        write(project, "tsconfig.json", "{}")
        return project

    @pytest.mark.asyncio
    async def test_skips_without_tsconfig(self, config, project):
        checker = TypeScriptChecker(config)
        with patch.object(checker, "_run", AsyncMock()) as run:
            result = await checker.check(str(project))

        run.assert_not_awaited()
        assert result.is_valid
        assert result.warnings[0].rule == "typecheck-config"

    @pytest.mark.asyncio
    async def test_unmatched_brace_is_one_syntax_error(self, config, ts_project):
        write(ts_project, "src/f.ts", "function f() { const x = 1;")
        checker = TypeScriptChecker(config)
        canned = output(2, stdout="src/f.ts(1,28): error TS1005: '}' expected.\n")

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(ts_project))

        assert result.is_valid is False
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.kind == ErrorKind.SYNTAX
        assert error.fixable is False
        assert (error.file, error.line, error.column, error.rule) == ("src/f.ts", 1, 28, "TS1005")

    @pytest.mark.asyncio
    async def test_import_errors_are_surgical_and_fixable(self, config, ts_project):
        checker = TypeScriptChecker(config)
        canned = output(2, stdout=(
            "src/App.tsx:4:10 - error TS2305: Module '\"./Button\"' has no exported member 'Buton'.\n"
        ))

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(ts_project))

        assert result.errors[0].rule == "surgical-import-export"
        assert result.can_auto_fix

    @pytest.mark.asyncio
    async def test_vendor_errors_are_dropped(self, config, ts_project):
        checker = TypeScriptChecker(config)
        canned = output(2, stdout="src/default_components/Card.tsx(1,1): error TS2304: Cannot find name 'x'.\n")

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(ts_project))

        assert result.is_valid

    @pytest.mark.asyncio
    async def test_unparseable_failure_yields_generic_error(self, config, ts_project):
        checker = TypeScriptChecker(config)
        canned = output(1, stderr="tsc: something exploded")

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(ts_project))

        assert len(result.errors) == 1
        assert result.errors[0].message.startswith("Type check failed with code 1.")
        assert "something exploded" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_timeout_is_an_error(self, config, ts_project):
        checker = TypeScriptChecker(config)
        with patch.object(checker, "_run", AsyncMock(return_value=output(None, timed_out=True))):
            result = await checker.check(str(ts_project))

        assert not result.is_valid
        assert "timed out" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_spawn_failure_is_runtime_error(self, config, ts_project):
        checker = TypeScriptChecker(config)
        with patch.object(checker, "_run", AsyncMock(side_effect=FileNotFoundError("npx"))):
            result = await checker.check(str(ts_project))

        assert result.errors[0].kind == ErrorKind.RUNTIME


# ============================================================================
# ESLINT
# ============================================================================

def eslint_json(project_dir, messages, file="src/App.jsx", **extra):
    entry = {"filePath": str(project_dir / file), "messages": messages}
    entry.update(extra)
    return json.dumps([entry])


class TestESLintChecker:

    def test_syntax_mode_uses_inline_ruleset(self, config):
        cmd = ESLintChecker(LintMode.SYNTAX, config).command
        assert "--no-eslintrc" in cmd
        assert "no-undef: error" in cmd
        assert "--no-eslintrc" not in ESLintChecker(LintMode.FULL, config).command

    def test_vendor_directory_ignored_at_any_depth(self, config):
        cmd = ESLintChecker(LintMode.FULL, config).command
        assert cmd[cmd.index("--ignore-pattern") + 1] == "**/default_components/**"

    def test_names_reflect_mode(self, config):
        assert ESLintChecker(LintMode.FULL, config).name == "lint-full"
        assert ESLintChecker(LintMode.SYNTAX, config).name == "lint-syntax"

    @pytest.mark.asyncio
    async def test_severity_split(self, config, project):
        checker = ESLintChecker(LintMode.FULL, config)
        canned = output(1, stdout=eslint_json(project, [
            {"severity": 2, "message": "'foo' is not defined.", "ruleId": "no-undef", "line": 3, "column": 5},
            {"severity": 1, "message": "Unexpected console statement.", "ruleId": "no-console", "line": 4, "column": 1},
        ]))

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(project))

        assert [e.rule for e in result.errors] == ["no-undef"]
        assert result.errors[0].file == "src/App.jsx"
        assert [w.rule for w in result.warnings] == ["no-console"]

    @pytest.mark.asyncio
    async def test_tooling_noise_becomes_warning(self, config, project):
        checker = ESLintChecker(LintMode.FULL, config)
        canned = output(1, stdout=eslint_json(project, [
            {"severity": 2, "message": "Parsing error: Cannot find module 'x' parser", "fatal": True},
        ]))

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(project))

        assert result.is_valid
        assert len(result.warnings) == 1

    def test_critical_patterns_win_over_noise(self):
        assert is_non_critical({"message": "Duplicate export 'App'", "fatal": True}) is False
        assert is_non_critical({"message": "x", "ruleId": "import/no-unresolved"}) is True
        assert is_non_critical({"message": "'a' is assigned but never used"}) is False

    @pytest.mark.asyncio
    async def test_bad_json_degrades_to_valid(self, config, project):
        checker = ESLintChecker(LintMode.FULL, config)
        with patch.object(checker, "_run", AsyncMock(return_value=output(2, stdout="Oops! Something went wrong"))):
            result = await checker.check(str(project))

        assert result.is_valid
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_vendor_files_are_skipped(self, config, project):
        checker = ESLintChecker(LintMode.FULL, config)
        canned = output(1, stdout=eslint_json(
            project, [{"severity": 2, "message": "bad", "ruleId": "no-undef"}],
            file="src/default_components/Nav.jsx",
        ))

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(project))

        assert result.is_valid

    @pytest.mark.asyncio
    async def test_auto_fix_reports_changed_and_remaining(self, config, project):
        checker = ESLintChecker(LintMode.FULL, config)
        canned = output(1, stdout=eslint_json(
            project,
            [{"severity": 2, "message": "'x' is not defined.", "ruleId": "no-undef"}],
            output="fixed source",
        ))

        with patch.object(checker, "_run", AsyncMock(return_value=canned)) as run:
            result = await checker.auto_fix(str(project))

        assert "--fix" in run.await_args.args[0]
        assert result.changed_files == ["src/App.jsx"]
        assert len(result.remaining_errors) == 1
        assert result.success is False


# ============================================================================
# BUILD
# ============================================================================

class TestBuildChecker:

    @pytest.mark.asyncio
    async def test_no_build_script_spawns_nothing(self, config, project):
        (project / "package.json").write_text(json.dumps({"scripts": {"dev": "vite"}}), encoding="utf-8")
        checker = BuildChecker(config)

        with patch.object(checker, "_run", AsyncMock()) as run:
            result = await checker.check(str(project))

        run.assert_not_awaited()
        assert result.is_valid
        assert len(result.warnings) == 1

    @pytest.mark.asyncio
    async def test_unreadable_manifest(self, config, tmp_path):
        result = await BuildChecker(config).check(str(tmp_path))

        assert result.errors[0].kind == ErrorKind.DEPENDENCY
        assert result.errors[0].message == "Cannot read package.json"

    @pytest.mark.asyncio
    async def test_successful_build(self, config, project):
        checker = BuildChecker(config)
        with patch.object(checker, "_run", AsyncMock(return_value=output(0, stdout="Compiled"))) as run:
            result = await checker.check(str(project))

        assert result.is_valid
        assert run.await_args.args[2] == config.build_timeout

    @pytest.mark.asyncio
    async def test_timeout(self, config, project):
        checker = BuildChecker(config)
        with patch.object(checker, "_run", AsyncMock(return_value=output(None, timed_out=True))):
            result = await checker.check(str(project))

        assert result.errors[0].file == "build process"
        assert result.errors[0].message == "Build process timed out after 5 seconds"

    def test_parse_missing_module(self, config):
        errors = BuildChecker(config).parse_output(
            "./src/App.jsx:3:1\n"
            "Module not found: Can't resolve './components/Hero'\n"
        )

        assert len(errors) == 1
        assert errors[0].kind == ErrorKind.DEPENDENCY
        assert errors[0].fixable
        assert errors[0].message == "Missing dependency: ./components/Hero"
        assert (errors[0].file, errors[0].line) == ("src/App.jsx", 3)

    def test_parse_located_error(self, config):
        errors = BuildChecker(config).parse_output("./src/App.jsx:10:5 Error: Unexpected token\n")

        assert errors[0].kind == ErrorKind.BUILD
        assert (errors[0].file, errors[0].line, errors[0].column) == ("src/App.jsx", 10, 5)
        assert errors[0].message == "Unexpected token"

    def test_noise_lines_are_skipped(self, config):
        errors = BuildChecker(config).parse_output(
            "Error: Cannot find module 'lightningcss'\n"
            "eslint warning: unused var\n"
        )
        assert errors == []

    def test_parse_location_on_its_own_line(self, config):
        errors = BuildChecker(config).parse_output(
            "Failed to compile.\n"
            "\n"
            "./src/app/page.tsx:5:3\n"
            "Type error: Property 'title' does not exist on type 'Props'.\n"
        )

        assert len(errors) == 1
        assert (errors[0].file, errors[0].line, errors[0].column) == ("src/app/page.tsx", 5, 3)
        assert errors[0].message == "Type error: Property 'title' does not exist on type 'Props'."

    def test_parse_location_without_message(self, config):
        errors = BuildChecker(config).parse_output("./src/app/page.tsx:5:3\n")

        assert (errors[0].file, errors[0].line) == ("src/app/page.tsx", 5)

    def test_parse_compile_header_alone(self, config):
        errors = BuildChecker(config).parse_output("Failed to compile.\n")
        assert [e.file for e in errors] == ["unknown"]

    @pytest.mark.asyncio
    async def test_vendor_only_failure_is_ignored(self, config, project):
        checker = BuildChecker(config)
        canned = output(1, stdout=(
            "Failed to compile.\n"
            "./src/default_components/Nav.tsx:3:1\n"
            "Type error: Cannot find name 'x'.\n"
        ))

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(project))

        assert result.is_valid

    @pytest.mark.asyncio
    async def test_unparseable_failure_is_synthesized(self, config, project):
        checker = BuildChecker(config)
        canned = output(1, stdout="compiled nothing", stderr="killed")

        with patch.object(checker, "_run", AsyncMock(return_value=canned)):
            result = await checker.check(str(project))

        message = result.errors[0].message
        assert message.startswith("Build failed with code 1.")
        assert "STDERR:\nkilled" in message
        assert "STDOUT:\ncompiled nothing" in message


# ============================================================================
# DEPENDENCY
# ============================================================================

class TestDependencyChecker:

    @pytest.mark.asyncio
    async def test_healthy_project(self, config, project):
        assert (await DependencyChecker(config).check(str(project))).is_valid

    @pytest.mark.asyncio
    async def test_missing_node_modules_suggests_install(self, config, project):
        (project / "node_modules").rmdir()
        result = await DependencyChecker(config).check(str(project))

        assert result.errors[0].fixable
        assert "npm install" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_missing_required_dependency(self, config, project):
        (project / "package.json").write_text(json.dumps({"dependencies": {"react": "18"}}), encoding="utf-8")
        result = await DependencyChecker(config).check(str(project))

        assert [e.message for e in result.errors] == ["Missing required dependency: react-dom"]

    @pytest.mark.asyncio
    async def test_tailwind_without_dependency_warns(self, config, project):
        write(project, "src/App.jsx", '<div className="flex p-4">hi</div>')
        result = await DependencyChecker(config).check(str(project))

        assert result.is_valid
        assert result.warnings[0].rule == "tailwind-dependency"

    @pytest.mark.asyncio
    async def test_unreadable_manifest(self, config, tmp_path):
        result = await DependencyChecker(config).check(str(tmp_path))
        assert result.errors[0].message.startswith("Cannot validate dependencies:")


# ============================================================================
# STYLE CONTRAST
# ============================================================================

class TestStyleContrastChecker:

    @pytest.mark.asyncio
    async def test_themed_button_with_text_color(self, config, project):
        write(project, "src/App.jsx", '<button className="btn-primary text-red-500">Go</button>')
        result = await StyleContrastChecker(config).check(str(project))

        assert len(result.errors) == 1
        assert result.errors[0].rule == "daisyui-button-contrast"
        assert result.errors[0].fixable
        assert result.errors[0].line == 1

    def test_white_text_without_dark_background(self, config):
        errors, warnings = StyleContrastChecker(config).scan_line("a.jsx", 1, 'className="btn text-white"')

        assert [e.rule for e in errors] == ["button-text-contrast"]
        assert [w.rule for w in warnings] == ["button-padding"]

    def test_dark_background_is_fine(self, config):
        errors, warnings = StyleContrastChecker(config).scan_line(
            "a.jsx", 1, 'className="btn bg-blue-600 text-white px-4 py-2"'
        )
        assert errors == [] and warnings == []

    def test_dangerous_pair(self, config):
        errors, _ = StyleContrastChecker(config).scan_line("a.jsx", 1, 'className="bg-white text-white"')
        assert [e.rule for e in errors] == ["color-contrast"]

    @pytest.mark.asyncio
    async def test_vendor_directory_is_ignored(self, config, project):
        write(project, "src/default_components/Nav.jsx", '<a className="btn-primary text-white">x</a>')
        assert (await StyleContrastChecker(config).check(str(project))).is_valid
