"""Shared fixtures for the CodeGuard test suite."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from codeguard.core.config import GuardConfig
from codeguard.services.lock_manager import LockManager
from codeguard.services.snapshot_manager import SnapshotManager
from codeguard.validation.models import ValidationResult


@pytest.fixture
def config():
    """Config with short timeouts so failing tests fail fast."""
    return GuardConfig(
        lock_timeout=2.0,
        build_timeout=5.0,
        analyzer_timeout=5.0,
        install_timeout=5.0,
    )


@pytest.fixture
def locks():
    manager = LockManager()
    yield manager
    manager.clear_all()


@pytest.fixture
def snapshots():
    manager = SnapshotManager()
    yield manager
    manager.cleanup()


@pytest.fixture
def project(tmp_path):
    """A minimal React project tree with node_modules present."""
    manifest = {
        "name": "demo",
        "scripts": {"build": "next build"},
        "dependencies": {"react": "18.2.0", "react-dom": "18.2.0"},
    }
    (tmp_path / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "src").mkdir()
    return tmp_path


def write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def stub_checker(result: ValidationResult = None, error: Exception = None) -> Mock:
    """An adapter double whose check() returns result (or raises error)."""
    checker = Mock()
    if error is not None:
        checker.check = AsyncMock(side_effect=error)
    else:
        checker.check = AsyncMock(return_value=result or ValidationResult.ok())
    return checker
