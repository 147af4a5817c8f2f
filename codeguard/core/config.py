"""
CodeGuard Configuration

Settings for the validation pipeline. Defaults are sensible for a
React/Next-style project; every field can be overridden through a
CODEGUARD_* environment variable (a .env file is loaded first).

Usage:
    from codeguard.core.config import get_config

    config = get_config()
    config.build_timeout  # 240.0
"""

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


ENV_PREFIX = "CODEGUARD_"


class GuardConfig(BaseModel):
    """Configuration for the validation pipeline."""

    # Timeouts (seconds)
    lock_timeout: float = 300.0
    build_timeout: float = 240.0
    analyzer_timeout: Optional[float] = Field(
        default=180.0,
        description="Timeout for type-check and lint subprocesses; None waits forever"
    )
    install_timeout: float = 600.0

    # Vendor/fixture directory whose diagnostics are never reported
    excluded_marker: str = "default_components"

    # Source discovery
    source_roots: List[str] = Field(default_factory=lambda: ["src"])
    source_extensions: List[str] = Field(default_factory=lambda: [
        ".js", ".jsx", ".ts", ".tsx"
    ])
    lint_pattern: str = "**/*.{js,jsx,ts,tsx}"

    # Snapshot scope (glob patterns relative to the project root)
    snapshot_globs: List[str] = Field(default_factory=lambda: [
        "src/**/*.js", "src/**/*.jsx", "src/**/*.ts", "src/**/*.tsx",
        "src/**/*.css", "*.html", "src/**/*.html",
    ])

    # Dependency checks
    required_dependencies: List[str] = Field(default_factory=lambda: [
        "react", "react-dom"
    ])
    dependency_sample_size: int = 10

    # Classification
    dominant_pattern_threshold: float = 0.6


def _env_overrides() -> Dict[str, Any]:
    """Collect CODEGUARD_* variables that name a config field."""
    overrides: Dict[str, Any] = {}
    for name, field in GuardConfig.model_fields.items():
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if field.annotation in (List[str],):
            overrides[name] = [item.strip() for item in raw.split(",") if item.strip()]
        elif raw.lower() == "none" and name == "analyzer_timeout":
            overrides[name] = None
        else:
            overrides[name] = raw
    return overrides


def load_config() -> GuardConfig:
    """Build a fresh config from defaults, .env and the environment."""
    load_dotenv()
    return GuardConfig(**_env_overrides())


_config: Optional[GuardConfig] = None


def get_config() -> GuardConfig:
    """Process-wide config, loaded on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
