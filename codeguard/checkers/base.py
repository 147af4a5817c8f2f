"""
Base Checker Module

Provides the abstract base class for all analyzer adapters.
Each adapter wraps one external tool invocation and parses its text output
into the uniform ValidationResult model.

Architecture:
- BaseChecker: Abstract class that all adapters inherit
- CommandOutput: Captured exit code / stdout / stderr of one subprocess
- run_command(): asyncio subprocess runner with optional hard timeout
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from codeguard.checkers.files import is_vendor_path
from codeguard.core.config import GuardConfig, get_config
from codeguard.core.logger import get_logger
from codeguard.validation.models import ValidationResult

logger = get_logger("checkers")


@dataclass
class CommandOutput:
    """
    Result of one analyzer subprocess.

    Attributes:
        returncode: Exit code (None if the process was killed on timeout)
        stdout: Decoded standard output
        stderr: Decoded standard error
        timed_out: Whether the hard timeout fired
    """
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def combined(self) -> str:
        return f"{self.stdout}\n{self.stderr}"


async def run_command(
    cmd: List[str],
    cwd: str,
    timeout: Optional[float] = None,
) -> CommandOutput:
    """
    Spawn cmd in cwd and capture its output.

    On timeout the process is killed and a CommandOutput with
    timed_out=True is returned. Spawn failures (tool not installed,
    bad cwd) propagate as OSError for the adapter to handle.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        stdout, stderr = await process.communicate()
        return CommandOutput(
            returncode=None,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            timed_out=True,
        )

    return CommandOutput(
        returncode=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


class BaseChecker(ABC):
    """
    Abstract base class for analyzer adapters.

    All adapters must implement:
    - name: Unique identifier for the adapter
    - check(): Run the tool and return a ValidationResult

    Adapters receive a GuardConfig at construction so tests can shrink
    timeouts or swap the vendor marker.
    """

    def __init__(self, config: Optional[GuardConfig] = None):
        self.config = config or get_config()

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this adapter (e.g., 'typecheck', 'lint')."""
        pass

    @abstractmethod
    async def check(self, project_dir: str) -> ValidationResult:
        """Run the analysis against a project directory."""
        pass

    async def _run(self, cmd: List[str], project_dir: str, timeout: Optional[float] = None) -> CommandOutput:
        logger.debug(f"[{self.name}] Running: {' '.join(cmd)}")
        return await run_command(cmd, project_dir, timeout)

    def is_excluded(self, file_path: str) -> bool:
        """True if the path points into the vendor/fixture directory."""
        return is_vendor_path(file_path, self.config.excluded_marker)

    @staticmethod
    def read_manifest(project_dir: str) -> Dict[str, Any]:
        """Load package.json; raises OSError / ValueError if unreadable."""
        with open(Path(project_dir) / "package.json", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def relative_path(project_dir: str, file_path: str) -> str:
        """Express a tool-reported path relative to the project root."""
        path = Path(file_path)
        if path.is_absolute():
            try:
                return path.resolve().relative_to(Path(project_dir).resolve()).as_posix()
            except ValueError:
                return path.as_posix()
        return file_path.replace("\\", "/")
