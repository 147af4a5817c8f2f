from codeguard.core.config import GuardConfig, get_config, load_config
from codeguard.core.errors import CodeGuardError, LockTimeoutError, SnapshotError
from codeguard.core.logger import get_logger, setup_logging

__all__ = [
    "GuardConfig",
    "get_config",
    "load_config",
    "CodeGuardError",
    "LockTimeoutError",
    "SnapshotError",
    "get_logger",
    "setup_logging",
]
