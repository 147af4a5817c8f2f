"""
CodeGuard Services

Process-wide coordination shared by every validation entry point:
- lock_manager: per-directory async locks with auto-release
- snapshot_manager: pre-edit snapshots, corruption repair, watcher isolation
"""

from codeguard.services.lock_manager import LockManager, lock_manager
from codeguard.services.snapshot_manager import RestoreResult, SnapshotManager, snapshot_manager

__all__ = [
    "LockManager",
    "lock_manager",
    "RestoreResult",
    "SnapshotManager",
    "snapshot_manager",
]
