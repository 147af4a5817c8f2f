"""
Snapshot Manager Service

Protects a project tree while an isolated operation (validation, auto-fix,
template scaffolding) runs against it:

1. Pauses any live watchdog observer on the directory so watcher callbacks
   do not react to half-written files.
2. Captures the text content of matching files.
3. If the operation raises, writes back only the files that changed AND no
   longer look structurally sound. Files that changed but still balance are
   treated as legitimate edits by the generation agent and left alone.
4. Resumes the observer with the callbacks it had before.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from codeguard.core.config import get_config
from codeguard.core.errors import SnapshotError
from codeguard.core.logger import get_logger, log_timing

logger = get_logger("snapshot")

T = TypeVar("T")

WatchCallback = Callable[[FileSystemEvent], None]

MARKUP_SUFFIXES = {".html", ".htm", ".xml", ".svg", ".vue"}

VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr", "!doctype",
}

BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}

# Strings and comments are removed before counting brackets. A line comment
# must start a line or follow whitespace or one of ;{}(, so URLs such as
# https://example.com in JSX text are not mistaken for comments.
_STRINGS_AND_COMMENTS = re.compile(
    r'"(?:\\.|[^"\\\n])*"'
    r"|'(?:\\.|[^'\\\n])*'"
    r"|`(?:\\.|[^`\\])*`"
    r"|(?<![^\s;{}(,])//[^\n]*"
    r"|/\*.*?\*/",
    re.DOTALL,
)
_OPEN_TAG = re.compile(r"<(!?[A-Za-z][\w:.-]*)(?:\s[^<>]*)?>")
_CLOSE_TAG = re.compile(r"</([A-Za-z][\w:.-]*)\s*>")


# ============================================================================
# STRUCTURAL HEURISTICS
# ============================================================================

def brackets_balanced(content: str) -> bool:
    """True if (), [] and {} pair up once strings and comments are ignored."""
    stripped = _STRINGS_AND_COMMENTS.sub("", content)
    stack: List[str] = []
    for char in stripped:
        if char in "([{":
            stack.append(char)
        elif char in BRACKET_PAIRS:
            if not stack or stack.pop() != BRACKET_PAIRS[char]:
                return False
    return not stack


def tags_balanced(content: str) -> bool:
    """True if the markup has as many closing tags as non-void opening tags."""
    opened = 0
    for match in _OPEN_TAG.finditer(content):
        if match.group(0).endswith("/>"):
            continue
        if match.group(1).lower() in VOID_ELEMENTS:
            continue
        opened += 1
    closed = len(_CLOSE_TAG.findall(content))
    return opened == closed


def is_structurally_sound(content: str, path: str) -> bool:
    """Syntax heuristic used to decide whether a changed file is corrupted."""
    if Path(path).suffix.lower() in MARKUP_SUFFIXES:
        return tags_balanced(content)
    return brackets_balanced(content)


# ============================================================================
# FILE WATCH COLLABORATOR
# ============================================================================

class _CallbackHandler(FileSystemEventHandler):
    """Fans watchdog events out to registered callbacks."""

    def __init__(self, callbacks: List[WatchCallback]):
        self.callbacks = callbacks

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory:
            return
        for callback in self.callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"[SNAPSHOT] Watch callback failed for {event.src_path}: {e}")


@dataclass
class WatcherRegistration:
    """A recursive watchdog observer plus the callbacks attached to it."""
    directory: str
    callbacks: List[WatchCallback] = field(default_factory=list)
    observer: Optional[Observer] = None

    def start(self) -> None:
        self.observer = Observer()
        self.observer.schedule(_CallbackHandler(self.callbacks), self.directory, recursive=True)
        self.observer.start()

    def stop(self) -> None:
        if self.observer:
            self.observer.stop()
            self.observer.join(timeout=2)
            self.observer = None

    @property
    def active(self) -> bool:
        return self.observer is not None and self.observer.is_alive()


@dataclass
class RestoreResult:
    """Files written back from the snapshot, and files that could not be."""
    restored: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


# ============================================================================
# SNAPSHOT MANAGER
# ============================================================================

class SnapshotManager:
    _instance = None

    def __init__(self):
        # directory -> active watcher
        self._watchers: Dict[str, WatcherRegistration] = {}
        # directory -> callbacks of a watcher closed by disable_watchers
        self._suspended: Dict[str, List[WatchCallback]] = {}
        # directory -> {relative path: content}
        self._snapshots: Dict[str, Dict[str, str]] = {}

    @classmethod
    def get_instance(cls) -> "SnapshotManager":
        if cls._instance is None:
            cls._instance = SnapshotManager()
        return cls._instance

    @staticmethod
    def _key(directory: str) -> str:
        return str(Path(directory).resolve())

    # ------------------------------------------------------------------
    # Watchers
    # ------------------------------------------------------------------

    def watch(self, directory: str, callback: WatchCallback) -> None:
        """Attach a callback to the recursive watcher for a directory."""
        key = self._key(directory)
        if key in self._suspended:
            self._suspended[key].append(callback)
            return

        registration = self._watchers.get(key)
        if registration is None:
            registration = WatcherRegistration(directory=key)
            self._watchers[key] = registration
            registration.callbacks.append(callback)
            registration.start()
            logger.info(f"[SNAPSHOT] Watching {key}")
        else:
            registration.callbacks.append(callback)

    def is_watching(self, directory: str) -> bool:
        registration = self._watchers.get(self._key(directory))
        return registration is not None and registration.active

    def disable_watchers(self, directory: str) -> None:
        """Close the watcher for a directory, remembering its callbacks."""
        key = self._key(directory)
        registration = self._watchers.pop(key, None)
        if registration is None:
            return
        registration.stop()
        self._suspended[key] = list(registration.callbacks)
        logger.info(f"[SNAPSHOT] Paused watcher on {key} ({len(registration.callbacks)} callbacks)")

    def enable_watchers(self, directory: str) -> None:
        """Recreate a watcher paused by disable_watchers."""
        key = self._key(directory)
        callbacks = self._suspended.pop(key, None)
        if callbacks is None:
            return
        registration = WatcherRegistration(directory=key, callbacks=callbacks)
        registration.start()
        self._watchers[key] = registration
        logger.info(f"[SNAPSHOT] Resumed watcher on {key}")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    @log_timing(logger)
    def create_snapshot(self, directory: str, globs: Optional[List[str]] = None) -> int:
        """
        Capture text content of every file matching the globs.

        Replaces any earlier snapshot of the same directory.

        Returns:
            Number of files captured
        """
        root = Path(directory).resolve()
        if not root.is_dir():
            raise SnapshotError(f"Not a directory: {directory}")

        patterns = globs if globs is not None else get_config().snapshot_globs
        captured: Dict[str, str] = {}

        for pattern in patterns:
            for file_path in root.glob(pattern):
                if not file_path.is_file() or "node_modules" in file_path.parts:
                    continue
                relative = file_path.relative_to(root).as_posix()
                if relative in captured:
                    continue
                try:
                    captured[relative] = file_path.read_text(encoding="utf-8")
                except (UnicodeDecodeError, OSError) as e:
                    logger.debug(f"[SNAPSHOT] Skipping {relative}: {e}")

        self._snapshots[str(root)] = captured
        logger.info(f"[SNAPSHOT] Captured {len(captured)} files in {root}")
        return len(captured)

    def get_snapshot(self, directory: str) -> Dict[str, str]:
        return dict(self._snapshots.get(self._key(directory), {}))

    @log_timing(logger)
    def restore_from_snapshot(self, directory: str) -> RestoreResult:
        """Write back snapshot content for files that changed into broken syntax."""
        root = Path(directory).resolve()
        snapshot = self._snapshots.get(str(root), {})
        result = RestoreResult()

        for relative, original in snapshot.items():
            file_path = root / relative
            try:
                current = file_path.read_text(encoding="utf-8")
            except FileNotFoundError:
                current = None
            except (UnicodeDecodeError, OSError) as e:
                logger.warning(f"[SNAPSHOT] Cannot read {relative}: {e}")
                result.failed.append(relative)
                continue

            if current == original:
                continue
            if current is not None and is_structurally_sound(current, relative):
                # Legitimate edit, keep it
                continue

            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_text(original, encoding="utf-8")
                result.restored.append(relative)
                logger.warning(f"[SNAPSHOT] Restored corrupted file {relative}")
            except OSError as e:
                logger.error(f"[SNAPSHOT] Failed to restore {relative}: {e}")
                result.failed.append(relative)

        return result

    async def with_template_isolation(
        self,
        directory: str,
        operation: Callable[[], Awaitable[T]],
        create_snapshot: bool = True,
        restore_on_error: bool = True,
        globs: Optional[List[str]] = None,
    ) -> T:
        """
        Run operation with watchers paused and a safety snapshot in place.

        The operation's exception is re-raised after any restore.
        """
        self.disable_watchers(directory)
        try:
            if create_snapshot:
                self.create_snapshot(directory, globs)
            try:
                return await operation()
            except Exception:
                if restore_on_error and create_snapshot:
                    restored = self.restore_from_snapshot(directory)
                    logger.warning(
                        f"[SNAPSHOT] Operation failed; restored {len(restored.restored)} files "
                        f"({len(restored.failed)} failed)"
                    )
                raise
        finally:
            self.enable_watchers(directory)

    def cleanup(self) -> None:
        """Stop all watchers and drop all snapshots."""
        for registration in self._watchers.values():
            registration.stop()
        self._watchers.clear()
        self._suspended.clear()
        self._snapshots.clear()
        logger.info("[SNAPSHOT] Cleaned up")


# Global instance
snapshot_manager = SnapshotManager.get_instance()
