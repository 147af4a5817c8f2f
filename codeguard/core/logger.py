"""
CodeGuard Centralized Logging Configuration

Provides:
- Environment-based log levels (dev=DEBUG, prod=INFO)
- Namespaced loggers under 'codeguard.*'
- Third-party log silencing
- Timing decorator for pipeline entry points

Usage:
    from codeguard.core.logger import get_logger

    logger = get_logger("locks")
    logger.info("[LOCKS] Acquired")
"""

import inspect
import logging
import os
import sys
import time
from functools import wraps

# ============================================================================
# ENVIRONMENT DETECTION
# ============================================================================

def is_dev_mode() -> bool:
    """Check if running in development mode."""
    env = os.getenv("CODEGUARD_ENV", "development").lower()
    return env in ("development", "dev", "local")


IS_DEV = is_dev_mode()

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

def setup_logging() -> logging.Logger:
    """
    Configure logging for CodeGuard.

    Call this once from the embedding application.

    Returns:
        Root CodeGuard logger
    """
    level = logging.DEBUG if IS_DEV else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    guard_logger = logging.getLogger("codeguard")
    guard_logger.setLevel(level)

    # Silence noisy third-party loggers
    noisy_loggers = [
        ("watchdog", logging.WARNING),
        ("watchdog.observers", logging.WARNING),
        ("asyncio", logging.WARNING),
    ]
    for logger_name, log_level in noisy_loggers:
        logging.getLogger(logger_name).setLevel(log_level)

    mode = "DEVELOPMENT" if IS_DEV else "PRODUCTION"
    guard_logger.info(f"Logging initialized ({mode} mode, level={logging.getLevelName(level)})")

    return guard_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a namespaced logger under codeguard.*.

    Args:
        name: Component name (e.g., "locks", "checkers", "autofix")
    """
    return logging.getLogger(f"codeguard.{name}")


def truncate_for_log(content: str, max_length: int = 200) -> str:
    """Truncate tool output before it goes into a log line."""
    if len(content) <= max_length:
        return content
    return content[:max_length] + "..."


# ============================================================================
# TIMING DECORATOR (Dev only)
# ============================================================================

def log_timing(logger: logging.Logger):
    """
    Decorator to log function or coroutine execution time (dev mode only).

    Example:
        @log_timing(logger)
        async def validate_project(self, project_dir):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            if not IS_DEV:
                return await func(*args, **kwargs)

            start = time.perf_counter()
            result = await func(*args, **kwargs)
            duration = (time.perf_counter() - start) * 1000
            logger.debug(f"{func.__name__} completed in {duration:.2f}ms")
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            if not IS_DEV:
                return func(*args, **kwargs)

            start = time.perf_counter()
            result = func(*args, **kwargs)
            duration = (time.perf_counter() - start) * 1000
            logger.debug(f"{func.__name__} completed in {duration:.2f}ms")
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
