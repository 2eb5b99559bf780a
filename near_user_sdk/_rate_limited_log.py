"""
Thread-safe rate-limited logging utilities.

Fallback paths such as the zero block hash or an unreachable node can fire on
every transaction; this keeps them visible without flooding the log.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

# Configure logger
logger = logging.getLogger(__name__)

# Keys expire after ``_DEFAULT_INTERVAL`` seconds, at most 100 are tracked
_DEFAULT_INTERVAL = 60
_log_cache: TTLCache = TTLCache(maxsize=100, ttl=_DEFAULT_INTERVAL)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per interval, in a thread-safe manner.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)

    key = f"{level}:{message}"
    with _log_cache_lock:
        if key in _log_cache:
            return False
        log_method(message)
        _log_cache[key] = True  # Value doesn't matter, TTL handles expiry
    return True


def reset_rate_limited_log() -> None:
    """Forget every suppressed message (used by tests)."""
    with _log_cache_lock:
        _log_cache.clear()
