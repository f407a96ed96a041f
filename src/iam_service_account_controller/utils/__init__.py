"""Utility functions for the IAM ServiceAccount Controller."""

from .cache import ObjectCache, key_for_object, make_cache_key, split_key
from .context import get_context_dict, get_correlation_id, with_correlation_id
from .errors import (
    ConfigurationError,
    IAMError,
    InvalidKeyError,
    RoleNotFoundError,
    RoleNotManagedError,
    is_not_found,
    is_not_managed,
    sanitize_exception,
)
from .events import EventRecorder, KopfEventRecorder, emit_sync_failed, emit_sync_warning, emit_synced
from .rate_limit import default_controller_rate_limiter
from .workqueue import RateLimitingQueue

__all__ = [
    "ObjectCache",
    "key_for_object",
    "make_cache_key",
    "split_key",
    "get_context_dict",
    "get_correlation_id",
    "with_correlation_id",
    "ConfigurationError",
    "IAMError",
    "InvalidKeyError",
    "RoleNotFoundError",
    "RoleNotManagedError",
    "is_not_found",
    "is_not_managed",
    "sanitize_exception",
    "EventRecorder",
    "KopfEventRecorder",
    "emit_synced",
    "emit_sync_failed",
    "emit_sync_warning",
    "default_controller_rate_limiter",
    "RateLimitingQueue",
]
