"""Modulator kernel utilities."""

from .common import filter_obj, has_id, has_key, issue, random_chars, sort_results_by_text
from .errors import (
    MalformedHabtmEntity,
    ModulatorError,
    ModuleNotRegistered,
    OperationNotAvailable,
    RegistryConflict,
    RemoteCallFailed,
    TypeNotRegistered,
)
from .messages import MESSAGES, message

__all__ = [
    "MESSAGES",
    "MalformedHabtmEntity",
    "ModulatorError",
    "ModuleNotRegistered",
    "OperationNotAvailable",
    "RegistryConflict",
    "RemoteCallFailed",
    "TypeNotRegistered",
    "filter_obj",
    "has_id",
    "has_key",
    "issue",
    "message",
    "random_chars",
    "sort_results_by_text",
]
