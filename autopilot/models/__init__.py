"""Data models shared across the pipeline."""

from .change import (
    ChangeOperation,
    ChangeSet,
    EventKind,
    FileChangeRecord,
    RawEvent,
    VariableMap,
)
from .templates import Credentials, Message, TemplateSet

__all__ = [
    "ChangeOperation",
    "ChangeSet",
    "Credentials",
    "EventKind",
    "FileChangeRecord",
    "Message",
    "RawEvent",
    "TemplateSet",
    "VariableMap",
]
