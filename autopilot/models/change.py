from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

class ChangeOperation(str, Enum):
    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    TYPE_CHANGED = "type_changed"
    CONFLICTED = "conflicted"
    IGNORED = "ignored"
    UNKNOWN = "unknown"

class EventKind(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
    OTHER = "other"

class FileChangeRecord(BaseModel):
    """
    Line statistics and classified operation for one changed path.
    lines_modified is always lines_added + lines_deleted.
    """
    model_config = ConfigDict(frozen=True)

    lines_added: int = 0
    lines_deleted: int = 0
    lines_modified: int = 0
    operation: ChangeOperation = ChangeOperation.UNKNOWN
    status: str = "UNKNOWN"
    old_path: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def fill_lines_modified(cls, data):
        if isinstance(data, dict):
            added = data.get("lines_added", 0)
            deleted = data.get("lines_deleted", 0)
            if added < 0 or deleted < 0:
                raise ValueError("line counts must not be negative")
            expected = added + deleted
            given = data.get("lines_modified")
            if given is not None and given != expected:
                raise ValueError(
                    f"lines_modified ({given}) must equal lines_added + lines_deleted ({expected})"
                )
            data = {**data, "lines_modified": expected}
        return data

    def same_stats(self, other: "FileChangeRecord") -> bool:
        return (
            self.lines_added == other.lines_added
            and self.lines_deleted == other.lines_deleted
            and self.lines_modified == other.lines_modified
        )

# path (relative to the repository root) -> records from one classification pass
ChangeSet = Dict[str, List[FileChangeRecord]]

# placeholder name -> rendered value
VariableMap = Dict[str, str]

class RawEvent(BaseModel):
    paths: List[str] = Field(min_length=1)
    kind: EventKind
