import logging
from typing import Any, Dict, Mapping, Optional

from ..models import ChangeOperation, FileChangeRecord, VariableMap
from .templates import render

logger = logging.getLogger(__name__)

SYSTEM_VARIABLES = (
    "INSERTIONS",
    "DELETIONS",
    "LINES_MODIFIED",
    "BRANCH",
    "STATUS",
    "FILE_NAME_SHORT",
    "FILE_NAME_FULL",
    "FILE_OLD_NAME",
)


def resolve_variables(
    branch: str,
    short_name: str,
    full_path: str,
    record: FileChangeRecord,
    user_variables: Optional[Mapping[str, Any]] = None,
) -> VariableMap:
    """
    Build the variable map used to render commit templates for one change.

    System variables are computed from the change and always take precedence
    over user-defined variables with the same name. User variables whose value
    is not a string are dropped.
    """
    if record.operation == ChangeOperation.RENAMED and record.old_path:
        old_name = record.old_path
    else:
        old_name = short_name

    variables: Dict[str, str] = {
        "INSERTIONS": str(record.lines_added),
        "DELETIONS": str(record.lines_deleted),
        "LINES_MODIFIED": str(record.lines_modified),
        "BRANCH": branch,
        "STATUS": record.status,
        "FILE_NAME_SHORT": short_name,
        "FILE_NAME_FULL": full_path,
        "FILE_OLD_NAME": old_name,
    }

    # single normalization pass per key, never recursive
    for key in SYSTEM_VARIABLES:
        variables[key] = render("{{" + key + "}}", variables)

    for key, value in (user_variables or {}).items():
        if key in variables:
            continue
        if not isinstance(value, str):
            logger.debug(f"Ignoring non-string variable {key}={value!r}")
            continue
        variables[key] = value

    return variables
