"""
Persisted configuration for commit message and description templates.

The configuration lives as JSON in the dot directory and holds:
- message: commit summary templates per operation (create/modify/remove/rename)
- description: commit body templates per operation
- variables: user variables available to the templates
- repos: working directories to watch
- ignored_dirs: directory names whose events are discarded
- git_credentials: optional credentials that win over the credential stores
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..errors import ConfigError
from ..models import Credentials, Message, TemplateSet
from .credentials import get_home_dir

logger = logging.getLogger(__name__)

SYSTEM_VARIABLE_DEFAULTS = {
    "INSERTIONS": "insertions",
    "DELETIONS": "deletions",
    "LINES_MODIFIED": "lines_modified",
    "BRANCH": "branch",
    "STATUS": "status",
    "FILE_NAME_SHORT": "file_name_short",
    "FILE_NAME_FULL": "file_name_full",
    "FILE_OLD_NAME": "file_old_name",
}


def default_variables() -> Dict[str, Any]:
    variables: Dict[str, Any] = dict(SYSTEM_VARIABLE_DEFAULTS)
    variables["example_var"] = "example_value"
    return variables


def default_message_templates() -> TemplateSet:
    return TemplateSet(
        create=Message(comment="New File Created: {{FILE_NAME_SHORT}}"),
        modify=Message(comment="File Modified: {{FILE_NAME_SHORT}}"),
        remove=Message(comment="File Removed: {{FILE_NAME_SHORT}}"),
        rename=Message(comment="File Renamed: {{FILE_OLD_NAME}} -> {{FILE_NAME_SHORT}}"),
    )


def _description(title: str) -> Message:
    return Message(comment=(
        f"{title}\n"
        "File short name: {{FILE_NAME_SHORT}}\n"
        "File full name: {{FILE_NAME_FULL}}\n"
        "No. of lines inserted: {{INSERTIONS}}\n"
        "No. of lines deleted: {{DELETIONS}}\n"
        "No. of lines modified: {{LINES_MODIFIED}}"
    ))


def default_description_templates() -> TemplateSet:
    rename = _description("File Renamed")
    rename = rename.model_copy(update={
        "comment": rename.comment + "\nFile old name: {{FILE_OLD_NAME}}"
    })
    return TemplateSet(
        create=_description("New File Created"),
        modify=_description("File Modified"),
        remove=_description("File Removed"),
        rename=rename,
    )


class AutoPilotConfig(BaseModel):
    message: TemplateSet = Field(default_factory=default_message_templates)
    description: TemplateSet = Field(default_factory=default_description_templates)
    variables: Dict[str, Any] = Field(default_factory=default_variables)
    repos: List[Path] = Field(default_factory=list)
    ignored_dirs: List[str] = Field(default_factory=lambda: [".git"])
    git_credentials: Optional[Credentials] = None
    remote_host: str = "github.com"

    @classmethod
    def load_from_file(cls, path: Path) -> "AutoPilotConfig":
        try:
            contents = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"File operation error: {e}") from e

        try:
            config = cls.model_validate_json(contents)
        except ValidationError as e:
            raise ConfigError(f"Failed to parse configuration JSON: {e}") from e

        config._fill_missing_rename_templates()
        return config

    def _fill_missing_rename_templates(self) -> None:
        # configs written before rename templates existed carry empty ones
        if not self.message.rename.comment:
            self.message.rename = default_message_templates().rename
        if not self.description.rename.comment:
            self.description.rename = default_description_templates().rename

    def save_to_file(self, path: Path) -> None:
        try:
            Path(path).write_text(self.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"File operation error: {e}") from e

    def merge(self, other: "AutoPilotConfig") -> None:
        """
        Update this configuration with the non-empty parts of another one
        """
        for kind in ("create", "modify", "remove", "rename"):
            theirs = getattr(other.message, kind)
            if theirs.comment:
                setattr(self.message, kind, theirs)
            theirs = getattr(other.description, kind)
            if theirs.comment:
                setattr(self.description, kind, theirs)

        self.variables.update(other.variables)
        self.repos.extend(other.repos)
        for name in other.ignored_dirs:
            if name not in self.ignored_dirs:
                self.ignored_dirs.append(name)
        if other.git_credentials is not None:
            self.git_credentials = other.git_credentials

    def user_variables(self) -> Dict[str, str]:
        """Custom variables with a string value; anything else is dropped"""
        return {k: v for k, v in self.variables.items() if isinstance(v, str)}


class DotDirectory:
    """
    Location of the persisted configuration under the home directory
    """

    def __init__(self, dot_dir: str = ".config/git-auto-pilot",
                 file_name: str = "config.json", home_dir: Optional[Path] = None):
        home = Path(home_dir) if home_dir else get_home_dir()
        self.dir_location = home / dot_dir
        self.file_location = self.dir_location / file_name

    def ensure(self) -> None:
        """Create the dot directory and a default configuration when missing"""
        try:
            self.dir_location.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create dot directory: {self.dir_location}") from e

        if not self.file_location.exists():
            logger.info(f"Writing default configuration to {self.file_location}")
            AutoPilotConfig().save_to_file(self.file_location)

    def load(self) -> AutoPilotConfig:
        self.ensure()
        return AutoPilotConfig.load_from_file(self.file_location)

    def save(self, config: AutoPilotConfig) -> None:
        self.ensure()
        config.save_to_file(self.file_location)
