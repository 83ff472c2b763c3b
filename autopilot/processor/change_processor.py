import logging
from typing import Optional

from git import Actor

from ..config.config import AutoPilotConfig
from ..errors import MissingCredentialsError
from ..models import ChangeOperation, Credentials, FileChangeRecord, Message
from ..watcher.git_repository import GitRepository
from .templates import render_message
from .variables import resolve_variables

logger = logging.getLogger(__name__)

class ChangeProcessor:
    """
    Turns a classified change into stage, commit and push on its repository
    """

    def __init__(
        self,
        config: AutoPilotConfig,
        credentials: Credentials,
        remote_name: str = "origin",
        push_timeout: Optional[float] = None,
    ):
        self.config = config
        self.credentials = credentials
        self.remote_name = remote_name
        self.push_timeout = push_timeout

    @staticmethod
    def template_kind(operation: ChangeOperation) -> str:
        if operation == ChangeOperation.NEW:
            return "create"
        if operation == ChangeOperation.RENAMED:
            return "rename"
        if operation == ChangeOperation.DELETED:
            return "remove"
        return "modify"

    def _author(self) -> Optional[Actor]:
        if self.credentials.has_identity():
            return Actor(self.credentials.username, self.credentials.email)
        return None

    def dispatch(
        self,
        repo: GitRepository,
        record: FileChangeRecord,
        short_name: str,
        full_path: str,
    ) -> str:
        """
        Stage, commit and push one change. Returns the new commit id.

        Raises VcsOperationError when a git operation fails and
        MissingCredentialsError when there is nothing to push with. In the
        latter case the local commit is kept and goes out with the next push.
        """
        kind = self.template_kind(record.operation)
        branch = repo.current_branch()
        relative_path = repo.relative_path(full_path)

        variables = resolve_variables(
            branch, short_name, full_path, record, self.config.user_variables()
        )
        message_template: Message = getattr(self.config.message, kind)
        description_template: Message = getattr(self.config.description, kind)
        message = render_message(message_template, variables)
        description = render_message(description_template, variables)

        logger.info(f"{kind.capitalize()} {relative_path} in {repo.name} ({record.status})")

        if kind == "rename":
            if record.old_path:
                repo.unstage(record.old_path)
            repo.stage(relative_path)
        elif kind == "remove":
            repo.stage(relative_path, is_deletion=True)
        else:
            repo.stage(relative_path)

        commit_id = repo.commit(message, description, author=self._author())

        if not self.credentials.has_login():
            logger.error(f"Skipping push of {commit_id[:8]}: no login credentials for {self.config.remote_host}")
            raise MissingCredentialsError(
                f"Cannot push {repo.name}/{branch}: no login credentials for {self.config.remote_host}"
            )

        repo.push(
            self.remote_name,
            branch,
            self.credentials.login_username,
            self.credentials.password,
            timeout=self.push_timeout,
        )
        return commit_id


# Factory function for dependency injection
def get_change_processor(session) -> ChangeProcessor:
    """
    Create a ChangeProcessor bound to a watch session
    """
    return ChangeProcessor(
        config=session.config,
        credentials=session.credentials,
        remote_name=session.settings.REMOTE_NAME,
        push_timeout=session.settings.PUSH_TIMEOUT,
    )
