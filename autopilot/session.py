import logging
from typing import Optional

from .config.config import AutoPilotConfig, DotDirectory
from .config.credentials import CredentialResolver
from .config.settings import Settings
from .errors import CredentialSourceError
from .models import Credentials
from .processor.change_processor import get_change_processor
from .watcher.file_watcher import EventRouter, WatcherManager, open_repositories

logger = logging.getLogger(__name__)


class WatchSession:
    """
    Everything one watch session needs, loaded once and read-only afterwards
    """

    def __init__(self, settings: Settings, config: AutoPilotConfig, credentials: Credentials):
        self.settings = settings
        self.config = config
        self.credentials = credentials

    @classmethod
    def bootstrap(
        cls,
        settings: Settings,
        dot_dir: Optional[DotDirectory] = None,
        resolver: Optional[CredentialResolver] = None,
    ) -> "WatchSession":
        """
        Load the configuration and resolve credentials.

        A missing identity (name/email) is fatal. Missing login credentials
        only disable pushing: each push then fails on its own.
        """
        dot_dir = dot_dir or DotDirectory(settings.DOT_DIR, settings.CONFIG_FILE_NAME)
        config = dot_dir.load()

        resolver = resolver or CredentialResolver(domain=config.remote_host)
        credentials = resolver.fill_identity(config.git_credentials or Credentials())
        try:
            credentials = resolver.fill_login(credentials)
        except CredentialSourceError as e:
            logger.warning(f"Pushing is disabled: {e}")

        return cls(settings, config, credentials)

    def build_router(self) -> EventRouter:
        repositories = open_repositories(self.config.repos)
        return EventRouter(
            repositories,
            get_change_processor(self),
            ignored_dirs=self.config.ignored_dirs,
            maxsize=self.settings.QUEUE_MAXSIZE,
            put_timeout=self.settings.QUEUE_PUT_TIMEOUT,
        )

    def watch(self) -> None:
        router = self.build_router()
        if not router.repositories:
            logger.warning("No repositories to watch; add one with `git-autopilot add-repo PATH`")
            return
        WatcherManager(router).run_forever()
