import os
import queue
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from watchdog.observers import Observer
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from ..errors import AutoPilotError, RepositoryAccessError
from ..models import EventKind, FileChangeRecord, RawEvent
from .classifier import ChangeClassifier
from .git_repository import GitRepository

logger = logging.getLogger(__name__)

# sentinel that wakes the consumer up on shutdown
_STOP = object()


def _decode(path) -> str:
    if isinstance(path, bytes):
        return os.fsdecode(path)
    return path


def to_raw_event(event: FileSystemEvent) -> RawEvent:
    """
    Translate a watchdog event. Moves become a modify of [src, dest];
    directory events and anything else become OTHER.
    """
    src_path = _decode(event.src_path)
    if event.is_directory:
        return RawEvent(paths=[src_path], kind=EventKind.OTHER)

    if event.event_type == EVENT_TYPE_CREATED:
        return RawEvent(paths=[src_path], kind=EventKind.CREATE)
    if event.event_type == EVENT_TYPE_MODIFIED:
        return RawEvent(paths=[src_path], kind=EventKind.MODIFY)
    if event.event_type == EVENT_TYPE_DELETED:
        return RawEvent(paths=[src_path], kind=EventKind.REMOVE)
    if event.event_type == EVENT_TYPE_MOVED:
        dest_path = _decode(getattr(event, "dest_path", "") or "")
        paths = [src_path, dest_path] if dest_path else [src_path]
        return RawEvent(paths=paths, kind=EventKind.MODIFY)
    return RawEvent(paths=[src_path], kind=EventKind.OTHER)


class ChangeEventHandler(FileSystemEventHandler):
    """
    Forwards file system events of one repository to the router queue
    """

    def __init__(self, repo_path: str, router: "EventRouter"):
        self.repo_path = repo_path
        self.router = router

    def on_any_event(self, event: FileSystemEvent):
        raw = to_raw_event(event)
        if raw.kind == EventKind.OTHER:
            return
        logger.debug(f"File {raw.kind.value}: {', '.join(raw.paths)}")
        self.router.submit(raw)


class EventRouter:
    """
    Single consumer between the watchers and the change processor.

    Events are handled one at a time in arrival order; classification and
    dispatch of one event (push included) finish before the next starts, so
    no two operations ever touch the same index concurrently.
    """

    def __init__(
        self,
        repositories: Sequence[GitRepository],
        processor,
        ignored_dirs: Sequence[str] = (".git",),
        classifier: Optional[ChangeClassifier] = None,
        maxsize: int = 1000,
        put_timeout: Optional[float] = 5.0,
    ):
        self.repositories = list(repositories)
        self.processor = processor
        self.ignored_dirs = list(ignored_dirs)
        self.classifier = classifier or ChangeClassifier()
        self.put_timeout = put_timeout
        self.poll_interval = 0.5
        self.events: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._stopped = threading.Event()

    def submit(self, event: RawEvent) -> bool:
        """
        Producer side. Blocks up to put_timeout when the queue is full, then
        drops the event.
        """
        try:
            self.events.put(event, timeout=self.put_timeout)
            return True
        except queue.Full:
            logger.warning(f"Event queue full, dropping {event.kind.value} event for {event.paths[0]}")
            return False

    def is_ignored(self, event: RawEvent) -> bool:
        for path in event.paths:
            for name in self.ignored_dirs:
                if f"/{name}" in path:
                    return True
        return False

    def match_repository(self, path: str) -> Optional[GitRepository]:
        for repo in self.repositories:
            if repo.repo_path in path:
                return repo
        return None

    def resolve_record(
        self, repo: GitRepository, path: str, changes: Dict[str, List[FileChangeRecord]]
    ) -> Optional[Tuple[str, FileChangeRecord]]:
        """
        Pick the record of the triggering file, or the only remaining one
        (a rename collapses the old path away).
        """
        key = repo.relative_path(path)
        if key in changes:
            return key, changes[key][0]
        if len(changes) == 1:
            only_key = next(iter(changes))
            return only_key, changes[only_key][0]
        return None

    def route(self, event: RawEvent) -> bool:
        """
        Process one event. Returns True when it reached the processor.
        """
        if event.kind not in (EventKind.CREATE, EventKind.MODIFY, EventKind.REMOVE):
            return False

        if self.is_ignored(event):
            logger.debug(f"Ignoring event under ignored directory: {event.paths[0]}")
            return False

        path = event.paths[0]
        repo = self.match_repository(path)
        if repo is None:
            logger.warning(f"No watched repository matches {path}")
            return False

        changes = self.classifier.classify(repo)
        if not changes:
            logger.info(f"No pending changes in {repo.name} for {path}")
            return False

        resolved = self.resolve_record(repo, path, changes)
        if resolved is None:
            logger.info(f"No change recorded for {path} among {len(changes)} changed paths")
            return False

        key, record = resolved
        full_path = str(Path(repo.repo_path) / key)
        short_name = Path(key).name
        self.processor.dispatch(repo, record, short_name, full_path)
        return True

    def run(self) -> None:
        """
        Handle queued events until stop() is called; events queued before
        the stop are still handled
        """
        logger.info(f"Router started for {len(self.repositories)} repositories")
        while True:
            try:
                event = self.events.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._stopped.is_set():
                    break
                continue
            try:
                if event is _STOP:
                    break
                self.handle(event)
            finally:
                self.events.task_done()
        logger.info("Router stopped")

    def handle(self, event: RawEvent) -> None:
        try:
            self.route(event)
        except RepositoryAccessError as e:
            logger.error(f"Repository access failed for {event.paths[0]}: {e}")
        except AutoPilotError as e:
            logger.error(f"Failed to process {event.kind.value} event for {event.paths[0]}: {e}")
        except Exception:
            logger.exception(f"Unexpected error processing event for {event.paths[0]}")

    def stop(self) -> None:
        self._stopped.set()
        try:
            self.events.put_nowait(_STOP)
        except queue.Full:
            pass


class WatcherManager:
    """
    Runs one watchdog observer per repository, all feeding a single router
    """

    def __init__(self, router: EventRouter):
        self.router = router
        self.observer = None
        self.is_running = False

    def start_watching(self) -> bool:
        if self.is_running:
            logger.warning("Already watching repositories")
            return True

        self.observer = Observer()
        for repo in self.router.repositories:
            handler = ChangeEventHandler(repo.repo_path, self.router)
            self.observer.schedule(handler, repo.repo_path, recursive=True)
            logger.info(f"Started watching repository: {repo.repo_path}")

        self.observer.start()
        self.is_running = True
        return True

    def stop_watching(self) -> bool:
        if not self.is_running:
            return True

        if self.observer:
            self.observer.stop()
            self.observer.join(timeout=5)

        self.observer = None
        self.is_running = False
        self.router.stop()
        logger.info("Stopped watching repositories")
        return True

    def run_forever(self) -> None:
        """Watch until interrupted; events are routed on the calling thread"""
        self.start_watching()
        try:
            self.router.run()
        except KeyboardInterrupt:
            logger.info("Watch session interrupted by user")
        finally:
            self.stop_watching()


def open_repositories(paths: Sequence[Path]) -> List[GitRepository]:
    """Open every configured repository, skipping the ones that fail"""
    repositories = []
    for path in paths:
        try:
            repositories.append(GitRepository(str(path)))
        except RepositoryAccessError as e:
            logger.error(f"Skipping repository {path}: {e}")
    return repositories
