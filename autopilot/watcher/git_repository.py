import os
import logging
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple
from urllib.parse import quote, urlsplit, urlunsplit

from git import Actor, Repo, InvalidGitRepositoryError, NoSuchPathError
from git.exc import GitCommandError

from ..errors import RepositoryAccessError, VcsOperationError
from ..models import ChangeOperation

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"

# Unmerged XY pairs from `git status --porcelain`
CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

WORKTREE_CODES: Dict[str, Tuple[str, ChangeOperation]] = {
    "M": ("WT_MODIFIED", ChangeOperation.MODIFIED),
    "D": ("WT_DELETED", ChangeOperation.DELETED),
    "T": ("WT_TYPECHANGE", ChangeOperation.TYPE_CHANGED),
    "R": ("WT_RENAMED", ChangeOperation.RENAMED),
}

INDEX_CODES: Dict[str, Tuple[str, ChangeOperation]] = {
    "A": ("INDEX_NEW", ChangeOperation.NEW),
    "M": ("INDEX_MODIFIED", ChangeOperation.MODIFIED),
    "D": ("INDEX_DELETED", ChangeOperation.DELETED),
    "R": ("INDEX_RENAMED", ChangeOperation.RENAMED),
    "C": ("INDEX_NEW", ChangeOperation.NEW),
    "T": ("INDEX_TYPECHANGE", ChangeOperation.TYPE_CHANGED),
}


class StatusEntry(NamedTuple):
    path: str
    status: str
    operation: ChangeOperation
    old_path: Optional[str] = None


def parse_status_code(code: str) -> Tuple[str, ChangeOperation]:
    """
    Map a two letter porcelain code (XY) to a status name and operation.
    Worktree changes win over index changes when both are present.
    """
    if code == "??":
        return "WT_NEW", ChangeOperation.NEW
    if code == "!!":
        return "IGNORED", ChangeOperation.IGNORED
    if code in CONFLICT_CODES:
        return "CONFLICTED", ChangeOperation.CONFLICTED

    index_code, worktree_code = code[0], code[1]
    if worktree_code in WORKTREE_CODES:
        return WORKTREE_CODES[worktree_code]
    if index_code in INDEX_CODES:
        return INDEX_CODES[index_code]
    return "UNKNOWN", ChangeOperation.UNKNOWN


def parse_porcelain(output: str) -> List[StatusEntry]:
    """
    Parse `git status --porcelain=v1 -z` output.
    Renamed and copied entries carry the original path as the next field.
    """
    fields = output.split("\0")
    entries = []
    i = 0
    while i < len(fields):
        field = fields[i]
        i += 1
        if len(field) < 4:
            continue

        code, path = field[:2], field[3:]
        old_path = None
        if (code[0] in ("R", "C") or code[1] in ("R", "C")) and i < len(fields):
            old_path = fields[i]
            i += 1

        status, operation = parse_status_code(code)
        entries.append(StatusEntry(path, status, operation, old_path))

    return entries


def parse_numstat(output: str) -> Tuple[int, int]:
    """Sum insertions and deletions of `git diff --numstat`; binary files count as zero"""
    insertions = 0
    deletions = 0
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        if parts[0].isdigit():
            insertions += int(parts[0])
        if parts[1].isdigit():
            deletions += int(parts[1])
    return insertions, deletions


def build_push_url(url: str, username: str, password: str) -> str:
    """Embed credentials into an http(s) remote URL. Other URLs are returned as-is."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return url

    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"{quote(username, safe='')}:{quote(password, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


class GitRepository:
    """
    One tracked working directory, backed by a GitPython Repo
    """

    def __init__(self, repo_path: str):
        self.repo_path = os.path.abspath(str(repo_path))
        self.repo = self._open_repository()

    def _open_repository(self) -> Repo:
        try:
            repo = Repo(self.repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise RepositoryAccessError(f"Not a valid git repository: {self.repo_path}") from e

        if repo.bare:
            raise RepositoryAccessError(f"Repository has no working tree: {self.repo_path}")

        logger.debug(f"Opened git repository: {self.repo_path}")
        return repo

    def __repr__(self) -> str:
        return f"GitRepository({self.repo_path!r})"

    @property
    def name(self) -> str:
        return Path(self.repo_path).name

    def relative_path(self, path: str) -> str:
        return Path(os.path.relpath(path, self.repo_path)).as_posix()

    def status_entries(self) -> List[StatusEntry]:
        """All non-clean entries, untracked files listed one by one"""
        try:
            output = self.repo.git.status("--porcelain=v1", "-z", "--untracked-files=all")
        except GitCommandError as e:
            raise RepositoryAccessError(f"Cannot read status of {self.repo_path}: {e}") from e
        return parse_porcelain(output)

    def file_status(self, path: str) -> str:
        """Live status name of a single path, CURRENT when it is clean"""
        try:
            output = self.repo.git.status(
                "--porcelain=v1", "-z", "--untracked-files=all", "--", path
            )
        except GitCommandError as e:
            raise RepositoryAccessError(f"Cannot read status of {path}: {e}") from e

        for entry in parse_porcelain(output):
            if entry.path == path:
                return entry.status
        return "CURRENT"

    def diff_stats(self) -> Tuple[int, int]:
        """Insertions and deletions between the index and the working tree"""
        try:
            output = self.repo.git.diff("--numstat", "-U0")
        except GitCommandError as e:
            raise RepositoryAccessError(f"Cannot diff working tree of {self.repo_path}: {e}") from e
        return parse_numstat(output)

    def current_branch(self) -> str:
        try:
            if self.repo.head.is_detached:
                return DEFAULT_BRANCH
            return self.repo.active_branch.name
        except (TypeError, ValueError):
            return DEFAULT_BRANCH

    def stage(self, path: str, is_deletion: bool = False) -> None:
        try:
            if is_deletion:
                self.repo.git.rm("--cached", "--ignore-unmatch", "--quiet", "--", path)
            else:
                self.repo.git.add("--", path)
        except GitCommandError as e:
            raise VcsOperationError(f"Failed to stage {path}: {e}") from e
        logger.debug(f"Staged {path} (deletion={is_deletion})")

    def unstage(self, path: str) -> None:
        try:
            self.repo.git.rm("--cached", "--ignore-unmatch", "--quiet", "--", path)
        except GitCommandError as e:
            raise VcsOperationError(f"Failed to unstage {path}: {e}") from e
        logger.debug(f"Removed {path} from index")

    def commit(self, message: str, description: str = "", author: Optional[Actor] = None) -> str:
        """Commit the index. The description becomes the commit body."""
        full_message = f"{message}\n\n{description}" if description else message
        try:
            commit = self.repo.index.commit(full_message, author=author, committer=author)
        except (GitCommandError, OSError, ValueError) as e:
            raise VcsOperationError(f"Failed to commit in {self.repo_path}: {e}") from e

        logger.info(f"Committed {commit.hexsha[:8]}: {message}")
        return commit.hexsha

    def push(
        self,
        remote_name: str,
        branch: str,
        username: str,
        password: str,
        timeout: Optional[float] = None,
    ) -> None:
        try:
            remote_url = self.repo.remote(remote_name).url
        except ValueError as e:
            raise VcsOperationError(f"Remote '{remote_name}' not found in {self.repo_path}") from e

        push_url = build_push_url(remote_url, username, password)
        target = push_url if push_url != remote_url else remote_name
        try:
            self.repo.git.push(target, f"HEAD:refs/heads/{branch}", kill_after_timeout=timeout)
        except GitCommandError as e:
            message = str(e)
            if password:
                message = message.replace(quote(password, safe=""), "*****").replace(password, "*****")
            raise VcsOperationError(f"Failed to push {branch} to {remote_name}: {message}") from e

        logger.info(f"Pushed {branch} to {remote_name}")
