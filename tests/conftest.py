"""Shared fixtures: an in-memory stand-in for GitRepository."""

import os
from pathlib import Path
from typing import List, Optional, Tuple

import pytest

from autopilot.errors import RepositoryAccessError, VcsOperationError
from autopilot.watcher.git_repository import StatusEntry, parse_status_code


class MockGitRepository:
    """
    Mirrors the GitRepository interface without touching disk.
    Committing clears the pending entries, like a real commit would.
    """

    def __init__(
        self,
        repo_path: str,
        entries: Optional[List[StatusEntry]] = None,
        stats: Tuple[int, int] = (0, 0),
        branch: str = "main",
    ):
        self.repo_path = os.path.abspath(repo_path)
        self.entries = list(entries or [])
        self.stats = stats
        self.branch = branch
        self.fail_on = set()
        self.calls = []
        self.commits = []
        self.pushes = []

    @property
    def name(self) -> str:
        return Path(self.repo_path).name

    def relative_path(self, path: str) -> str:
        return Path(os.path.relpath(path, self.repo_path)).as_posix()

    def set_changes(self, *changes: Tuple[str, str], stats: Tuple[int, int] = None):
        """changes are (path, porcelain code) pairs"""
        self.entries = []
        for path, code in changes:
            status, operation = parse_status_code(code)
            self.entries.append(StatusEntry(path, status, operation))
        if stats is not None:
            self.stats = stats

    def status_entries(self) -> List[StatusEntry]:
        if "status" in self.fail_on:
            raise RepositoryAccessError("status failed")
        return list(self.entries)

    def file_status(self, path: str) -> str:
        for entry in self.entries:
            if entry.path == path:
                return entry.status
        return "CURRENT"

    def diff_stats(self) -> Tuple[int, int]:
        if "diff" in self.fail_on:
            raise RepositoryAccessError("diff failed")
        return self.stats

    def current_branch(self) -> str:
        return self.branch

    def stage(self, path: str, is_deletion: bool = False) -> None:
        if "stage" in self.fail_on:
            raise VcsOperationError(f"Failed to stage {path}")
        self.calls.append(("stage", path, is_deletion))

    def unstage(self, path: str) -> None:
        self.calls.append(("unstage", path))

    def commit(self, message: str, description: str = "", author=None) -> str:
        if "commit" in self.fail_on:
            raise VcsOperationError("Failed to commit")
        self.commits.append((message, description, author))
        self.entries = []
        return f"{len(self.commits):040d}"

    def push(self, remote_name, branch, username, password, timeout=None) -> None:
        if "push" in self.fail_on:
            raise VcsOperationError("Failed to push")
        self.pushes.append((remote_name, branch, username, password, timeout))


@pytest.fixture
def mock_repo(tmp_path):
    return MockGitRepository(str(tmp_path / "repo"))


@pytest.fixture
def make_entry():
    def _make(path: str, code: str, old_path: str = None) -> StatusEntry:
        status, operation = parse_status_code(code)
        return StatusEntry(path, status, operation, old_path)
    return _make
