"""
Turns the working tree state of a repository into a ChangeSet.

Diff statistics always cover the whole working tree (index vs. workdir), not
the single path they are recorded against. When several files are dirty at
the same time, every record carries the same totals, so per-path numbers are
only exact when exactly one file changed.

Rename detection is a heuristic: when the ChangeSet holds exactly two paths,
one deleted from the working tree and the other new in it, and both records
carry identical line statistics, the pair is collapsed into one renamed
record. Two unrelated changes with coincidentally equal statistics are
reported as a rename, and with three or more dirty paths no rename is
detected at all.
"""

import logging
from typing import Dict, List, Optional

from ..errors import RepositoryAccessError
from ..models import ChangeOperation, ChangeSet, FileChangeRecord
from .git_repository import GitRepository

logger = logging.getLogger(__name__)

WT_DELETED = "WT_DELETED"
WT_NEW = "WT_NEW"


class ChangeClassifier:
    """
    Detects and classifies the pending changes of a repository
    """

    def classify(self, repo: GitRepository) -> ChangeSet:
        """
        Build a fresh ChangeSet for the repository.
        Raises RepositoryAccessError when the status cannot be listed.
        """
        entries = repo.status_entries()

        changes: Dict[str, List[FileChangeRecord]] = {}
        for entry in entries:
            if not entry.status or entry.operation == ChangeOperation.IGNORED:
                continue

            logger.debug(f"Processing path: {entry.path} - Status: {entry.status}")

            try:
                insertions, deletions = repo.diff_stats()
            except RepositoryAccessError as e:
                # next triggering event will try again
                logger.debug(f"Error getting diff for path {entry.path}: {e}")
                continue

            record = FileChangeRecord(
                lines_added=insertions,
                lines_deleted=deletions,
                operation=entry.operation,
                status=entry.status,
                old_path=entry.old_path,
            )
            changes.setdefault(entry.path, []).append(record)

        if len(changes) == 2:
            renamed = self.collapse_rename(repo, changes)
            if renamed is not None:
                changes = renamed

        logger.debug(f"Repository changes found: {len(changes)}")
        return changes

    def collapse_rename(self, repo: GitRepository, changes: ChangeSet) -> Optional[ChangeSet]:
        """
        Merge a deleted/new pair with equal statistics into one renamed record.
        Returns None when the pair does not look like a rename.
        """
        if len(changes) != 2:
            return None

        first_path, second_path = list(changes.keys())
        first = changes[first_path][0]
        second = changes[second_path][0]

        logger.debug("Checking if files are a result of a rename operation")

        first_status = repo.file_status(first_path)
        second_status = repo.file_status(second_path)

        if first_status == WT_DELETED and second_status == WT_NEW:
            old_path, new_path, stats = first_path, second_path, first
        elif first_status == WT_NEW and second_status == WT_DELETED:
            old_path, new_path, stats = second_path, first_path, second
        else:
            return None

        if not first.same_stats(second):
            return None

        logger.debug(f"Changes are the result of rename operation: {old_path} -> {new_path}")
        return {
            new_path: [
                FileChangeRecord(
                    lines_added=stats.lines_added,
                    lines_deleted=stats.lines_deleted,
                    operation=ChangeOperation.RENAMED,
                    status="WT_RENAMED",
                    old_path=old_path,
                )
            ]
        }
