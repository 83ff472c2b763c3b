"""Unit tests for ChangeProcessor."""

import os
from types import SimpleNamespace

import pytest
from git import Actor

from autopilot.config.config import AutoPilotConfig
from autopilot.errors import MissingCredentialsError, VcsOperationError
from autopilot.models import ChangeOperation, Credentials, FileChangeRecord, Message
from autopilot.processor.change_processor import ChangeProcessor, get_change_processor

FULL_CREDENTIALS = Credentials(
    username="Bob Builder", email="bob@example.com", login_username="bob", password="s3cret"
)


def _full_path(repo, relative):
    return os.path.join(repo.repo_path, relative)


class TestTemplateKind:
    """Test cases for the operation to template mapping."""

    @pytest.mark.parametrize(
        "operation,kind",
        [
            (ChangeOperation.NEW, "create"),
            (ChangeOperation.RENAMED, "rename"),
            (ChangeOperation.DELETED, "remove"),
            (ChangeOperation.MODIFIED, "modify"),
            (ChangeOperation.TYPE_CHANGED, "modify"),
            (ChangeOperation.CONFLICTED, "modify"),
            (ChangeOperation.UNKNOWN, "modify"),
        ],
    )
    def test_mapping(self, operation, kind):
        assert ChangeProcessor.template_kind(operation) == kind


class TestChangeProcessor:
    """Test cases for ChangeProcessor.dispatch()."""

    def setup_method(self):
        self.config = AutoPilotConfig()
        self.processor = ChangeProcessor(self.config, FULL_CREDENTIALS, push_timeout=30)

    def test_create_stages_commits_and_pushes(self, mock_repo):
        record = FileChangeRecord(lines_added=5, operation=ChangeOperation.NEW, status="WT_NEW")

        commit_id = self.processor.dispatch(mock_repo, record, "a.txt", _full_path(mock_repo, "src/a.txt"))

        assert len(commit_id) == 40
        assert mock_repo.calls == [("stage", "src/a.txt", False)]
        message, description, author = mock_repo.commits[0]
        assert message == "New File Created: a.txt"
        assert "No. of lines inserted: 5" in description
        assert "No. of lines modified: 5" in description
        assert f"File full name: {_full_path(mock_repo, 'src/a.txt')}" in description
        assert author == Actor("Bob Builder", "bob@example.com")
        assert mock_repo.pushes == [("origin", "main", "bob", "s3cret", 30)]

    def test_modify(self, mock_repo):
        record = FileChangeRecord(lines_added=2, lines_deleted=1, operation=ChangeOperation.MODIFIED)

        self.processor.dispatch(mock_repo, record, "b.txt", _full_path(mock_repo, "b.txt"))

        assert mock_repo.calls == [("stage", "b.txt", False)]
        assert mock_repo.commits[0][0] == "File Modified: b.txt"

    def test_remove_stages_deletion(self, mock_repo):
        record = FileChangeRecord(lines_deleted=4, operation=ChangeOperation.DELETED, status="WT_DELETED")

        self.processor.dispatch(mock_repo, record, "gone.txt", _full_path(mock_repo, "gone.txt"))

        assert mock_repo.calls == [("stage", "gone.txt", True)]
        assert mock_repo.commits[0][0] == "File Removed: gone.txt"

    def test_rename_unstages_old_path(self, mock_repo):
        record = FileChangeRecord(
            lines_added=3, lines_deleted=1, operation=ChangeOperation.RENAMED,
            status="WT_RENAMED", old_path="old.txt",
        )

        self.processor.dispatch(mock_repo, record, "new.txt", _full_path(mock_repo, "new.txt"))

        assert mock_repo.calls == [("unstage", "old.txt"), ("stage", "new.txt", False)]
        message, description, _ = mock_repo.commits[0]
        assert message == "File Renamed: old.txt -> new.txt"
        assert "File old name: old.txt" in description

    def test_branch_and_user_variables_in_message(self, mock_repo):
        self.config.message.modify = Message(
            prefix="[{{BRANCH}}] ", comment="{{FILE_NAME_SHORT}} by {{TEAM}}", suffix=" {{MISSING}}"
        )
        self.config.variables["TEAM"] = "core"
        self.config.variables["COUNT"] = 3
        mock_repo.branch = "develop"
        record = FileChangeRecord(lines_added=1, operation=ChangeOperation.MODIFIED)

        self.processor.dispatch(mock_repo, record, "c.txt", _full_path(mock_repo, "c.txt"))

        assert mock_repo.commits[0][0] == "[develop] c.txt by core {{MISSING}}"
        assert mock_repo.pushes[0][1] == "develop"

    def test_user_variable_cannot_shadow_system_variable(self, mock_repo):
        self.config.variables["FILE_NAME_SHORT"] = "spoofed"
        record = FileChangeRecord(operation=ChangeOperation.NEW)

        self.processor.dispatch(mock_repo, record, "a.txt", _full_path(mock_repo, "a.txt"))

        assert mock_repo.commits[0][0] == "New File Created: a.txt"

    def test_missing_login_keeps_commit_and_skips_push(self, mock_repo):
        processor = ChangeProcessor(self.config, Credentials(username="Bob", email="bob@example.com"))
        record = FileChangeRecord(lines_added=1, operation=ChangeOperation.NEW)

        with pytest.raises(MissingCredentialsError):
            processor.dispatch(mock_repo, record, "a.txt", _full_path(mock_repo, "a.txt"))

        assert len(mock_repo.commits) == 1
        assert mock_repo.pushes == []

    def test_missing_identity_commits_without_author(self, mock_repo):
        processor = ChangeProcessor(self.config, Credentials(login_username="bob", password="pw"))
        record = FileChangeRecord(operation=ChangeOperation.MODIFIED)

        processor.dispatch(mock_repo, record, "a.txt", _full_path(mock_repo, "a.txt"))

        assert mock_repo.commits[0][2] is None

    def test_stage_failure_prevents_commit(self, mock_repo):
        mock_repo.fail_on.add("stage")
        record = FileChangeRecord(operation=ChangeOperation.MODIFIED)

        with pytest.raises(VcsOperationError):
            self.processor.dispatch(mock_repo, record, "a.txt", _full_path(mock_repo, "a.txt"))

        assert mock_repo.commits == []
        assert mock_repo.pushes == []

    def test_push_failure_propagates(self, mock_repo):
        mock_repo.fail_on.add("push")
        record = FileChangeRecord(operation=ChangeOperation.MODIFIED)

        with pytest.raises(VcsOperationError, match="Failed to push"):
            self.processor.dispatch(mock_repo, record, "a.txt", _full_path(mock_repo, "a.txt"))

        assert len(mock_repo.commits) == 1


def test_get_change_processor_reads_session():
    settings = SimpleNamespace(REMOTE_NAME="upstream", PUSH_TIMEOUT=12.0)
    session = SimpleNamespace(settings=settings, config=AutoPilotConfig(), credentials=FULL_CREDENTIALS)

    processor = get_change_processor(session)

    assert processor.remote_name == "upstream"
    assert processor.push_timeout == 12.0
    assert processor.credentials is FULL_CREDENTIALS
