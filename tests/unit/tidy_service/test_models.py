"""Unit tests for rename preview models."""

import pytest

from services.tidy_service.src.exceptions import ResultUnwrapError
from services.tidy_service.src.rename_preview.models import (
    FileInfo,
    PreviewSummary,
    RenamePreview,
    RenameProposal,
    RenameStatus,
)
from services.tidy_service.src.rename_preview.results import ErrorType, Result


def make_proposal(status=RenameStatus.READY, is_move=False):
    return RenameProposal(
        id="p",
        original_path="/a/b.txt",
        original_name="b.txt",
        proposed_name="c.txt",
        proposed_path="/a/c.txt",
        status=status,
        is_move_operation=is_move,
    )


class TestFileInfo:
    """Test FileInfo construction from paths."""

    def test_from_path(self):
        """Test name and extension are derived."""
        file = FileInfo.from_path("/photos/vacation.photo.JPG", size=10)

        assert file.name == "vacation.photo"
        assert file.extension == "JPG"
        assert file.full_name == "vacation.photo.JPG"
        assert file.size == 10

    def test_dotfile_has_no_extension(self):
        """Test hidden files without another dot."""
        file = FileInfo.from_path("/home/user/.bashrc")

        assert file.name == ".bashrc"
        assert file.extension == ""

    def test_windows_path(self):
        """Test backslash separated paths."""
        assert FileInfo.from_path("C:\\Docs\\report.pdf").full_name == "report.pdf"


class TestEscalate:
    """Test status escalation dominance."""

    @pytest.mark.parametrize(
        "current,requested,expected",
        [
            (RenameStatus.READY, RenameStatus.CONFLICT, RenameStatus.CONFLICT),
            (RenameStatus.READY, RenameStatus.NO_CHANGE, RenameStatus.NO_CHANGE),
            (RenameStatus.READY, RenameStatus.MISSING_DATA, RenameStatus.MISSING_DATA),
            (RenameStatus.NO_CHANGE, RenameStatus.MISSING_DATA, RenameStatus.MISSING_DATA),
            (RenameStatus.NO_CHANGE, RenameStatus.CONFLICT, RenameStatus.NO_CHANGE),
            (RenameStatus.MISSING_DATA, RenameStatus.CONFLICT, RenameStatus.MISSING_DATA),
            (RenameStatus.MISSING_DATA, RenameStatus.NO_CHANGE, RenameStatus.MISSING_DATA),
            (RenameStatus.CONFLICT, RenameStatus.MISSING_DATA, RenameStatus.CONFLICT),
            (RenameStatus.MISSING_DATA, RenameStatus.INVALID_NAME, RenameStatus.INVALID_NAME),
            (RenameStatus.CONFLICT, RenameStatus.INVALID_NAME, RenameStatus.INVALID_NAME),
            (RenameStatus.INVALID_NAME, RenameStatus.CONFLICT, RenameStatus.INVALID_NAME),
            (RenameStatus.CONFLICT, RenameStatus.READY, RenameStatus.CONFLICT),
        ],
    )
    def test_dominance(self, current, requested, expected):
        """Test a status only moves to a stricter one."""
        proposal = make_proposal(current)

        changed = proposal.escalate(requested)

        assert proposal.status == expected
        assert changed is (expected != current)

    def test_add_issue_keeps_status(self):
        """Test issues never change the status by themselves."""
        proposal = make_proposal()

        proposal.add_issue("USED_FALLBACK", "Used fallback value for {camera}", "camera")

        assert proposal.status == RenameStatus.READY
        assert proposal.issues[0].field == "camera"


class TestPreviewSummary:
    """Test summary folding."""

    def test_summary_counts(self):
        """Test counts per status and move operations."""
        proposals = [
            make_proposal(RenameStatus.READY, is_move=True),
            make_proposal(RenameStatus.READY),
            make_proposal(RenameStatus.CONFLICT),
            make_proposal(RenameStatus.MISSING_DATA),
            make_proposal(RenameStatus.NO_CHANGE),
            make_proposal(RenameStatus.INVALID_NAME),
        ]

        summary = PreviewSummary.from_proposals(proposals)

        assert summary.total == 6
        assert summary.ready == 2
        assert summary.conflicts == 1
        assert summary.missing_data == 1
        assert summary.no_change == 1
        assert summary.invalid_name == 1
        assert summary.move_operations == 1
        assert summary.rename_only == 5

    def test_summary_follows_proposals(self):
        """Test the preview summary is recomputed after changes."""
        preview = RenamePreview(proposals=[make_proposal()], template_used="{original}")
        assert preview.summary.ready == 1

        preview.proposals[0].escalate(RenameStatus.CONFLICT)

        assert preview.summary.ready == 0
        assert preview.summary.conflicts == 1
        assert preview.proposals_with_status(RenameStatus.CONFLICT) == preview.proposals

    def test_summary_serialized(self):
        """Test the summary is part of the serialized preview."""
        preview = RenamePreview(proposals=[make_proposal()], template_used="{original}")

        assert preview.model_dump()["summary"]["total"] == 1


class TestResult:
    """Test the result type."""

    def test_success(self):
        """Test successful results."""
        result = Result.success(3)

        assert result.ok
        assert result.unwrap() == 3

    def test_failure(self):
        """Test failed results carry type, message and details."""
        result = Result.failure(ErrorType.CANCELLED, "stopped", processed=2)

        assert not result.ok
        assert result.error.type == "cancelled"
        assert result.error.details == {"processed": 2}

    def test_unwrap_failure_raises(self):
        """Test unwrapping a failure."""
        with pytest.raises(ResultUnwrapError, match="cancelled: stopped"):
            Result.failure(ErrorType.CANCELLED, "stopped").unwrap()
