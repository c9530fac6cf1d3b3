"""Conflict detection for rename proposals."""

from __future__ import annotations

import os
import platform
import posixpath
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

import structlog

from .models import RenameProposal, RenameStatus
from .results import IssueCode, Result

logger = structlog.get_logger(__name__)

MAX_SUGGESTION_ATTEMPTS = 100


class ConflictCode(str, Enum):
    """Kinds of conflicts reported by ConflictDetector.detect_all_conflicts."""

    DUPLICATE_PROPOSED = "DUPLICATE_PROPOSED"
    FILE_EXISTS = "FILE_EXISTS"
    CASE_CONFLICT = "CASE_CONFLICT"


@dataclass(frozen=True)
class ConflictInfo:
    """One conflict of one proposal."""

    code: ConflictCode
    message: str
    conflicting_with: list[str]
    suggestion: str | None = None


@dataclass
class ConflictReport:
    """Read-only conflict report for a batch of proposals."""

    conflicts: dict[str, list[ConflictInfo]] = field(default_factory=dict)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def total_conflicts(self) -> int:
        """Number of proposals with at least one conflict."""
        return len(self.conflicts)

    def count(self, code: ConflictCode) -> int:
        return sum(1 for infos in self.conflicts.values() for info in infos if info.code == code)

    @property
    def duplicate_count(self) -> int:
        return self.count(ConflictCode.DUPLICATE_PROPOSED)

    @property
    def existing_file_count(self) -> int:
        return self.count(ConflictCode.FILE_EXISTS)

    @property
    def case_conflict_count(self) -> int:
        return self.count(ConflictCode.CASE_CONFLICT)


def detect_case_sensitivity() -> bool:
    """Whether the local filesystem is assumed case-sensitive (Linux only)."""
    return platform.system().lower() == "linux"


def normalize_path_key(path: str) -> str:
    """Comparison key for proposed paths: forward slashes, lower-cased."""
    return path.replace("\\", "/").lower()


def counter_suggestion(name: str, counter: int) -> str:
    """Insert ``_<counter>`` before a name's extension."""
    stem, dot, extension = name.rpartition(".")
    if not dot or not stem:
        return f"{name}_{counter}"
    return f"{stem}_{counter}.{extension}"


class ConflictDetector:
    """Detects conflicts between proposals and with files already on disk."""

    def __init__(
        self,
        case_sensitive: bool | None = None,
        exists: Callable[[str], bool] = os.path.exists,
        check_filesystem: bool = True,
    ) -> None:
        """Initialize the conflict detector.

        Args:
            case_sensitive: Filesystem case sensitivity; detected when None
            exists: Existence check used for filesystem collisions
            check_filesystem: Run the filesystem collision pass at all
        """
        self.case_sensitive = detect_case_sensitivity() if case_sensitive is None else case_sensitive
        self.exists = exists
        self.check_filesystem = check_filesystem
        self.logger = logger

    def _fs_key(self, path: str) -> str:
        path = path.replace("\\", "/")
        return path if self.case_sensitive else path.lower()

    def _duplicate_groups(self, proposals: Sequence[RenameProposal]) -> list[list[RenameProposal]]:
        groups: dict[str, list[RenameProposal]] = {}
        for proposal in proposals:
            groups.setdefault(normalize_path_key(proposal.proposed_path), []).append(proposal)
        return [group for group in groups.values() if len(group) > 1]

    def _is_identity(self, proposal: RenameProposal) -> bool:
        return self._fs_key(proposal.original_path) == self._fs_key(proposal.proposed_path)

    def _vacated_paths(self, proposals: Sequence[RenameProposal]) -> set[str]:
        """Original paths that ready proposals will move away from."""
        return {
            self._fs_key(p.original_path)
            for p in proposals
            if p.status == RenameStatus.READY and not self._is_identity(p)
        }

    def mark_batch_duplicates(self, proposals: Sequence[RenameProposal]) -> int:
        """First pass: escalate ready proposals that share a proposed path.

        Paths are compared lower-cased with forward slashes. Proposals
        already in a stricter state keep their status and get no issue.

        Args:
            proposals: Every proposal of the batch

        Returns:
            Number of proposals escalated to conflict
        """
        escalated = 0
        for group in self._duplicate_groups(proposals):
            for proposal in group:
                if proposal.escalate(RenameStatus.CONFLICT):
                    proposal.add_issue(
                        IssueCode.DUPLICATE_NAME.value,
                        "Another file would have the same name in this directory",
                        "proposed_name",
                    )
                    escalated += 1
        if escalated:
            self.logger.debug("Marked batch duplicates", escalated=escalated)
        return escalated

    def mark_filesystem_collisions(self, proposals: Sequence[RenameProposal]) -> int:
        """Second pass: escalate ready proposals whose target already exists.

        Identity renames and case-only renames on case-insensitive
        filesystems are skipped, as are targets that another ready proposal
        of the batch is moving away from. The set of vacated paths is taken
        before any proposal of this pass changes status.

        Args:
            proposals: Every proposal of the batch

        Returns:
            Number of proposals escalated to conflict
        """
        if not self.check_filesystem:
            return 0

        vacated = self._vacated_paths(proposals)
        escalated = 0
        for proposal in proposals:
            if proposal.status != RenameStatus.READY or self._is_identity(proposal):
                continue
            if self._fs_key(proposal.proposed_path) in vacated:
                continue
            if self.exists(proposal.proposed_path):
                proposal.escalate(RenameStatus.CONFLICT)
                proposal.add_issue(
                    IssueCode.FILE_EXISTS.value,
                    f'A file already exists at "{proposal.proposed_path}"',
                    "proposed_path",
                )
                escalated += 1
        if escalated:
            self.logger.debug("Marked filesystem collisions", escalated=escalated)
        return escalated

    def detect(self, proposals: Sequence[RenameProposal]) -> None:
        """Run both passes in order over a batch."""
        self.mark_batch_duplicates(proposals)
        self.mark_filesystem_collisions(proposals)

    def suggest_available_name(self, proposal: RenameProposal, taken: set[str] | None = None) -> str | None:
        """Find ``name_<n>.ext`` that neither exists on disk nor is in ``taken``."""
        taken = taken or set()
        directory = posixpath.dirname(proposal.proposed_path.replace("\\", "/"))
        for counter in range(1, MAX_SUGGESTION_ATTEMPTS):
            candidate = counter_suggestion(proposal.proposed_name, counter)
            path = posixpath.join(directory, candidate) if directory else candidate
            if normalize_path_key(path) not in taken and not self.exists(path):
                return candidate
        return None

    def detect_all_conflicts(self, proposals: Sequence[RenameProposal]) -> ConflictReport:
        """Report every conflict without changing any proposal.

        Args:
            proposals: Every proposal of the batch

        Returns:
            ConflictReport keyed by proposal id
        """
        report = ConflictReport()
        taken = {normalize_path_key(p.proposed_path) for p in proposals}

        for group in self._duplicate_groups(proposals):
            # Paths equal only when lower-cased
            case_only = len({p.proposed_path for p in group}) > 1
            for index, proposal in enumerate(group):
                others = [p.original_path for p in group if p.id != proposal.id]
                if case_only:
                    code = ConflictCode.CASE_CONFLICT
                    message = f'{len(others)} other file(s) differ only in case from "{proposal.proposed_name}"'
                else:
                    code = ConflictCode.DUPLICATE_PROPOSED
                    message = f'{len(others)} other file(s) would have the same name: "{proposal.proposed_name}"'
                report.conflicts.setdefault(proposal.id, []).append(
                    ConflictInfo(
                        code=code,
                        message=message,
                        conflicting_with=others,
                        suggestion=counter_suggestion(proposal.proposed_name, index + 1),
                    )
                )

        if self.check_filesystem:
            vacated = self._vacated_paths(proposals)
            for proposal in proposals:
                if self._is_identity(proposal) or self._fs_key(proposal.proposed_path) in vacated:
                    continue
                if self.exists(proposal.proposed_path):
                    report.conflicts.setdefault(proposal.id, []).append(
                        ConflictInfo(
                            code=ConflictCode.FILE_EXISTS,
                            message=f'A file already exists at "{proposal.proposed_path}"',
                            conflicting_with=[proposal.proposed_path],
                            suggestion=self.suggest_available_name(proposal, taken),
                        )
                    )

        return report

    def block_on_conflicts(self, proposals: Sequence[RenameProposal]) -> Result[None]:
        """Refuse to proceed while any conflict remains.

        Returns:
            Empty success, or a ``conflicts_detected`` error whose message
            summarizes the conflicts
        """
        report = self.detect_all_conflicts(proposals)
        if not report.has_conflicts:
            return Result.success(None)

        lines = ["Cannot proceed: filename conflicts detected", "", f"Total conflicts: {report.total_conflicts}"]
        if report.duplicate_count:
            lines.append(f"  - {report.duplicate_count} duplicate proposed names")
        if report.existing_file_count:
            lines.append(f"  - {report.existing_file_count} files would overwrite existing files")
        if report.case_conflict_count:
            lines.append(f"  - {report.case_conflict_count} case conflicts")
        lines += ["", "Resolve conflicts before executing rename."]

        self.logger.warning("Blocking on conflicting proposals", total_conflicts=report.total_conflicts)
        return Result.failure(
            "conflicts_detected",
            "\n".join(lines),
            total_conflicts=report.total_conflicts,
            duplicate_count=report.duplicate_count,
            existing_file_count=report.existing_file_count,
        )
