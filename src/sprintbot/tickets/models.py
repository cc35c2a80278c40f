"""Data models shared by the ticket sources and the sprint engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import total_ordering


@total_ordering
class TicketState(Enum):
    """Board list a ticket sits in, ordered by workflow progress.

    The value is the tracker list name. Comparisons follow declaration order,
    so ``state <= TicketState.IN_SCOPE`` means "not yet pulled into work".
    """

    BACKLOG_IDEAS = "Backlog/Ideas"
    IN_SCOPE = "In Scope"
    INVESTIGATION_DISCUSSION = "Investigation/Discussion"
    IN_PROGRESS = "In Progress"
    PENDING_RELEASE = "Pending Release"
    DEMO_FINAL_APPROVAL = "Demo/Final Approval"
    DONE = "Done"

    @property
    def rank(self) -> int:
        """Position of this state in the workflow."""
        return _STATE_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TicketState):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def from_list_name(cls, name: str) -> TicketState | None:
        """Map a tracker list name to a state, or None for untracked lists."""
        try:
            return cls(name)
        except ValueError:
            return None


_STATE_RANKS = {state: rank for rank, state in enumerate(TicketState)}


class TicketLabel(str, Enum):
    """Closed set of labels the engine understands."""

    GOAL = "Goal"
    FRONT_END = "Front-End"
    BACK_END = "Back-End"
    INFRA = "Infra"
    BUG = "Bug"
    MINOR = "Minor"
    BLOCKED = "Blocked"

    @property
    def emoji(self) -> str:
        return _LABEL_EMOJI[self]

    @classmethod
    def from_name(cls, name: str) -> TicketLabel | None:
        try:
            return cls(name)
        except ValueError:
            return None


_LABEL_EMOJI = {
    TicketLabel.GOAL: "🎯",
    TicketLabel.FRONT_END: "🎨",
    TicketLabel.BACK_END: "⚙️",
    TicketLabel.INFRA: "🏗️",
    TicketLabel.BUG: "🐛",
    TicketLabel.MINOR: "🔹",
    TicketLabel.BLOCKED: "⛔",
}


@dataclass(frozen=True)
class TicketLink:
    """Named link to another ticket."""

    name: str
    url: str


@dataclass(frozen=True)
class CheckRun:
    """A CI check run attached to a pull request."""

    name: str
    details_url: str


@dataclass
class PullRequestInfo:
    """Review status of a pull request."""

    url: str
    is_draft: bool = False
    merged: bool = False
    mergeable: bool | None = None
    comment_count: int = 0
    failing_checks: list[CheckRun] = field(default_factory=list)
    action_required_checks: list[CheckRun] = field(default_factory=list)

    @property
    def is_blocked(self) -> bool:
        """True if the PR cannot be merged as it stands."""
        return not self.merged and (self.mergeable is not True or bool(self.failing_checks))

    @property
    def state(self) -> str:
        """Overall check state: failure, action_required or success."""
        if self.failing_checks:
            return "failure"
        if self.action_required_checks:
            return "action_required"
        return "success"


@dataclass(frozen=True)
class TicketSourceRecord:
    """A ticket as reported by the tracker on this fetch."""

    id: str
    name: str
    state: TicketState
    url: str
    member_ids: tuple[str, ...] = ()
    has_description: bool = False
    has_labels: bool = False
    labels: frozenset[TicketLabel] = frozenset()
    checklist_total: int = 0
    checklist_done: int = 0
    pr_url: str | None = None
    dependency_link: TicketLink | None = None


@dataclass
class Ticket:
    """Reconciled view of a ticket for the current run.

    Combines the live tracker record with what was persisted on earlier runs.
    Never persisted directly; see ``DailyTicketSnapshot``.
    """

    source: TicketSourceRecord
    added_on: date
    added_in_sprint: str
    last_moved_on: date
    sprint_age: int = 0
    is_new: bool = False
    moved_out_of_sprint: bool = False
    member_names: list[str] = field(default_factory=list)
    pull_request: PullRequestInfo | None = None

    @property
    def id(self) -> str:
        return self.source.id

    @property
    def name(self) -> str:
        return self.source.name

    @property
    def url(self) -> str:
        return self.source.url

    @property
    def state(self) -> TicketState:
        return self.source.state

    @property
    def labels(self) -> frozenset[TicketLabel]:
        return self.source.labels

    @property
    def is_goal(self) -> bool:
        return TicketLabel.GOAL in self.source.labels

    @property
    def has_open_pull_request(self) -> bool:
        """True if a non-draft PR is attached."""
        return self.pull_request is not None and not self.pull_request.is_draft

    @property
    def needs_attention(self) -> bool:
        source = self.source
        missing_details = not source.has_description or not source.has_labels
        return (
            (source.state != TicketState.INVESTIGATION_DISCUSSION and missing_details)
            or (source.state == TicketState.IN_PROGRESS and not self.member_names)
            or (source.state == TicketState.PENDING_RELEASE and self.pull_request is None)
        )

    @property
    def warnings(self) -> list[str]:
        """Human-readable list of what this ticket is missing.

        Empty unless the ticket needs attention. Once it does, every missing
        detail is listed, not only the one that triggered it.
        """
        if not self.needs_attention:
            return []
        warnings = []
        if not self.source.has_description:
            warnings.append("Missing Description")
        if not self.source.has_labels:
            warnings.append("Missing Labels")
        if not self.member_names:
            warnings.append("Missing Assignees")
        if self.pull_request is None:
            warnings.append("Missing PR")
        return warnings

    @property
    def checklist_progress(self) -> str | None:
        if self.source.checklist_total <= 0:
            return None
        return f"{self.source.checklist_done}/{self.source.checklist_total} completed"
