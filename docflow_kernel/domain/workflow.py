"""
Workflow domain types (``docflow_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for the document approval workflow.  Defines the
document and approval-step lifecycle state machines, the acting principal,
``StepSpec`` entries accepted by the builder, and the frozen read-model
records returned to callers.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``db/``, ``models/``, ``services/`` or ``selectors/``.

Invariants enforced
-------------------
* ``DOCUMENT_TRANSITIONS`` and ``STEP_TRANSITIONS`` define the only valid
  status changes.  Terminal states have no outgoing edges; there is no
  re-open or resubmit path.
* A step is actionable only while PENDING.
* Document numbers are ``<prefix>/<year>/<seq>`` with ``seq`` zero-padded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


# =========================================================================
# Lifecycles
# =========================================================================


class DocumentStatus(str, Enum):
    """Document lifecycle states."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class StepStatus(str, Enum):
    """Approval step lifecycle states."""

    WAITING = "WAITING"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class StepKind(str, Enum):
    """Classification of a step.  Does not change transition rules."""

    REVIEWER = "reviewer"
    SIGNER = "signer"


class WorkflowAction(str, Enum):
    """Actions a principal can request on a document."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"


DOCUMENT_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.DRAFT: frozenset({DocumentStatus.PENDING}),
    DocumentStatus.PENDING: frozenset({
        DocumentStatus.APPROVED,
        DocumentStatus.REJECTED,
    }),
    DocumentStatus.APPROVED: frozenset(),
    DocumentStatus.REJECTED: frozenset(),
}

STEP_TRANSITIONS: dict[StepStatus, frozenset[StepStatus]] = {
    StepStatus.WAITING: frozenset({StepStatus.PENDING}),
    StepStatus.PENDING: frozenset({StepStatus.APPROVED, StepStatus.REJECTED}),
    StepStatus.APPROVED: frozenset(),
    StepStatus.REJECTED: frozenset(),
}

TERMINAL_DOCUMENT_STATUSES: frozenset[DocumentStatus] = frozenset({
    DocumentStatus.APPROVED,
    DocumentStatus.REJECTED,
})

TERMINAL_STEP_STATUSES: frozenset[StepStatus] = frozenset({
    StepStatus.APPROVED,
    StepStatus.REJECTED,
})

# Author actions are only accepted while the document holds this status.
# Approver actions are gated by the step resolver instead.
ACTION_REQUIRED_STATUS: dict[WorkflowAction, DocumentStatus] = {
    WorkflowAction.SUBMIT: DocumentStatus.DRAFT,
    WorkflowAction.EDIT: DocumentStatus.DRAFT,
}


def can_transition_document(
    current: DocumentStatus, target: DocumentStatus,
) -> bool:
    """True if ``current -> target`` is a legal document transition."""
    return target in DOCUMENT_TRANSITIONS.get(current, frozenset())


def can_transition_step(current: StepStatus, target: StepStatus) -> bool:
    """True if ``current -> target`` is a legal step transition."""
    return target in STEP_TRANSITIONS.get(current, frozenset())


def format_document_number(
    year: int, seq: int, prefix: str = "DOC", width: int = 3,
) -> str:
    """Format ``DOC/2024/007``.  Sequences wider than ``width`` are kept whole."""
    if seq <= 0:
        raise ValueError(f"Document sequence must be positive, got {seq}")
    return f"{prefix}/{year}/{str(seq).zfill(width)}"


# =========================================================================
# Principals and step entries
# =========================================================================


@dataclass(frozen=True)
class Principal:
    """
    The authenticated actor of a request.

    Supplied by the identity provider on every call; the kernel trusts it
    as ground truth and never reads ambient session state.
    """

    id: UUID
    role: str


@dataclass(frozen=True)
class StepSpec:
    """One entry of the ordered step list given to the builder."""

    role: str
    bound_user_id: UUID | str | None = None  # blank string means unbound
    kind: StepKind | str | None = None


# =========================================================================
# Read-model records
# =========================================================================


@dataclass(frozen=True)
class ApprovalStepRecord:
    """Immutable snapshot of one approval step."""

    step_id: UUID
    document_id: UUID
    order: int
    required_role: str
    kind: StepKind
    status: StepStatus
    bound_user_id: UUID | None = None
    bound_user_name: str | None = None
    acted_by_id: UUID | None = None
    acted_by_name: str | None = None
    comment: str | None = None
    acted_at: datetime | None = None

    @property
    def is_actionable(self) -> bool:
        return self.status == StepStatus.PENDING


@dataclass(frozen=True)
class DocumentRecord:
    """Immutable snapshot of a document and its ordered steps."""

    document_id: UUID
    number: str
    title: str
    content: str
    status: DocumentStatus
    author_id: UUID
    author_name: str | None = None
    recipient: str | None = None
    recipient_type: str | None = None
    template_id: UUID | None = None
    artifact_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    steps: tuple[ApprovalStepRecord, ...] = ()

    @property
    def is_final(self) -> bool:
        return self.status in TERMINAL_DOCUMENT_STATUSES

    def step_at(self, order: int) -> ApprovalStepRecord:
        """Return the step with the given 1-based order."""
        for step in self.steps:
            if step.order == order:
                return step
        raise KeyError(order)


@dataclass(frozen=True)
class InboxItem:
    """A document as seen from a user's inbox."""

    document_id: UUID
    number: str
    title: str
    status: DocumentStatus
    author_name: str | None
    relation: str  # "created" or "received"
    updated_at: datetime | None = None
    steps: tuple[ApprovalStepRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DocumentFields:
    """Field values handed to the rendering collaborator."""

    number: str
    title: str
    date: datetime
    author_name: str
    author_role: str
    recipient: str | None
    content: str
    signers: tuple[str, ...] = ()
    reviewers: tuple[str, ...] = ()


@dataclass(frozen=True)
class TemplateRecord:
    """Immutable snapshot of a registered source template."""

    template_id: UUID
    name: str
    file_name: str
    file_path: str
    file_type: str = "docx"
    description: str | None = None
    created_at: datetime | None = None
