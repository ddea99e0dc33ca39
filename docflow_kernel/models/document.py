"""
Module: docflow_kernel.models.document
Responsibility: ORM persistence for documents and their ordered approval
    steps.

Architecture position: Kernel > Models.  May import from db/base.py,
    domain/ value objects and exceptions only.

Invariants enforced:
    - Status values are limited by DB check constraints on both tables.
    - Document number and sequence are unique.
    - Step order is unique per document (UNIQUE(document_id, step_order)).
    - A document owns its steps: deleting the document deletes the steps.
    - Content is frozen once the document leaves DRAFT (ORM guard).
    - APPROVED and REJECTED steps cannot be modified (ORM guard).  Step
      status moves themselves are compare-and-swap UPDATE statements issued
      by the workflow service, guarded on status = 'PENDING'.

Failure modes:
    - IntegrityError on duplicate number or duplicate step order.
    - ImmutabilityViolationError on a content edit after submission or on
      a flush that modifies a terminal step.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.orm.attributes import get_history

from docflow_kernel.db.base import Base, UUIDString
from docflow_kernel.domain.workflow import (
    TERMINAL_STEP_STATUSES,
    DocumentStatus,
    StepKind,
    StepStatus,
)
from docflow_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from docflow_kernel.domain.workflow import ApprovalStepRecord, DocumentRecord
    from docflow_kernel.models.template import Template
    from docflow_kernel.models.user import User


class DocumentModel(Base):
    """Persistent document.

    Contract:
        Status moves only along DRAFT -> PENDING -> {APPROVED, REJECTED};
        the workflow service enforces the transition table while holding a
        row lock on the document.

    Guarantees:
        - number and seq are write-once and unique.
        - content is immutable outside DRAFT.
    """

    __tablename__ = "documents"

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'PENDING', 'APPROVED', 'REJECTED')",
            name="ck_documents_valid_status",
        ),
        Index("ix_documents_author_updated", "author_id", "updated_at"),
    )

    number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    seq: Mapped[int] = mapped_column(nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    recipient: Mapped[str | None] = mapped_column(String(500), nullable=True)
    recipient_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DocumentStatus.DRAFT.value,
    )
    template_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    artifact_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)

    author: Mapped["User"] = relationship("User", lazy="selectin")
    template: Mapped["Template | None"] = relationship("Template", lazy="selectin")
    steps: Mapped[list["ApprovalStepModel"]] = relationship(
        "ApprovalStepModel",
        back_populates="document",
        order_by="ApprovalStepModel.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Document {self.number} status={self.status}>"

    def to_dto(self) -> DocumentRecord:
        """Convert ORM model to frozen domain DTO."""
        from docflow_kernel.domain.workflow import DocumentRecord as DocumentDTO

        return DocumentDTO(
            document_id=self.id,
            number=self.number,
            title=self.title,
            content=self.content,
            status=DocumentStatus(self.status),
            author_id=self.author_id,
            author_name=self.author.name if self.author is not None else None,
            recipient=self.recipient,
            recipient_type=self.recipient_type,
            template_id=self.template_id,
            artifact_url=self.artifact_url,
            created_at=self.created_at,
            updated_at=self.updated_at,
            steps=tuple(step.to_dto() for step in self.steps),
        )


class ApprovalStepModel(Base):
    """One position in a document's approval chain."""

    __tablename__ = "approval_steps"

    __table_args__ = (
        CheckConstraint(
            "status IN ('WAITING', 'PENDING', 'APPROVED', 'REJECTED')",
            name="ck_approval_steps_valid_status",
        ),
        CheckConstraint(
            "kind IN ('reviewer', 'signer')",
            name="ck_approval_steps_valid_kind",
        ),
        CheckConstraint("step_order >= 1", name="ck_approval_steps_order_positive"),
        UniqueConstraint(
            "document_id", "step_order",
            name="uq_approval_steps_document_order",
        ),
        Index("ix_approval_steps_role_status", "required_role", "status"),
        Index("ix_approval_steps_bound_user", "bound_user_id"),
    )

    document_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    order: Mapped[int] = mapped_column("step_order", Integer, nullable=False)
    required_role: Mapped[str] = mapped_column(String(50), nullable=False)
    bound_user_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StepKind.REVIEWER.value,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StepStatus.WAITING.value,
    )
    acted_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    acted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    document: Mapped["DocumentModel"] = relationship(
        "DocumentModel", back_populates="steps",
    )
    bound_user: Mapped["User | None"] = relationship(
        "User", foreign_keys=[bound_user_id], lazy="selectin",
    )
    acted_by: Mapped["User | None"] = relationship(
        "User", foreign_keys=[acted_by_id], lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<ApprovalStep #{self.order} document={self.document_id} "
            f"role={self.required_role} status={self.status}>"
        )

    def to_dto(self) -> ApprovalStepRecord:
        """Convert ORM model to frozen domain DTO."""
        from docflow_kernel.domain.workflow import ApprovalStepRecord as StepDTO

        return StepDTO(
            step_id=self.id,
            document_id=self.document_id,
            order=self.order,
            required_role=self.required_role,
            kind=StepKind(self.kind),
            status=StepStatus(self.status),
            bound_user_id=self.bound_user_id,
            bound_user_name=(
                self.bound_user.name if self.bound_user is not None else None
            ),
            acted_by_id=self.acted_by_id,
            acted_by_name=self.acted_by.name if self.acted_by is not None else None,
            comment=self.comment,
            acted_at=self.acted_at,
        )


# =============================================================================
# ORM-Level Immutability Guards
# =============================================================================


def _committed_value(target, key: str):
    history = get_history(target, key)
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return getattr(target, key)


@event.listens_for(DocumentModel, "before_update")
def prevent_content_change_after_draft(mapper, connection, target):
    """Content may only change while the stored status is DRAFT."""
    if not get_history(target, "content").has_changes():
        return
    if _committed_value(target, "status") != DocumentStatus.DRAFT:
        raise ImmutabilityViolationError(
            entity_type="Document",
            entity_id=str(target.id),
            reason="Content is frozen once the document leaves DRAFT",
        )


@event.listens_for(ApprovalStepModel, "before_update")
def prevent_terminal_step_update(mapper, connection, target):
    """Prevent updates to APPROVED or REJECTED steps."""
    status = StepStatus(_committed_value(target, "status"))
    if status not in TERMINAL_STEP_STATUSES:
        return
    changed = [
        attr.key
        for attr in mapper.column_attrs
        if get_history(target, attr.key).has_changes()
    ]
    if changed:
        raise ImmutabilityViolationError(
            entity_type="ApprovalStep",
            entity_id=str(target.id),
            reason=f"Step is {status.value} -- cannot modify {changed}",
        )
