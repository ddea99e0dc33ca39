"""
WorkflowService -- the document/step state machine with persistence.

Responsibility:
    Applies Submit, Approve, Reject, EditContent and RecordArtifact to a
    stored document.  Transition legality comes from the tables in
    ``domain/workflow.py``; who may act comes from the Authorization
    Resolver; when a document is complete comes from the Completion
    Evaluator.  This module supplies the locking and the writes.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes only; the caller owns
    the transaction.

Invariants enforced:
    - Every transition loads the document with ``SELECT ... FOR UPDATE``
      (PostgreSQL) inside a transaction that on SQLite already holds the
      writer lock, so transitions on one document serialize.
    - A step moves PENDING -> APPROVED/REJECTED through a compare-and-swap
      UPDATE guarded on ``status = 'PENDING'``.  If the guard matches no
      row the action fails with StepConcurrencyError and nothing is
      applied; a step is never decided twice.
    - Submit activates every WAITING step with one bulk UPDATE in the
      same transaction as the document status change.
    - The PENDING count that decides completion is read in the approving
      transaction, after the step's own update.
    - Rejection moves the document to REJECTED immediately.  Other
      PENDING steps are left as they are.

Failure modes:
    - DocumentNotFoundError: unknown document id.
    - NotDocumentAuthorError: submit/edit by someone other than the author.
    - InvalidDocumentTransitionError: action not allowed in the current
      document status.
    - NoEligibleStepError / StepBoundToOtherUserError: from the resolver.
    - MissingRejectionCommentError: reject without a non-blank comment.
    - StepConcurrencyError: lost the compare-and-swap race.
    - MissingTemplateError: artifact recorded for a document without one.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from docflow_kernel.domain.clock import Clock
from docflow_kernel.domain.policies import (
    WorkflowPolicy,
    evaluate_completion,
    resolve_actionable_step,
)
from docflow_kernel.domain.workflow import (
    ACTION_REQUIRED_STATUS,
    TERMINAL_DOCUMENT_STATUSES,
    DocumentStatus,
    Principal,
    StepStatus,
    WorkflowAction,
    can_transition_document,
)
from docflow_kernel.exceptions import (
    DocumentNotFoundError,
    InvalidDocumentTransitionError,
    MissingRejectionCommentError,
    MissingTemplateError,
    NotDocumentAuthorError,
    StepConcurrencyError,
)
from docflow_kernel.logging_config import get_logger
from docflow_kernel.models.document import ApprovalStepModel, DocumentModel
from docflow_kernel.services.base import BaseService

logger = get_logger("services.workflow")


class WorkflowService(BaseService[DocumentModel]):
    """
    Drives documents through their lifecycle.

    Contract:
        Every public method takes the acting ``Principal`` explicitly and
        returns the flushed ``DocumentModel``.  Nothing is committed here.

    Non-goals:
        - No resubmission, re-opening or withdrawal.
        - No retries: a lost race surfaces as an error to the caller.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: WorkflowPolicy | None = None,
    ):
        super().__init__(session)
        self._clock = clock
        self._policy = policy or WorkflowPolicy()

    # =========================================================================
    # Author actions
    # =========================================================================

    def submit(self, document_id: UUID, actor: Principal) -> DocumentModel:
        """DRAFT -> PENDING; every WAITING step becomes PENDING."""
        document = self._lock_document(document_id)
        self._require_author(document, actor, WorkflowAction.SUBMIT)
        self._require_status(document, WorkflowAction.SUBMIT)

        now = self._clock.now()
        self._move(document, DocumentStatus.PENDING, WorkflowAction.SUBMIT)
        document.updated_at = now
        self.session.flush()

        result = self.session.execute(
            update(ApprovalStepModel)
            .where(
                ApprovalStepModel.document_id == document.id,
                ApprovalStepModel.status == StepStatus.WAITING.value,
            )
            .values(status=StepStatus.PENDING.value)
            .execution_options(synchronize_session=False)
        )
        for step in document.steps:
            self.session.expire(step)

        logger.info(
            "document_submitted",
            extra={
                "document_id": str(document.id),
                "number": document.number,
                "activated_steps": result.rowcount,
            },
        )
        return document

    def edit_content(
        self, document_id: UUID, actor: Principal, content: str,
    ) -> DocumentModel:
        """Replace the body of a DRAFT document."""
        document = self._lock_document(document_id)
        self._require_author(document, actor, WorkflowAction.EDIT)
        self._require_status(document, WorkflowAction.EDIT)

        document.content = content or ""
        document.updated_at = self._clock.now()
        self.session.flush()

        logger.info(
            "document_content_edited",
            extra={"document_id": str(document.id), "length": len(document.content)},
        )
        return document

    # =========================================================================
    # Approver actions
    # =========================================================================

    def approve(
        self,
        document_id: UUID,
        actor: Principal,
        comment: str | None = None,
    ) -> DocumentModel:
        """Approve the actor's eligible step; finalize when none remain."""
        document = self._lock_document(document_id)
        self._require_open(document, WorkflowAction.APPROVE)

        step = resolve_actionable_step(
            document.id, document.steps, actor, self._policy,
        )
        now = self._clock.now()
        self._decide_step(
            document, step, StepStatus.APPROVED, actor, comment or "", now,
        )

        logger.info(
            "step_approved",
            extra={
                "document_id": str(document.id),
                "step_order": step.order,
                "role": step.required_role,
            },
        )

        pending = self.session.execute(
            select(func.count())
            .select_from(ApprovalStepModel)
            .where(
                ApprovalStepModel.document_id == document.id,
                ApprovalStepModel.status == StepStatus.PENDING.value,
            )
        ).scalar_one()

        if evaluate_completion(pending) == DocumentStatus.APPROVED:
            self._move(document, DocumentStatus.APPROVED, WorkflowAction.APPROVE)
            logger.info(
                "document_approved",
                extra={"document_id": str(document.id), "number": document.number},
            )
        document.updated_at = now
        self.session.flush()
        return document

    def reject(
        self,
        document_id: UUID,
        actor: Principal,
        comment: str | None,
    ) -> DocumentModel:
        """Reject the actor's eligible step and with it the whole document."""
        if comment is None or not comment.strip():
            raise MissingRejectionCommentError(str(document_id))

        document = self._lock_document(document_id)
        self._require_open(document, WorkflowAction.REJECT)

        step = resolve_actionable_step(
            document.id, document.steps, actor, self._policy,
        )
        now = self._clock.now()
        self._decide_step(
            document, step, StepStatus.REJECTED, actor, comment.strip(), now,
        )

        self._move(document, DocumentStatus.REJECTED, WorkflowAction.REJECT)
        document.updated_at = now
        self.session.flush()

        logger.info(
            "step_rejected",
            extra={
                "document_id": str(document.id),
                "step_order": step.order,
                "role": step.required_role,
            },
        )
        logger.info(
            "document_rejected",
            extra={"document_id": str(document.id), "number": document.number},
        )
        return document

    # =========================================================================
    # Rendering output
    # =========================================================================

    def record_artifact(self, document_id: UUID, artifact_url: str) -> DocumentModel:
        """Store where the rendered artifact of a templated document lives."""
        document = self._lock_document(document_id)
        if document.template_id is None:
            raise MissingTemplateError(str(document.id))

        document.artifact_url = artifact_url
        document.updated_at = self._clock.now()
        self.session.flush()

        logger.info(
            "artifact_recorded",
            extra={"document_id": str(document.id), "artifact_url": artifact_url},
        )
        return document

    # =========================================================================
    # Internals
    # =========================================================================

    def _lock_document(self, document_id: UUID) -> DocumentModel:
        document = self.session.execute(
            select(DocumentModel)
            .where(DocumentModel.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return document

    def _require_author(
        self, document: DocumentModel, actor: Principal, action: WorkflowAction,
    ) -> None:
        if document.author_id != actor.id:
            raise NotDocumentAuthorError(
                str(document.id), str(actor.id), action.value,
            )

    def _require_status(
        self, document: DocumentModel, action: WorkflowAction,
    ) -> None:
        if DocumentStatus(document.status) != ACTION_REQUIRED_STATUS[action]:
            raise InvalidDocumentTransitionError(
                str(document.id), document.status, action.value,
            )

    def _move(
        self,
        document: DocumentModel,
        target: DocumentStatus,
        action: WorkflowAction,
    ) -> None:
        if not can_transition_document(DocumentStatus(document.status), target):
            raise InvalidDocumentTransitionError(
                str(document.id), document.status, action.value,
            )
        document.status = target.value

    def _require_open(
        self, document: DocumentModel, action: WorkflowAction,
    ) -> None:
        # DRAFT falls through: with no PENDING step the resolver reports
        # NoEligibleStep.
        if DocumentStatus(document.status) in TERMINAL_DOCUMENT_STATUSES:
            raise InvalidDocumentTransitionError(
                str(document.id), document.status, action.value,
            )

    def _decide_step(
        self,
        document: DocumentModel,
        step: ApprovalStepModel,
        target: StepStatus,
        actor: Principal,
        comment: str,
        now: datetime,
    ) -> None:
        result = self.session.execute(
            update(ApprovalStepModel)
            .where(
                ApprovalStepModel.id == step.id,
                ApprovalStepModel.status == StepStatus.PENDING.value,
            )
            .values(
                status=target.value,
                acted_by_id=actor.id,
                comment=comment,
                acted_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "step_concurrency_conflict",
                extra={"document_id": str(document.id), "step_id": str(step.id)},
            )
            raise StepConcurrencyError(str(document.id), str(step.id))
        self.session.expire(step)
