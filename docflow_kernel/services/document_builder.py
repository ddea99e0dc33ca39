"""
DocumentBuilder -- creates a DRAFT document with its ordered approval steps.

Responsibility:
    Validates a creation request, allocates the next document number from
    the locked sequence counter and persists the document together with one
    WAITING step per ``StepSpec``, in input order.

Architecture position:
    Kernel > Services -- imperative shell.  Uses SequenceService for
    numbering and the injected Clock for the number's year and timestamps.

Invariants enforced:
    - Every validation runs before the first write, so a rejected request
      does not consume a sequence value.
    - Step order is the 1-based position in the input list.  No reordering,
      no de-duplication.
    - The document and all its steps are flushed in the caller's
      transaction; a failure anywhere rolls back everything, including the
      sequence allocation.

Failure modes:
    - MissingTitleError, EmptyWorkflowError, InvalidStepSpecError.
    - UserNotFoundError for an unknown author or bound user.
    - TemplateNotFoundError for an unknown template.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from docflow_kernel.domain.clock import Clock
from docflow_kernel.domain.policies import WorkflowPolicy
from docflow_kernel.domain.workflow import (
    DocumentStatus,
    Principal,
    StepKind,
    StepSpec,
    StepStatus,
    format_document_number,
)
from docflow_kernel.exceptions import (
    EmptyWorkflowError,
    InvalidStepSpecError,
    MissingTitleError,
    TemplateNotFoundError,
    UserNotFoundError,
)
from docflow_kernel.logging_config import get_logger
from docflow_kernel.models.document import ApprovalStepModel, DocumentModel
from docflow_kernel.models.template import Template
from docflow_kernel.models.user import User
from docflow_kernel.services.base import BaseService
from docflow_kernel.services.sequence_service import SequenceService

logger = get_logger("services.document_builder")


class DocumentBuilder(BaseService[DocumentModel]):
    """
    Builds new documents.

    Contract:
        ``create()`` returns a flushed DRAFT ``DocumentModel`` whose steps are
        all WAITING.  The caller commits.
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
        self._sequences = SequenceService(session)

    def create(
        self,
        author: Principal,
        title: str | None,
        steps: Sequence[StepSpec],
        content: str | None = None,
        recipient: str | None = None,
        recipient_type: str | None = None,
        template_id: UUID | None = None,
        artifact_url: str | None = None,
    ) -> DocumentModel:
        """Validate the request and persist a new DRAFT document."""
        if title is None or not title.strip():
            raise MissingTitleError()
        if not steps:
            raise EmptyWorkflowError()

        normalized = [
            self._normalize_step(position, spec)
            for position, spec in enumerate(steps, start=1)
        ]

        if self.session.get(User, author.id) is None:
            raise UserNotFoundError(str(author.id))
        for _, bound_user_id, _ in normalized:
            if bound_user_id is not None and self.session.get(User, bound_user_id) is None:
                raise UserNotFoundError(str(bound_user_id))
        if template_id is not None and self.session.get(Template, template_id) is None:
            raise TemplateNotFoundError(str(template_id))

        now = self._clock.now()
        seq = self._sequences.next_value(SequenceService.DOCUMENT_NUMBER)
        number = format_document_number(
            now.year, seq,
            prefix=self._policy.number_prefix,
            width=self._policy.number_width,
        )

        document = DocumentModel(
            number=number,
            seq=seq,
            title=title.strip(),
            content=content or "",
            recipient=recipient,
            recipient_type=recipient_type,
            status=DocumentStatus.DRAFT.value,
            template_id=template_id,
            artifact_url=artifact_url,
            author_id=author.id,
            created_at=now,
            updated_at=now,
        )
        document.steps = [
            ApprovalStepModel(
                order=order,
                required_role=role,
                bound_user_id=bound_user_id,
                kind=kind.value,
                status=StepStatus.WAITING.value,
            )
            for order, (role, bound_user_id, kind) in enumerate(normalized, start=1)
        ]
        self.session.add(document)
        self.session.flush()

        logger.info(
            "document_created",
            extra={
                "document_id": str(document.id),
                "number": number,
                "author_id": str(author.id),
                "step_count": len(normalized),
            },
        )
        return document

    def _normalize_step(
        self, position: int, spec: StepSpec,
    ) -> tuple[str, UUID | None, StepKind]:
        role = (spec.role or "").strip()
        if not role:
            raise InvalidStepSpecError(position, "role is required")
        known = self._policy.known_roles
        if known and role not in known:
            raise InvalidStepSpecError(position, f"unknown role {role!r}")

        if spec.kind is None or spec.kind == "":
            kind = self._policy.default_step_kind
        else:
            try:
                kind = StepKind(spec.kind)
            except ValueError:
                raise InvalidStepSpecError(
                    position, f"unknown step kind {spec.kind!r}",
                ) from None

        bound = spec.bound_user_id
        if isinstance(bound, str):
            bound = bound.strip() or None
            if bound is not None:
                try:
                    bound = UUID(bound)
                except ValueError:
                    raise InvalidStepSpecError(
                        position, f"malformed bound user id {spec.bound_user_id!r}",
                    ) from None

        return role, bound, kind
