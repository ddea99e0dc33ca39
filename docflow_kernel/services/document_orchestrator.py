"""
DocumentOrchestrator -- request-scoped facade over the document workflow.

Responsibility:
    Exposes the operation surface used by the presentation layer
    (create, submit, approve, reject, edit, get, list, inbox, render) and
    owns the transaction of each call: one session per operation, commit
    on success, rollback on any exception.  Results leave as frozen
    ``DocumentRecord`` / ``InboxItem`` DTOs built before the session closes.

Architecture position:
    Kernel > Services -- the outermost kernel service.  Wires
    DocumentBuilder, WorkflowService, TemplateService and DocumentSelector
    around a caller-supplied session factory, clock and policy.

Invariants enforced:
    - No partial state: a failed operation rolls back every write it made,
      including a sequence allocation.
    - Every call binds ``actor_id``, ``document_id`` and ``action`` into
      the log context for the duration of the call, plus a fresh
      ``correlation_id`` unless the caller already bound one.

Failure modes:
    Whatever the wrapped service raises, re-raised after rollback.

Usage:
    orchestrator = DocumentOrchestrator(get_session_factory(), SystemClock())
    record = orchestrator.create_document(author, "Budget memo", steps)
    orchestrator.submit(record.document_id, author)
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Protocol
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from docflow_kernel.db.engine import session_scope
from docflow_kernel.domain.clock import Clock, SystemClock
from docflow_kernel.domain.policies import WorkflowPolicy
from docflow_kernel.domain.workflow import (
    DocumentFields,
    DocumentRecord,
    InboxItem,
    Principal,
    StepSpec,
    TemplateRecord,
    WorkflowAction,
)
from docflow_kernel.exceptions import DocumentNotFoundError, MissingTemplateError
from docflow_kernel.logging_config import LogContext, get_logger
from docflow_kernel.selectors.document_selector import DocumentSelector
from docflow_kernel.services.document_builder import DocumentBuilder
from docflow_kernel.services.template_service import TemplateService
from docflow_kernel.services.workflow_service import WorkflowService

logger = get_logger("services.document_orchestrator")


class ArtifactRenderer(Protocol):
    """Rendering collaborator: fills a template and returns where it stored the result."""

    def render(self, template: TemplateRecord, fields: DocumentFields) -> str:
        ...


class DocumentOrchestrator:
    """
    Transaction-owning entry point for document operations.

    Contract:
        Every method runs in its own transaction.  The acting principal is
        passed in explicitly; nothing is read from ambient state.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        policy: WorkflowPolicy | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._policy = policy or WorkflowPolicy()

    @contextmanager
    def _operation(
        self,
        action: str,
        actor: Principal | None = None,
        document_id: UUID | None = None,
    ) -> Iterator[Session]:
        correlation_id = None
        if "correlation_id" not in LogContext.get_all():
            correlation_id = str(uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            action=action,
            actor_id=str(actor.id) if actor is not None else None,
            document_id=str(document_id) if document_id is not None else None,
        ):
            with session_scope(self._session_factory) as session:
                yield session

    def _workflow(self, session: Session) -> WorkflowService:
        return WorkflowService(session, self._clock, self._policy)

    # =========================================================================
    # Commands
    # =========================================================================

    def create_document(
        self,
        author: Principal,
        title: str | None,
        steps: Sequence[StepSpec],
        content: str | None = None,
        recipient: str | None = None,
        recipient_type: str | None = None,
        template_id: UUID | None = None,
        artifact_url: str | None = None,
    ) -> DocumentRecord:
        with self._operation("create", author) as session:
            document = DocumentBuilder(session, self._clock, self._policy).create(
                author,
                title,
                steps,
                content=content,
                recipient=recipient,
                recipient_type=recipient_type,
                template_id=template_id,
                artifact_url=artifact_url,
            )
            return document.to_dto()

    def submit(self, document_id: UUID, actor: Principal) -> DocumentRecord:
        with self._operation(WorkflowAction.SUBMIT.value, actor, document_id) as session:
            return self._workflow(session).submit(document_id, actor).to_dto()

    def approve(
        self,
        document_id: UUID,
        actor: Principal,
        comment: str | None = None,
    ) -> DocumentRecord:
        with self._operation(WorkflowAction.APPROVE.value, actor, document_id) as session:
            return self._workflow(session).approve(document_id, actor, comment).to_dto()

    def reject(
        self,
        document_id: UUID,
        actor: Principal,
        comment: str | None,
    ) -> DocumentRecord:
        with self._operation(WorkflowAction.REJECT.value, actor, document_id) as session:
            return self._workflow(session).reject(document_id, actor, comment).to_dto()

    def edit_content(
        self,
        document_id: UUID,
        actor: Principal,
        content: str,
    ) -> DocumentRecord:
        with self._operation(WorkflowAction.EDIT.value, actor, document_id) as session:
            return self._workflow(session).edit_content(
                document_id, actor, content,
            ).to_dto()

    def record_artifact(
        self,
        document_id: UUID,
        renderer: ArtifactRenderer,
    ) -> DocumentRecord:
        """Render the document through its template and store the artifact URL."""
        with self._operation("render", document_id=document_id) as session:
            selector = DocumentSelector(session)
            fields = selector.render_fields(document_id, as_of=self._clock.now())
            if fields is None:
                raise DocumentNotFoundError(str(document_id))
            record = selector.get_document(document_id)
            if record.template_id is None:
                raise MissingTemplateError(str(document_id))

            template = TemplateService(session, self._clock).get(record.template_id)
            url = renderer.render(template.to_dto(), fields)
            return self._workflow(session).record_artifact(document_id, url).to_dto()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_document(self, document_id: UUID) -> DocumentRecord:
        with self._operation("get", document_id=document_id) as session:
            record = DocumentSelector(session).get_document(document_id)
            if record is None:
                raise DocumentNotFoundError(str(document_id))
            return record

    def list_documents(self, actor: Principal) -> list[DocumentRecord]:
        with self._operation("list", actor) as session:
            return DocumentSelector(session).list_for_principal(
                actor, self._policy.own_only_roles,
            )

    def inbox(self, actor: Principal) -> list[InboxItem]:
        with self._operation("inbox", actor) as session:
            return DocumentSelector(session).inbox_for(actor.id)
