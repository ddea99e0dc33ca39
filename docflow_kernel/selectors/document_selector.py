"""
Module: docflow_kernel.selectors.document_selector
Responsibility: Read paths over documents and their approval steps: single
    document lookup, the per-principal document list, the user inbox and
    the field set handed to a rendering service.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Roles listed as own-only see only the documents they authored.  Every
      other role sees its own documents plus any document with a step that
      requires that role, in any status.
    - Lists are ordered by updated_at descending, then document sequence
      descending (numeric, so 1000 sorts above 999).
    - Steps inside every record are ordered by step order.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlalchemy import exists, or_, select

from docflow_kernel.domain.workflow import (
    DocumentFields,
    DocumentRecord,
    InboxItem,
    Principal,
    StepKind,
)
from docflow_kernel.models.document import ApprovalStepModel, DocumentModel
from docflow_kernel.selectors.base import BaseSelector

INBOX_CREATED = "created"
INBOX_RECEIVED = "received"

_NEWEST_FIRST = (DocumentModel.updated_at.desc(), DocumentModel.seq.desc())


class DocumentSelector(BaseSelector[DocumentModel]):
    """Document queries returning ``DocumentRecord`` and friends."""

    def get_document(self, document_id: UUID) -> DocumentRecord | None:
        document = self.session.get(DocumentModel, document_id)
        return document.to_dto() if document is not None else None

    def list_for_principal(
        self,
        principal: Principal,
        own_only_roles: Collection[str] = frozenset({"STAFF"}),
    ) -> list[DocumentRecord]:
        """Documents visible to ``principal``."""
        query = select(DocumentModel)
        if principal.role in own_only_roles:
            query = query.where(DocumentModel.author_id == principal.id)
        else:
            has_role_step = exists().where(
                ApprovalStepModel.document_id == DocumentModel.id,
                ApprovalStepModel.required_role == principal.role,
            )
            query = query.where(
                or_(DocumentModel.author_id == principal.id, has_role_step)
            )

        documents = self.session.execute(query.order_by(*_NEWEST_FIRST)).scalars()
        return [document.to_dto() for document in documents]

    def inbox_for(self, user_id: UUID) -> list[InboxItem]:
        """Documents the user authored, or where a step is bound to them."""
        bound_to_user = exists().where(
            ApprovalStepModel.document_id == DocumentModel.id,
            ApprovalStepModel.bound_user_id == user_id,
        )
        documents = self.session.execute(
            select(DocumentModel)
            .where(or_(DocumentModel.author_id == user_id, bound_to_user))
            .order_by(*_NEWEST_FIRST)
        ).scalars()

        items = []
        for document in documents:
            record = document.to_dto()
            relation = (
                INBOX_CREATED if document.author_id == user_id else INBOX_RECEIVED
            )
            items.append(
                InboxItem(
                    document_id=record.document_id,
                    number=record.number,
                    title=record.title,
                    status=record.status,
                    author_name=record.author_name,
                    relation=relation,
                    updated_at=record.updated_at,
                    steps=record.steps,
                )
            )
        return items

    def render_fields(
        self, document_id: UUID, as_of: datetime | None = None,
    ) -> DocumentFields | None:
        """
        Placeholder values for rendering a document from its template.

        Signer and reviewer labels use the bound user's name where a step
        has one, else the required role.  ``as_of`` defaults to the
        document's last update.
        """
        document = self.session.get(DocumentModel, document_id)
        if document is None:
            return None

        signers: list[str] = []
        reviewers: list[str] = []
        for step in document.steps:
            label = (
                step.bound_user.name if step.bound_user is not None
                else step.required_role
            )
            if step.kind == StepKind.SIGNER:
                signers.append(label)
            else:
                reviewers.append(label)

        return DocumentFields(
            number=document.number,
            title=document.title,
            date=as_of or document.updated_at,
            author_name=document.author.name,
            author_role=document.author.role,
            recipient=document.recipient,
            content=document.content,
            signers=tuple(signers),
            reviewers=tuple(reviewers),
        )
