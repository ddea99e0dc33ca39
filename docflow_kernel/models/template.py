"""
Module: docflow_kernel.models.template
Responsibility: ORM persistence for source templates.  A template is the
    file a rendering service fills in to produce a document artifact; the
    kernel only stores its metadata and storage location.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Deleting a template sets template_id to NULL on the documents that
      referenced it (ON DELETE SET NULL on documents.template_id).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docflow_kernel.db.base import Base
from docflow_kernel.domain.workflow import TemplateRecord


class Template(Base):
    """Registered source template."""

    __tablename__ = "templates"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="docx",
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Template {self.name} file={self.file_name}>"

    def to_dto(self) -> TemplateRecord:
        """Convert ORM model to frozen domain DTO."""
        return TemplateRecord(
            template_id=self.id,
            name=self.name,
            description=self.description,
            file_name=self.file_name,
            file_path=self.file_path,
            file_type=self.file_type,
            created_at=self.created_at,
        )
