"""
TemplateService -- registry of source templates.

Responsibility:
    Registers, looks up, lists and deletes the templates a rendering
    service fills in.  The kernel stores metadata and a storage location
    only; it never reads template bytes.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes only.

Failure modes:
    - InvalidTemplateError: missing name, file name or file path.
    - TemplateNotFoundError: unknown template id.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from docflow_kernel.domain.clock import Clock
from docflow_kernel.exceptions import InvalidTemplateError, TemplateNotFoundError
from docflow_kernel.logging_config import get_logger
from docflow_kernel.models.template import Template
from docflow_kernel.services.base import BaseService

logger = get_logger("services.template")


class TemplateService(BaseService[Template]):
    """Create/read/delete access to the template registry."""

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self._clock = clock

    def register(
        self,
        name: str,
        file_name: str,
        file_path: str,
        description: str | None = None,
        file_type: str | None = None,
    ) -> Template:
        for field_name, value in (
            ("name", name),
            ("file_name", file_name),
            ("file_path", file_path),
        ):
            if value is None or not value.strip():
                raise InvalidTemplateError(field_name)

        if not file_type:
            _, dot, extension = file_name.rpartition(".")
            file_type = extension.lower() if dot and extension else "docx"

        template = Template(
            name=name.strip(),
            description=description,
            file_name=file_name.strip(),
            file_path=file_path.strip(),
            file_type=file_type,
            created_at=self._clock.now(),
        )
        self.session.add(template)
        self.session.flush()

        logger.info(
            "template_registered",
            extra={
                "template_id": str(template.id),
                "file_name": template.file_name,
                "file_type": template.file_type,
            },
        )
        return template

    def get(self, template_id: UUID) -> Template:
        template = self.session.get(Template, template_id)
        if template is None:
            raise TemplateNotFoundError(str(template_id))
        return template

    def list_templates(self) -> list[Template]:
        """All templates, newest first."""
        return list(
            self.session.execute(
                select(Template).order_by(
                    Template.created_at.desc(), Template.name,
                )
            ).scalars()
        )

    def delete(self, template_id: UUID) -> None:
        """Remove a template; documents that used it keep a NULL reference."""
        template = self.get(template_id)
        self.session.delete(template)
        self.session.flush()
        logger.info("template_deleted", extra={"template_id": str(template_id)})
