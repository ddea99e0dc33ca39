"""Tests for TemplateService -- template registry."""

from datetime import timedelta
from uuid import uuid4

import pytest

from docflow_kernel.exceptions import (
    InvalidInputError,
    InvalidTemplateError,
    TemplateNotFoundError,
)
from docflow_kernel.models.document import DocumentModel
from docflow_kernel.services.template_service import TemplateService


@pytest.fixture
def templates(session, deterministic_clock):
    return TemplateService(session, deterministic_clock)


class TestRegister:

    def test_register_and_get(self, templates):
        template = templates.register(
            "Surat Keluar", "surat.docx", "https://files.example/surat.docx",
            description="Outgoing letter",
        )
        fetched = templates.get(template.id)
        assert fetched.name == "Surat Keluar"
        assert fetched.description == "Outgoing letter"
        assert fetched.file_type == "docx"

    def test_file_type_from_extension(self, templates):
        template = templates.register("Sheet", "budget.XLSX", "https://f/budget.XLSX")
        assert template.file_type == "xlsx"

    def test_file_type_defaults_to_docx(self, templates):
        template = templates.register("Plain", "memo", "https://f/memo")
        assert template.file_type == "docx"

    @pytest.mark.parametrize("field_name,args", [
        ("name", ("", "a.docx", "https://f/a.docx")),
        ("file_name", ("A", " ", "https://f/a.docx")),
        ("file_path", ("A", "a.docx", None)),
    ])
    def test_required_fields(self, templates, field_name, args):
        with pytest.raises(InvalidTemplateError) as exc_info:
            templates.register(*args)
        assert exc_info.value.field_name == field_name
        assert isinstance(exc_info.value, InvalidInputError)

    def test_to_dto(self, templates):
        template = templates.register("Memo", "memo.docx", "https://f/memo.docx")
        record = template.to_dto()
        assert record.template_id == template.id
        assert record.file_path == "https://f/memo.docx"


class TestQueries:

    def test_get_unknown(self, templates):
        with pytest.raises(TemplateNotFoundError):
            templates.get(uuid4())

    def test_list_newest_first(self, templates, deterministic_clock):
        templates.register("Old", "old.docx", "https://f/old.docx")
        deterministic_clock.advance(int(timedelta(days=1).total_seconds()))
        templates.register("New", "new.docx", "https://f/new.docx")
        assert [t.name for t in templates.list_templates()] == ["New", "Old"]


class TestDelete:

    def test_delete(self, templates):
        template = templates.register("Memo", "memo.docx", "https://f/memo.docx")
        templates.delete(template.id)
        with pytest.raises(TemplateNotFoundError):
            templates.get(template.id)

    def test_delete_unknown(self, templates):
        with pytest.raises(TemplateNotFoundError):
            templates.delete(uuid4())

    def test_documents_keep_null_reference(self, templates, create_document, session):
        template = templates.register("Memo", "memo.docx", "https://f/memo.docx")
        document = create_document(template_id=template.id)
        document_id = document.id

        templates.delete(template.id)
        session.expire_all()
        assert session.get(DocumentModel, document_id).template_id is None
