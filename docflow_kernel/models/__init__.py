"""ORM models for the document workflow kernel."""

from docflow_kernel.models.document import ApprovalStepModel, DocumentModel
from docflow_kernel.models.template import Template
from docflow_kernel.models.user import User

__all__ = [
    "User",
    "Template",
    "DocumentModel",
    "ApprovalStepModel",
]
