"""Kernel services.  Each flushes in the caller's transaction, except
DocumentOrchestrator, which owns one transaction per operation."""

from docflow_kernel.services.document_builder import DocumentBuilder
from docflow_kernel.services.document_orchestrator import (
    ArtifactRenderer,
    DocumentOrchestrator,
)
from docflow_kernel.services.sequence_service import SequenceCounter, SequenceService
from docflow_kernel.services.template_service import TemplateService
from docflow_kernel.services.user_service import UserService
from docflow_kernel.services.workflow_service import WorkflowService

__all__ = [
    "DocumentBuilder",
    "DocumentOrchestrator",
    "ArtifactRenderer",
    "SequenceCounter",
    "SequenceService",
    "TemplateService",
    "UserService",
    "WorkflowService",
]
