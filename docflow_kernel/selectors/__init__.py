"""Read-only query selectors returning frozen DTOs."""

from docflow_kernel.selectors.base import BaseSelector
from docflow_kernel.selectors.document_selector import DocumentSelector

__all__ = [
    "BaseSelector",
    "DocumentSelector",
]
