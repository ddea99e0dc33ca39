"""
Docflow Kernel - document approval workflow core.

A transactional approval engine with:
- Sequential, gap-safe document numbering
- Explicit document and step state machines
- Role-based step authorization
- Atomic, at-most-one-writer step transitions
"""

__version__ = "0.1.0"
