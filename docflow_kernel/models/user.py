"""
Module: docflow_kernel.models.user
Responsibility: ORM persistence for the staff directory.  Users are the
    non-owning reference target for document authors, bound step identities
    and acting principals.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ value objects only.

Failure modes:
    - IntegrityError on duplicate email.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from docflow_kernel.db.base import Base
from docflow_kernel.domain.workflow import Principal


class User(Base):
    """A member of staff who can author documents or act on approval steps."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"

    def to_principal(self) -> Principal:
        return Principal(id=self.id, role=self.role)
