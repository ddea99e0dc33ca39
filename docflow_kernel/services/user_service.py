"""
UserService -- the staff directory.

Responsibility:
    Registers and looks up users and turns a stored user into the
    ``Principal`` that every workflow operation takes.  Authentication
    itself happens outside the kernel; this is only the directory the
    identity provider resolves against.

Architecture position:
    Kernel > Services -- imperative shell.  Flushes only.

Failure modes:
    - UserNotFoundError: unknown user id.
    - IntegrityError: duplicate email.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from docflow_kernel.domain.clock import Clock
from docflow_kernel.domain.workflow import Principal
from docflow_kernel.exceptions import UserNotFoundError
from docflow_kernel.logging_config import get_logger
from docflow_kernel.models.user import User
from docflow_kernel.services.base import BaseService

logger = get_logger("services.user")


class UserService(BaseService[User]):

    def __init__(self, session: Session, clock: Clock):
        super().__init__(session)
        self._clock = clock

    def register(self, name: str, email: str, role: str) -> User:
        user = User(
            name=name,
            email=email.strip().lower(),
            role=role,
            created_at=self._clock.now(),
        )
        self.session.add(user)
        self.session.flush()
        logger.info(
            "user_registered",
            extra={"user_id": str(user.id), "role": role},
        )
        return user

    def get(self, user_id: UUID) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    def principal_for(self, user_id: UUID) -> Principal:
        return self.get(user_id).to_principal()

    def list_users(self, role: str | None = None) -> list[User]:
        query = select(User).order_by(User.name)
        if role is not None:
            query = query.where(User.role == role)
        return list(self.session.execute(query).scalars())

    def find_by_email(self, email: str) -> User | None:
        return self.session.execute(
            select(User).where(User.email == email.strip().lower())
        ).scalar_one_or_none()
