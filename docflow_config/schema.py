"""
WorkflowConfiguration schema.

The human-authored, reviewable source artifact for workflow configuration.
YAML is parsed into these frozen types by the loader; bridges turn them
into the kernel's ``WorkflowPolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ApprovalOrdering(str, Enum):
    """How PENDING steps unlock relative to each other."""

    FLAT = "flat"
    SEQUENTIAL = "sequential"


class EligibilityMode(str, Enum):
    """Whether a step's bound identity restricts who may act on it."""

    ROLE = "role"
    BOUND_IDENTITY = "bound_identity"


@dataclass(frozen=True)
class NumberingDef:
    """Document number format: ``<prefix>/<year>/<zero-padded seq>``."""

    prefix: str = "DOC"
    width: int = 3


@dataclass(frozen=True)
class ApprovalDef:
    ordering: ApprovalOrdering = ApprovalOrdering.FLAT
    eligibility: EligibilityMode = EligibilityMode.ROLE


@dataclass(frozen=True)
class RoleDef:
    """An organizational role steps may require."""

    code: str
    description: str = ""


@dataclass(frozen=True)
class WorkflowConfiguration:
    """Parsed workflow configuration.

    Attributes:
        config_id: Unique identifier (e.g., "DOCFLOW-DEFAULT")
        version: Configuration version number
        checksum: SHA-256 of canonical serialization
        numbering: Document number format
        approval: Ordering and eligibility policy selection
        roles: Role catalogue; empty means any role is accepted
        own_only_roles: Roles that list only their own documents
        default_step_kind: Kind given to steps that do not name one
    """

    config_id: str
    version: int
    checksum: str
    numbering: NumberingDef = field(default_factory=NumberingDef)
    approval: ApprovalDef = field(default_factory=ApprovalDef)
    roles: tuple[RoleDef, ...] = ()
    own_only_roles: tuple[str, ...] = ("STAFF",)
    default_step_kind: str = "reviewer"

    @property
    def role_codes(self) -> frozenset[str]:
        return frozenset(role.code for role in self.roles)
