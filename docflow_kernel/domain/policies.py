"""
Authorization and completion policies (``docflow_kernel.domain.policies``).

Responsibility
--------------
Pure decision logic consulted by the workflow state machine:

* the **Authorization Resolver** -- given a document's steps and an acting
  principal, pick the one step that principal may act on right now;
* the **eligibility policies** -- ``RoleEligibility`` (default) and
  ``BoundIdentityEligibility``;
* the **ordering policies** -- ``FlatApproval`` (default: every PENDING
  step is actionable) and ``SequentialApproval`` (step N+1 waits for N);
* the **Completion Evaluator** -- aggregate check deciding when a document
  has collected every approval.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Steps are accepted duck-typed (ORM
rows or ``ApprovalStepRecord``) through the ``StepLike`` protocol.

Invariants enforced
-------------------
* Only PENDING steps whose ``required_role`` equals the principal's role
  are candidates.
* Ties are broken by ascending ``order``.
* Completion ignores step order: zero PENDING steps means APPROVED.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Protocol, Sequence, TypeVar
from uuid import UUID

from docflow_kernel.domain.workflow import (
    DocumentStatus,
    Principal,
    StepKind,
    StepStatus,
)
from docflow_kernel.exceptions import (
    NoEligibleStepError,
    StepBoundToOtherUserError,
)


class StepLike(Protocol):
    """Minimal view of an approval step used by the policies."""

    order: int
    status: str
    required_role: str
    bound_user_id: UUID | None


S = TypeVar("S", bound=StepLike)


# =========================================================================
# Eligibility
# =========================================================================


class EligibilityPolicy(ABC):
    """Decides whether a role-matching PENDING step may be taken by a principal."""

    name: str = ""

    @abstractmethod
    def permits(self, step: StepLike, principal: Principal) -> bool:
        ...


class RoleEligibility(EligibilityPolicy):
    """
    Any principal holding the required role may act.

    The step's bound identity is stored for display but not checked.
    """

    name = "role"

    def permits(self, step: StepLike, principal: Principal) -> bool:
        return True


class BoundIdentityEligibility(EligibilityPolicy):
    """A step with a bound identity may only be taken by that identity."""

    name = "bound_identity"

    def permits(self, step: StepLike, principal: Principal) -> bool:
        return step.bound_user_id is None or step.bound_user_id == principal.id


# =========================================================================
# Ordering
# =========================================================================


class OrderingPolicy(ABC):
    """Decides whether a PENDING step is unlocked given its siblings."""

    name: str = ""

    @abstractmethod
    def is_unlocked(self, step: StepLike, steps: Sequence[StepLike]) -> bool:
        ...


class FlatApproval(OrderingPolicy):
    """All steps are activated together and may be acted on in any order."""

    name = "flat"

    def is_unlocked(self, step: StepLike, steps: Sequence[StepLike]) -> bool:
        return True


class SequentialApproval(OrderingPolicy):
    """A step is actionable only after every lower-order step approved."""

    name = "sequential"

    def is_unlocked(self, step: StepLike, steps: Sequence[StepLike]) -> bool:
        return all(
            other.status == StepStatus.APPROVED
            for other in steps
            if other.order < step.order
        )


# =========================================================================
# Policy bundle
# =========================================================================


@dataclass(frozen=True)
class WorkflowPolicy:
    """Kernel-side workflow settings, built from configuration by a bridge."""

    eligibility: EligibilityPolicy = field(default_factory=RoleEligibility)
    ordering: OrderingPolicy = field(default_factory=FlatApproval)
    number_prefix: str = "DOC"
    number_width: int = 3
    known_roles: frozenset[str] = frozenset()
    own_only_roles: frozenset[str] = frozenset({"STAFF"})
    default_step_kind: StepKind = StepKind.REVIEWER


# =========================================================================
# Authorization Resolver
# =========================================================================


def resolve_actionable_step(
    document_id: UUID,
    steps: Sequence[S],
    principal: Principal,
    policy: WorkflowPolicy,
) -> S:
    """
    Return the step ``principal`` may act on now.

    Raises:
        NoEligibleStepError: no unlocked PENDING step matches the role.
        StepBoundToOtherUserError: role matches, but every candidate is
            bound to another identity under the active eligibility policy.
    """
    ordered = sorted(steps, key=lambda s: s.order)
    candidates = [
        step
        for step in ordered
        if step.status == StepStatus.PENDING
        and step.required_role == principal.role
        and policy.ordering.is_unlocked(step, ordered)
    ]
    if not candidates:
        raise NoEligibleStepError(str(document_id), principal.role)

    for step in candidates:
        if policy.eligibility.permits(step, principal):
            return step

    raise StepBoundToOtherUserError(
        str(document_id), candidates[0].order, str(principal.id),
    )


# =========================================================================
# Completion Evaluator
# =========================================================================


def count_pending(steps: Sequence[StepLike]) -> int:
    return sum(1 for step in steps if step.status == StepStatus.PENDING)


def evaluate_completion(pending_count: int) -> DocumentStatus:
    """APPROVED once no step is outstanding, otherwise still PENDING."""
    if pending_count < 0:
        raise ValueError(f"pending_count cannot be negative: {pending_count}")
    if pending_count == 0:
        return DocumentStatus.APPROVED
    return DocumentStatus.PENDING
