"""
Config -> Kernel Bridges.

Functions that convert a ``WorkflowConfiguration`` into kernel inputs.
They live in docflow_config (the producer) because the kernel must never
import docflow_config.

Usage:
    from docflow_config import get_active_config
    from docflow_config.bridges import build_workflow_policy

    policy = build_workflow_policy(get_active_config())
    orchestrator = DocumentOrchestrator(session_factory, clock, policy)
"""

from __future__ import annotations

from docflow_config.schema import (
    ApprovalOrdering,
    EligibilityMode,
    WorkflowConfiguration,
)
from docflow_kernel.domain.policies import (
    BoundIdentityEligibility,
    EligibilityPolicy,
    FlatApproval,
    OrderingPolicy,
    RoleEligibility,
    SequentialApproval,
    WorkflowPolicy,
)
from docflow_kernel.domain.workflow import StepKind

_ORDERING: dict[ApprovalOrdering, type[OrderingPolicy]] = {
    ApprovalOrdering.FLAT: FlatApproval,
    ApprovalOrdering.SEQUENTIAL: SequentialApproval,
}

_ELIGIBILITY: dict[EligibilityMode, type[EligibilityPolicy]] = {
    EligibilityMode.ROLE: RoleEligibility,
    EligibilityMode.BOUND_IDENTITY: BoundIdentityEligibility,
}


def build_workflow_policy(config: WorkflowConfiguration) -> WorkflowPolicy:
    """Build the kernel ``WorkflowPolicy`` selected by ``config``."""
    return WorkflowPolicy(
        eligibility=_ELIGIBILITY[config.approval.eligibility](),
        ordering=_ORDERING[config.approval.ordering](),
        number_prefix=config.numbering.prefix,
        number_width=config.numbering.width,
        known_roles=config.role_codes,
        own_only_roles=frozenset(config.own_only_roles),
        default_step_kind=StepKind(config.default_step_kind),
    )
