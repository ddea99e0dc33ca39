"""Pure workflow domain: lifecycles, policies, clock.  Zero I/O."""

from docflow_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from docflow_kernel.domain.policies import (
    BoundIdentityEligibility,
    FlatApproval,
    RoleEligibility,
    SequentialApproval,
    WorkflowPolicy,
    evaluate_completion,
    resolve_actionable_step,
)
from docflow_kernel.domain.workflow import (
    ApprovalStepRecord,
    DocumentRecord,
    DocumentStatus,
    Principal,
    StepKind,
    StepSpec,
    StepStatus,
    TemplateRecord,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "WorkflowPolicy",
    "RoleEligibility",
    "BoundIdentityEligibility",
    "FlatApproval",
    "SequentialApproval",
    "resolve_actionable_step",
    "evaluate_completion",
    "ApprovalStepRecord",
    "DocumentRecord",
    "DocumentStatus",
    "StepStatus",
    "StepKind",
    "StepSpec",
    "Principal",
    "TemplateRecord",
]
