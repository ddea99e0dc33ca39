"""
Typed Exception Hierarchy for the Docflow Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, CLIs, the UI surface) must map workflow failures to
responses without parsing message strings.  Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (document id, actor id, statuses)

Example - WRONG way to handle errors:
    try:
        workflow.submit(document_id, actor)
    except Exception as e:
        if "draft" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way:
    try:
        workflow.submit(document_id, actor)
    except InvalidStateError as e:
        api_response(status=409, code=e.code)
    except ForbiddenError as e:
        api_response(status=403, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from DocflowError:

    DocflowError (base)
    |
    +-- NotFoundError
    |   +-- DocumentNotFoundError
    |   +-- UserNotFoundError
    |   +-- TemplateNotFoundError
    |
    +-- ForbiddenError
    |   +-- NotDocumentAuthorError
    |   +-- StepBoundToOtherUserError
    |
    +-- InvalidStateError
    |   +-- InvalidDocumentTransitionError
    |   +-- StepConcurrencyError
    |
    +-- InvalidInputError
    |   +-- MissingTitleError
    |   +-- EmptyWorkflowError
    |   +-- InvalidStepSpecError
    |   +-- MissingRejectionCommentError
    |   +-- MissingTemplateError
    |   +-- InvalidTemplateError
    |
    +-- NoEligibleStepError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | DOCUMENT_NOT_FOUND          | Document ID doesn't exist
                | USER_NOT_FOUND              | Author / bound user not in directory
                | TEMPLATE_NOT_FOUND          | Template ID doesn't exist
----------------|-----------------------------|-----------------------------------------
Forbidden       | NOT_DOCUMENT_AUTHOR         | Submit/edit by someone other than author
                | STEP_BOUND_TO_OTHER_USER    | Step pinned to another identity
----------------|-----------------------------|-----------------------------------------
Invalid state   | INVALID_DOCUMENT_TRANSITION | Action not allowed from current status
                | STEP_CONCURRENCY_CONFLICT   | Step changed under a concurrent actor
----------------|-----------------------------|-----------------------------------------
Invalid input   | MISSING_TITLE               | Title empty or blank
                | EMPTY_WORKFLOW              | No approval steps supplied
                | INVALID_STEP_SPEC           | Blank/unknown role or unknown step kind
                | MISSING_REJECTION_COMMENT   | Reject without a comment
                | MISSING_TEMPLATE            | Artifact requested, no template set
                | INVALID_TEMPLATE            | Template name or file missing
----------------|-----------------------------|-----------------------------------------
Authorization   | NO_ELIGIBLE_STEP            | No PENDING step for the actor's role
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Write to finalized content or step

===============================================================================
HANDLING PATTERNS
===============================================================================

1. All errors are terminal for the triggering request.  The kernel never
   retries; the orchestrator rolls the transaction back and re-raises.

2. Catch the category, not the leaf, when mapping to a transport:

    except NotFoundError:        -> 404
    except ForbiddenError:       -> 403
    except InvalidInputError:    -> 400
    except InvalidStateError:    -> 409
    except NoEligibleStepError:  -> 403 "nothing to act on"
"""


class DocflowError(Exception):
    """
    Base exception for all docflow kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DOCFLOW_ERROR"


# Not-found exceptions


class NotFoundError(DocflowError):
    """Base exception for a referenced entity that does not exist."""

    code: str = "NOT_FOUND"


class DocumentNotFoundError(NotFoundError):
    """Document with given ID was not found."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class UserNotFoundError(NotFoundError):
    """User with given ID is not present in the identity directory."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class TemplateNotFoundError(NotFoundError):
    """Template with given ID was not found."""

    code: str = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}")


# Forbidden exceptions


class ForbiddenError(DocflowError):
    """Base exception for an actor lacking permission for a transition."""

    code: str = "FORBIDDEN"


class NotDocumentAuthorError(ForbiddenError):
    """Only the document author may perform this action."""

    code: str = "NOT_DOCUMENT_AUTHOR"

    def __init__(self, document_id: str, actor_id: str, action: str):
        self.document_id = document_id
        self.actor_id = actor_id
        self.action = action
        super().__init__(
            f"Only the author of document {document_id} may {action} it "
            f"(actor {actor_id})"
        )


class StepBoundToOtherUserError(ForbiddenError):
    """
    The matching step is pinned to a different identity.

    Only raised under the bound-identity eligibility policy.
    """

    code: str = "STEP_BOUND_TO_OTHER_USER"

    def __init__(self, document_id: str, step_order: int, actor_id: str):
        self.document_id = document_id
        self.step_order = step_order
        self.actor_id = actor_id
        super().__init__(
            f"Step {step_order} of document {document_id} is assigned to "
            f"another user (actor {actor_id})"
        )


# Invalid-state exceptions


class InvalidStateError(DocflowError):
    """Base exception for a transition attempted from a forbidding state."""

    code: str = "INVALID_STATE"


class InvalidDocumentTransitionError(InvalidStateError):
    """The document's current status does not permit the action."""

    code: str = "INVALID_DOCUMENT_TRANSITION"

    def __init__(self, document_id: str, current_status: str, action: str):
        self.document_id = document_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} document {document_id} in status {current_status}"
        )


class StepConcurrencyError(InvalidStateError):
    """
    The step left PENDING between resolution and update.

    Raised by the compare-and-swap guard when a concurrent actor won.
    """

    code: str = "STEP_CONCURRENCY_CONFLICT"

    def __init__(self, document_id: str, step_id: str):
        self.document_id = document_id
        self.step_id = step_id
        super().__init__(
            f"Step {step_id} of document {document_id} was modified by "
            "another transaction"
        )


# Invalid-input exceptions


class InvalidInputError(DocflowError):
    """Base exception for missing or malformed request input."""

    code: str = "INVALID_INPUT"


class MissingTitleError(InvalidInputError):
    """Document title is missing or blank."""

    code: str = "MISSING_TITLE"

    def __init__(self):
        super().__init__("Document title is required")


class EmptyWorkflowError(InvalidInputError):
    """No approval steps were supplied."""

    code: str = "EMPTY_WORKFLOW"

    def __init__(self):
        super().__init__("At least one approval step is required")


class InvalidStepSpecError(InvalidInputError):
    """A ``StepSpec`` entry is malformed."""

    code: str = "INVALID_STEP_SPEC"

    def __init__(self, position: int, reason: str):
        self.position = position
        self.reason = reason
        super().__init__(f"Invalid approval step #{position}: {reason}")


class MissingRejectionCommentError(InvalidInputError):
    """A rejection must carry a non-empty comment."""

    code: str = "MISSING_REJECTION_COMMENT"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(
            f"A comment is required when rejecting document {document_id}"
        )


class MissingTemplateError(InvalidInputError):
    """An artifact was requested for a document without a template."""

    code: str = "MISSING_TEMPLATE"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document {document_id} has no template")


class InvalidTemplateError(InvalidInputError):
    """Template registration is missing a required field."""

    code: str = "INVALID_TEMPLATE"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Template {field_name} is required")


# Authorization


class NoEligibleStepError(DocflowError):
    """No PENDING step matches the acting principal."""

    code: str = "NO_ELIGIBLE_STEP"

    def __init__(self, document_id: str, role: str):
        self.document_id = document_id
        self.role = role
        super().__init__(
            f"No pending approval step for role {role} on document {document_id}"
        )


# Immutability


class ImmutabilityViolationError(DocflowError):
    """
    Attempted to modify finalized data.

    Content of a submitted document and terminal approval steps are
    immutable.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
