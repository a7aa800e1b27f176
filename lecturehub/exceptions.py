"""
lecturehub/exceptions.py
Domain exceptions for module consolidation and attribution

Provides typed exceptions for:
- Draft validation failures (rejected before any write)
- Consistency faults (store changed underneath an operation)
- Partial attribution failures (degraded success, not rolled back)
- Concept graph violations
- Attribution repair attempted by someone other than the group owner
"""
from enum import Enum
from typing import Any, Dict, Optional


class LectureHubException(Exception):
    """Base exception for the consolidation core"""
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationReason(str, Enum):
    """Why a generated draft was rejected"""
    MISSING_TARGET = "MISSING_TARGET"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    DISCIPLINE_MISMATCH = "DISCIPLINE_MISMATCH"
    MISSING_SLUG = "MISSING_SLUG"
    UNKNOWN_DISCIPLINE = "UNKNOWN_DISCIPLINE"
    DUPLICATE_APPEND = "DUPLICATE_APPEND"


class ValidationError(LectureHubException):
    """
    Raised when a generated draft cannot be published as submitted.

    Never retried automatically and never downgraded to create-new; the
    remedy is regenerating the draft.
    """
    status_code = 400

    def __init__(self, reason: ValidationReason, message: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        self.code = reason.value
        status_code = 409 if reason == ValidationReason.DUPLICATE_APPEND else 400
        super().__init__(message, status_code, details)


class ConsistencyFault(LectureHubException):
    """
    Raised when the store no longer matches what validation saw.

    Examples:
    - Append target deleted between validation and merge
    - Merge result violates a known invariant
    """
    status_code = 409
    code = "CONSISTENCY_FAULT"


class PartialAttributionFailure(LectureHubException):
    """
    Raised when the module and/or photo group committed but linking or
    ledger recording did not.

    Carries enough identifiers for the caller to retry only the failed step.
    """
    status_code = 202
    code = "PARTIAL_ATTRIBUTION"

    def __init__(
        self,
        message: str,
        module_slug: Optional[str],
        photo_group_id: Optional[str],
        failed_step: str,
        module: Optional[Dict[str, Any]] = None,
    ):
        self.module_slug = module_slug
        self.photo_group_id = photo_group_id
        self.failed_step = failed_step
        self.module = module
        super().__init__(
            message,
            details={
                "module_slug": module_slug,
                "photo_group_id": photo_group_id,
                "failed_step": failed_step,
            }
        )


class NotFoundError(LectureHubException):
    """Raised when requested resource doesn't exist."""
    status_code = 404
    code = "NOT_FOUND"


class ModuleNotFoundError(NotFoundError):
    code = "MODULE_NOT_FOUND"

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Module not found: {slug}", details={"slug": slug})


class DisciplineNotFoundError(NotFoundError):
    code = "DISCIPLINE_NOT_FOUND"

    def __init__(self, discipline_id: str):
        self.discipline_id = discipline_id
        super().__init__(f"Discipline not found: {discipline_id}", details={"discipline_id": discipline_id})


class ConceptNotFoundError(NotFoundError):
    code = "CONCEPT_NOT_FOUND"

    def __init__(self, concept_id: int):
        super().__init__(f"Concept not found: {concept_id}", details={"concept_id": concept_id})


class PhotoGroupNotFoundError(NotFoundError):
    code = "PHOTO_GROUP_NOT_FOUND"

    def __init__(self, photo_group_id: str):
        super().__init__(f"Photo group not found: {photo_group_id}", details={"photo_group_id": photo_group_id})


class ConceptCycleError(LectureHubException):
    """Raised when a parent or prerequisite edge would close a cycle."""
    status_code = 400
    code = "CONCEPT_CYCLE"


class ConceptDisciplineMismatchError(LectureHubException):
    """Raised when linking a concept to a module of another discipline."""
    status_code = 400
    code = "CONCEPT_DISCIPLINE_MISMATCH"


class PhotoGroupOwnershipError(LectureHubException):
    """Raised when a user tries to attribute a photo group they did not create."""
    status_code = 403
    code = "PHOTO_GROUP_FORBIDDEN"

    def __init__(self, photo_group_id: str):
        super().__init__(
            f"Photo group {photo_group_id} belongs to another user",
            details={"photo_group_id": photo_group_id}
        )
