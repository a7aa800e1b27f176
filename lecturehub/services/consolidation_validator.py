"""
Consolidation Decision Validator

Checks a generated draft's create-new / append-to decision against the
store before anything is written.

A decision that cannot be honoured is rejected with a ValidationError. It is
never silently turned into a create-new: an append-to with a bad target means
the generator hallucinated a slug, and the fix is regenerating.

Re-submitting an append the target has already absorbed is rejected here
with DUPLICATE_APPEND, so a retried publish writes nothing.
"""
import hashlib
import json
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.config.feature_flags import feature_flags
from lecturehub.exceptions import ValidationError, ValidationReason
from lecturehub.orm.discipline import Discipline
from lecturehub.orm.module import Module
from lecturehub.schemas.module import ModuleDraft

logger = logging.getLogger(__name__)

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def derive_slug(title: str) -> str:
    """
    URL slug from a title.

    derive_slug("Intro to Stats!") -> "intro-to-stats"
    derive_slug("A  B") -> "a-b"
    """
    slug = _INVALID_SLUG_CHARS.sub("", (title or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip().strip("-")


def compute_merge_fingerprint(draft: ModuleDraft) -> str:
    """SHA-256 over the canonical JSON of everything an append merges into its target."""
    payload = {
        "lessons": draft.lessons or [],
        "exercises": draft.exercises or [],
        "concepts": draft.concepts or [],
        "tags": draft.tags or [],
        "prerequisites": draft.prerequisites or [],
        "learning_outcomes": draft.learning_outcomes or [],
        "estimated_time": draft.estimated_time,
    }
    data_json = json.dumps(payload, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(data_json.encode()).hexdigest()


def reject_duplicate_append(target_slug: str, fingerprint: str, fingerprints: Iterable[str]) -> None:
    if feature_flags.FEATURE_REJECT_DUPLICATE_APPEND and fingerprint in fingerprints:
        logger.info(f"Rejected duplicate append to {target_slug}")
        raise ValidationError(
            ValidationReason.DUPLICATE_APPEND,
            f"This content was already appended to module '{target_slug}'",
            details={"target_module_slug": target_slug, "fingerprint": fingerprint}
        )


# ================= DECISIONS =================

@dataclass(frozen=True)
class CreateNew:
    slug: str
    title: str


@dataclass(frozen=True)
class AppendTo:
    target_slug: str


Decision = Union[CreateNew, AppendTo]


@dataclass(frozen=True)
class ValidatedDraft:
    """A draft whose decision has been checked; draft.slug is always set for create-new."""
    draft: ModuleDraft
    decision: Decision

    @property
    def is_append(self) -> bool:
        return isinstance(self.decision, AppendTo)

    @property
    def target_slug(self) -> str:
        if isinstance(self.decision, AppendTo):
            return self.decision.target_slug
        return self.decision.slug


async def _published_fingerprints(db: AsyncSession, slug: str) -> Optional[List[str]]:
    """Merge fingerprints of the published module with this slug, or None if there is none."""
    result = await db.execute(
        select(Module.merge_fingerprints).where(Module.slug == slug, Module.draft == False)
    )
    row = result.first()
    if row is None:
        return None
    return list(row.merge_fingerprints or [])


async def discipline_exists(db: AsyncSession, discipline_id: str) -> bool:
    result = await db.execute(select(Discipline.id).where(Discipline.id == discipline_id))
    return result.first() is not None


def _check_discipline_selection(draft: ModuleDraft) -> None:
    selection = draft.discipline_selection
    if (
        draft.discipline
        and selection is not None
        and selection.selected_discipline_id
        and selection.selected_discipline_id != draft.discipline
    ):
        raise ValidationError(
            ValidationReason.DISCIPLINE_MISMATCH,
            f"Draft discipline '{draft.discipline}' does not match selected "
            f"discipline '{selection.selected_discipline_id}'",
            details={
                "discipline": draft.discipline,
                "selected_discipline_id": selection.selected_discipline_id,
            }
        )


async def validate_draft(
    db: AsyncSession,
    draft: ModuleDraft,
    allowed_slugs: Optional[Iterable[str]] = None,
) -> ValidatedDraft:
    """
    Validate a generated draft's consolidation decision.

    Args:
        draft: Parsed generator output
        allowed_slugs: Optional slug universe from the discipline context the
            generator was shown; append targets outside it are rejected

    Raises:
        ValidationError with one of MISSING_TARGET, TARGET_NOT_FOUND,
        DUPLICATE_APPEND, MISSING_SLUG, DISCIPLINE_MISMATCH, UNKNOWN_DISCIPLINE
    """
    consolidation = draft.consolidation

    if consolidation.action == "append-to":
        target_slug = (consolidation.target_module_slug or "").strip()
        if not target_slug:
            raise ValidationError(
                ValidationReason.MISSING_TARGET,
                "Cannot append: targetModuleSlug is missing. Please regenerate the module."
            )

        allowed = set(allowed_slugs) if allowed_slugs is not None else None
        fingerprints = None
        if allowed is None or target_slug in allowed:
            fingerprints = await _published_fingerprints(db, target_slug)
        if fingerprints is None:
            logger.info(f"Rejected append-to: target '{target_slug}' is not a published module")
            raise ValidationError(
                ValidationReason.TARGET_NOT_FOUND,
                f"Cannot append: target module '{target_slug}' does not exist",
                details={"target_module_slug": target_slug}
            )

        reject_duplicate_append(target_slug, compute_merge_fingerprint(draft), fingerprints)
        decision: Decision = AppendTo(target_slug=target_slug)
    else:
        slug = (draft.slug or "").strip()
        if not slug:
            slug = derive_slug(draft.title)
            if not slug:
                raise ValidationError(
                    ValidationReason.MISSING_SLUG,
                    "Cannot publish module: missing both slug and title"
                )
            logger.info(f"Derived slug '{slug}' from title '{draft.title}'")
            draft = draft.model_copy(update={"slug": slug})
        decision = CreateNew(slug=slug, title=draft.title)

    _check_discipline_selection(draft)

    if draft.discipline and not await discipline_exists(db, draft.discipline):
        raise ValidationError(
            ValidationReason.UNKNOWN_DISCIPLINE,
            f"Discipline '{draft.discipline}' is not in the catalog",
            details={"discipline": draft.discipline}
        )

    return ValidatedDraft(draft=draft, decision=decision)
