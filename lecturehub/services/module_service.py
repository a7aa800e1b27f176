"""
Module Merge Engine

Persists validated drafts either as a new module or merged into an existing
published module.

Publish flow (one transaction):
    Validated -> CreatePath | AppendPath -> Persisted -> CounterReconciled

Rules:
- create-new upserts by slug; created_by is only set on insert
- append-to locks the target row (SELECT ... FOR UPDATE) before merging
- Merge keeps the target's slug, title and discipline; lessons and
  exercises are existing-then-new; concepts, tags, prerequisites and
  learning outcomes are unioned first-occurrence-wins (case-sensitive)
- Each appended payload is fingerprinted; re-appending the same payload to
  the same target is rejected with DUPLICATE_APPEND by validation and again
  under the row lock, for appends racing each other
- module_count is reconciled inside the same transaction, never incremented
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.exceptions import (
    ConsistencyFault,
    ModuleNotFoundError,
    ValidationError,
    ValidationReason,
)
from lecturehub.orm.module import Module
from lecturehub.orm.user_contribution import ContributionType
from lecturehub.schemas.module import ModuleDraft, ModuleUpdate
from lecturehub.services import concept_service
from lecturehub.services.consolidation_validator import (
    ValidatedDraft,
    compute_merge_fingerprint,
    derive_slug,
    discipline_exists,
    reject_duplicate_append,
    validate_draft,
)
from lecturehub.services.discipline_counter import reconcile_discipline
from lecturehub.services.photo_attribution_service import record_user_contribution

logger = logging.getLogger(__name__)

CREATE_NEW = {"action": "create-new"}
MAX_RECENT_MODULES = 20


# ================= MERGE HELPERS =================

def union_preserving_order(*lists: Iterable[str]) -> List[str]:
    """Concatenate and drop repeats, keeping the first occurrence. Case-sensitive."""
    seen = set()
    merged = []
    for values in lists:
        for value in values or []:
            if value in seen:
                continue
            seen.add(value)
            merged.append(value)
    return merged


def _sum_estimated_time(existing: Optional[int], new: Optional[int]) -> Optional[int]:
    if existing is None and new is None:
        return None
    return (existing or 0) + (new or 0)


def apply_merge(module: Module, draft: ModuleDraft) -> None:
    """
    Merge draft content into an existing module in place.

    JSON columns are reassigned, never mutated, so the ORM sees the change.
    """
    module.lessons = list(module.lessons or []) + list(draft.lessons)
    module.exercises = list(module.exercises or []) + list(draft.exercises)
    module.concepts = union_preserving_order(module.concepts, draft.concepts)
    module.tags = union_preserving_order(module.tags, draft.tags)
    module.prerequisites = union_preserving_order(module.prerequisites, draft.prerequisites)
    module.learning_outcomes = union_preserving_order(module.learning_outcomes, draft.learning_outcomes)
    module.estimated_time = _sum_estimated_time(module.estimated_time, draft.estimated_time)
    if draft.original_photos:
        module.original_photos = list(module.original_photos or []) + list(draft.original_photos)
    module.draft = False
    module.consolidation = dict(CREATE_NEW)


def _apply_draft_fields(module: Module, draft: ModuleDraft) -> None:
    """Copy every content field of a draft onto a module row (create path)."""
    module.title = draft.title or draft.slug
    module.description = draft.description
    module.lessons = list(draft.lessons)
    module.exercises = list(draft.exercises)
    module.tags = union_preserving_order(draft.tags)
    module.concepts = union_preserving_order(draft.concepts)
    module.prerequisites = union_preserving_order(draft.prerequisites)
    module.learning_outcomes = union_preserving_order(draft.learning_outcomes)
    module.estimated_time = draft.estimated_time
    module.discipline_id = draft.discipline
    module.version = draft.version
    module.course = draft.course
    module.source_type = draft.source.type
    module.source_institution = draft.source.institution
    module.contributor = draft.source.contributor
    module.original_photos = draft.original_photos
    module.consolidation = dict(CREATE_NEW)
    module.merge_fingerprints = []


async def _assert_merged_invariants(db: AsyncSession, module: Module) -> None:
    for field in ("concepts", "tags", "prerequisites", "learning_outcomes"):
        values = getattr(module, field) or []
        if len(values) != len(set(values)):
            logger.error(f"Merge produced duplicate {field} on module {module.slug}")
            raise ConsistencyFault(
                f"Merged module '{module.slug}' has duplicate {field}",
                details={"slug": module.slug, "field": field}
            )

    result = await db.execute(select(func.count(Module.id)).where(Module.slug == module.slug))
    if result.scalar() != 1:
        logger.error(f"Slug {module.slug} no longer maps to exactly one module")
        raise ConsistencyFault(
            f"Slug '{module.slug}' does not map to exactly one module",
            details={"slug": module.slug}
        )


# ================= READS =================

async def get_module_by_slug(db: AsyncSession, slug: str) -> Optional[Module]:
    result = await db.execute(select(Module).where(Module.slug == slug))
    return result.scalar_one_or_none()


async def get_module_or_404(db: AsyncSession, slug: str) -> Module:
    module = await get_module_by_slug(db, slug)
    if not module:
        raise ModuleNotFoundError(slug)
    return module


async def get_published_modules(db: AsyncSession) -> List[Module]:
    result = await db.execute(
        select(Module)
        .where(Module.draft == False)
        .order_by(Module.created_at.desc())
    )
    return list(result.scalars().all())


async def get_all_modules(db: AsyncSession) -> List[Module]:
    """All modules including drafts (admin listing)."""
    result = await db.execute(select(Module).order_by(Module.created_at.desc()))
    return list(result.scalars().all())


async def get_recent_modules(db: AsyncSession, limit: int = 10) -> List[Module]:
    limit = max(1, min(limit, MAX_RECENT_MODULES))
    result = await db.execute(
        select(Module)
        .where(Module.draft == False)
        .order_by(Module.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_module_generation_context(db: AsyncSession, slug: str) -> Optional[Dict[str, Any]]:
    result = await db.execute(select(Module.generation_context).where(Module.slug == slug))
    context = result.scalar_one_or_none()
    if isinstance(context, str):
        try:
            return json.loads(context)
        except ValueError:
            logger.warning(f"Unparseable generation_context on module {slug}")
            return None
    return context


# ================= WRITE PATHS =================

async def _upsert_module(
    db: AsyncSession,
    draft: ModuleDraft,
    user_id: Optional[str],
    generation_context: Optional[Dict[str, Any]],
    published: bool,
) -> tuple:
    """
    Insert or overwrite the module with draft.slug.

    Returns (module, previous_discipline_id).
    """
    result = await db.execute(
        select(Module).where(Module.slug == draft.slug).with_for_update()
    )
    module = result.scalar_one_or_none()
    previous_discipline = None

    if module is None:
        module = Module(slug=draft.slug, created_by=user_id, photo_groups=[])
        db.add(module)
        logger.info(f"Creating module {draft.slug}")
    else:
        previous_discipline = module.discipline_id
        logger.info(f"Overwriting module {draft.slug} (upsert)")

    _apply_draft_fields(module, draft)
    module.draft = not published
    module.last_updated_by = user_id
    if generation_context is not None:
        module.generation_context = generation_context

    try:
        await db.flush()
    except IntegrityError as e:
        logger.error(f"Concurrent insert of slug {draft.slug}: {str(e)}")
        raise ConsistencyFault(
            f"Module '{draft.slug}' was created concurrently",
            details={"slug": draft.slug}
        ) from e

    return module, previous_discipline


async def _append_to_module(
    db: AsyncSession,
    draft: ModuleDraft,
    target_slug: str,
    user_id: Optional[str],
    generation_context: Optional[Dict[str, Any]],
) -> Module:
    result = await db.execute(
        select(Module).where(Module.slug == target_slug).with_for_update()
    )
    module = result.scalar_one_or_none()

    if module is None or module.draft:
        logger.error(f"Append target {target_slug} disappeared between validation and merge")
        raise ConsistencyFault(
            f"Append target '{target_slug}' is no longer a published module",
            details={"target_module_slug": target_slug}
        )

    fingerprint = compute_merge_fingerprint(draft)
    fingerprints = list(module.merge_fingerprints or [])
    reject_duplicate_append(target_slug, fingerprint, fingerprints)

    existing_lessons = len(module.lessons or [])
    existing_exercises = len(module.exercises or [])

    apply_merge(module, draft)
    if fingerprint not in fingerprints:
        module.merge_fingerprints = fingerprints + [fingerprint]
    module.last_updated_by = user_id
    if generation_context is not None:
        module.generation_context = generation_context

    await db.flush()
    await _assert_merged_invariants(db, module)

    logger.info(
        f"Appended to {target_slug}: lessons {existing_lessons}+{len(draft.lessons)}, "
        f"exercises {existing_exercises}+{len(draft.exercises)}"
    )
    return module


async def publish_validated(
    db: AsyncSession,
    validated: ValidatedDraft,
    user_id: Optional[str] = None,
    generation_context: Optional[Dict[str, Any]] = None,
) -> Module:
    """
    Persist an already validated draft as a published module and commit.

    Raises:
        ConsistencyFault if the append target vanished or the merge broke an invariant
        ValidationError(DUPLICATE_APPEND) for a repeated append
    """
    try:
        affected = set()
        if validated.is_append:
            module = await _append_to_module(
                db, validated.draft, validated.target_slug, user_id, generation_context
            )
        else:
            module, previous_discipline = await _upsert_module(
                db, validated.draft, user_id, generation_context, published=True
            )
            affected.add(previous_discipline)

        await concept_service.save_module_concepts(db, module, module.concepts or [])

        affected.add(module.discipline_id)
        for discipline_id in affected:
            if discipline_id:
                await reconcile_discipline(db, discipline_id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        f"Published module {module.slug} "
        f"({'append' if validated.is_append else 'create'}) by {user_id}"
    )
    return module


async def publish_module(
    db: AsyncSession,
    draft: ModuleDraft,
    user_id: Optional[str] = None,
    generation_context: Optional[Dict[str, Any]] = None,
    allowed_slugs: Optional[Iterable[str]] = None,
) -> Module:
    """Validate then publish a draft in one call."""
    validated = await validate_draft(db, draft, allowed_slugs)
    return await publish_validated(db, validated, user_id, generation_context)


async def save_module(
    db: AsyncSession,
    draft: ModuleDraft,
    user_id: Optional[str] = None,
    generation_context: Optional[Dict[str, Any]] = None,
) -> Module:
    """
    Persist a draft as given (draft flag defaults to true). No consolidation
    decision is applied; the slug is derived from the title when missing.
    """
    if not draft.slug:
        slug = derive_slug(draft.title)
        if not slug:
            raise ValidationError(
                ValidationReason.MISSING_SLUG,
                "Cannot save module: missing both slug and title"
            )
        draft = draft.model_copy(update={"slug": slug})

    if draft.discipline and not await discipline_exists(db, draft.discipline):
        raise ValidationError(
            ValidationReason.UNKNOWN_DISCIPLINE,
            f"Discipline '{draft.discipline}' is not in the catalog",
            details={"discipline": draft.discipline}
        )

    try:
        module, previous_discipline = await _upsert_module(
            db, draft, user_id, generation_context, published=not draft.draft
        )
        if not module.draft:
            await concept_service.save_module_concepts(db, module, module.concepts or [])
        for discipline_id in {previous_discipline, module.discipline_id}:
            if discipline_id:
                await reconcile_discipline(db, discipline_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Saved module {module.slug} (draft={module.draft})")
    return module


async def update_module(
    db: AsyncSession,
    slug: str,
    updates: ModuleUpdate,
    user_id: str,
) -> Module:
    """
    Explicit edit of title, description, discipline or draft flag.

    Records an edit contribution and reconciles both the old and the new
    discipline. A discipline change re-registers the module's concepts under
    the new discipline.
    """
    try:
        result = await db.execute(select(Module).where(Module.slug == slug).with_for_update())
        module = result.scalar_one_or_none()
        if not module:
            raise ModuleNotFoundError(slug)

        changes = updates.model_dump(exclude_unset=True)
        old_discipline = module.discipline_id

        if "discipline" in changes and changes["discipline"] != old_discipline:
            new_discipline = changes["discipline"]
            if new_discipline and not await discipline_exists(db, new_discipline):
                raise ValidationError(
                    ValidationReason.UNKNOWN_DISCIPLINE,
                    f"Discipline '{new_discipline}' is not in the catalog",
                    details={"discipline": new_discipline}
                )
            module.discipline_id = new_discipline
            await concept_service.remove_module_concepts(db, slug)
            await db.flush()
            await concept_service.save_module_concepts(db, module, module.concepts or [])

        if "title" in changes and changes["title"] is not None:
            module.title = changes["title"]
        if "description" in changes:
            module.description = changes["description"]
        if "draft" in changes and changes["draft"] is not None:
            module.draft = changes["draft"]

        module.last_updated_by = user_id
        await db.flush()

        await record_user_contribution(
            db,
            user_id=user_id,
            contribution_type=ContributionType.EDIT,
            contribution_id=module.id,
            contribution_data={
                "type": "module_edit",
                "moduleSlug": slug,
                "fields": sorted(changes.keys()),
            },
        )

        for discipline_id in {old_discipline, module.discipline_id}:
            if discipline_id:
                await reconcile_discipline(db, discipline_id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Module {slug} edited by {user_id}: {sorted(changes.keys())}")
    return module


async def delete_module(db: AsyncSession, slug: str) -> bool:
    """
    Hard-delete a module and its concept links, then reconcile its discipline.

    Returns False when no module has the slug. Photo groups the module
    pointed at are left in place.
    """
    try:
        module = await get_module_by_slug(db, slug)
        if not module:
            return False

        discipline_id = module.discipline_id
        await concept_service.remove_module_concepts(db, slug)
        await db.delete(module)
        await db.flush()

        if discipline_id:
            await reconcile_discipline(db, discipline_id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Deleted module {slug}")
    return True
