"""
Module / photo integration (Photo Attribution Coordinator)

Publishes a draft together with the photos it was generated from:

1. Validate the draft before any write (including the duplicate-append check)
2. Concurrently, each in its own session and transaction:
   a. create the photo group, its photos and their ledger rows
   b. publish / merge the module
3. Link the group to the module and record the module contribution in one
   transaction

Failure handling:
- Validation failure: nothing is written
- Module publish fails after the group committed: the group is left
  orphaned (logged) and the publish error is re-raised
- 2a fails: the module contribution is still recorded, then
  PartialAttributionFailure(failed_step="photo_group") is raised
- Step 3 fails: PartialAttributionFailure carries the module slug, group id
  and failed step; complete_attribution() retries only the link step, for
  the user who owns the group
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lecturehub.exceptions import ModuleNotFoundError, PartialAttributionFailure, PhotoGroupOwnershipError
from lecturehub.orm.module import Module
from lecturehub.orm.photo import Photo, PhotoGroup
from lecturehub.orm.user_contribution import ContributionType
from lecturehub.schemas.attribution import PhotoPayload
from lecturehub.schemas.module import ModuleDraft
from lecturehub.services import module_service
from lecturehub.services.consolidation_validator import ValidatedDraft, validate_draft
from lecturehub.services.photo_attribution_service import (
    count_group_photos,
    create_group_with_photos,
    get_group_module_action,
    get_group_photos,
    get_photo_group,
    record_user_contribution,
)

logger = logging.getLogger(__name__)


@dataclass
class AttributionResult:
    module: Module
    photo_group: Optional[PhotoGroup] = None
    photos: List[Photo] = field(default_factory=list)
    appended: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module.to_dict(),
            "photo_group": self.photo_group.to_dict() if self.photo_group else None,
            "photos": [p.to_dict() for p in self.photos],
            "action": "append-to" if self.appended else "create-new",
        }


async def link_photo_group_to_module(db: AsyncSession, module_slug: str, photo_group_id: str) -> bool:
    """
    Add photo_group_id to module.photo_groups.

    Idempotent on (module_slug, photo_group_id): returns False without
    writing when the group is already linked.
    """
    result = await db.execute(
        select(Module).where(Module.slug == module_slug).with_for_update()
    )
    module = result.scalar_one_or_none()
    if not module:
        raise ModuleNotFoundError(module_slug)

    groups = list(module.photo_groups or [])
    if photo_group_id in groups:
        logger.info(f"Photo group {photo_group_id} already linked to {module_slug}")
        return False

    module.photo_groups = groups + [photo_group_id]
    await db.flush()
    logger.info(f"Linked photo group {photo_group_id} to module {module_slug}")
    return True


def _module_contribution_data(module: Module, photo_count: int, appended: bool) -> Dict[str, Any]:
    return {
        "type": "module_append" if appended else "module_creation",
        "title": module.title,
        "discipline": module.discipline_id,
        "photoCount": photo_count,
    }


async def _link_and_record(
    db: AsyncSession,
    module_slug: str,
    photo_group_id: Optional[str],
    user_id: str,
    photo_count: int,
    appended: bool,
) -> Module:
    """Step 3 in one transaction: link (if any group) + module contribution."""
    try:
        if photo_group_id:
            linked = await link_photo_group_to_module(db, module_slug, photo_group_id)
            if not linked:
                # Link and contribution commit together, so an existing link
                # means the contribution is already recorded.
                await db.rollback()
                return await module_service.get_module_or_404(db, module_slug)

        module = await module_service.get_module_or_404(db, module_slug)
        await record_user_contribution(
            db,
            user_id=user_id,
            contribution_type=ContributionType.MODULE,
            contribution_id=module.id,
            contribution_data=_module_contribution_data(module, photo_count, appended),
        )
        await db.commit()
        return module
    except Exception:
        await db.rollback()
        raise


async def _create_group_branch(
    session_factory: async_sessionmaker,
    validated: ValidatedDraft,
    user_id: str,
    photos: Sequence[PhotoPayload],
) -> PhotoGroup:
    draft = validated.draft
    title = draft.title or validated.target_slug
    async with session_factory() as db:
        try:
            group = await create_group_with_photos(
                db,
                title=title,
                description=draft.description or f"Photos for {title}",
                discipline_id=draft.discipline,
                user_id=user_id,
                photos=photos,
                module_slug=validated.target_slug,
                module_action="append-to" if validated.is_append else "create-new",
            )
            await db.commit()
            return group
        except Exception:
            await db.rollback()
            raise


async def _publish_branch(
    session_factory: async_sessionmaker,
    validated: ValidatedDraft,
    user_id: str,
    generation_context: Optional[Dict[str, Any]],
) -> Module:
    async with session_factory() as db:
        return await module_service.publish_validated(db, validated, user_id, generation_context)


async def publish_with_attribution(
    session_factory: async_sessionmaker,
    draft: ModuleDraft,
    user_id: str,
    photos: Sequence[PhotoPayload],
    generation_context: Optional[Dict[str, Any]] = None,
    allowed_slugs: Optional[Iterable[str]] = None,
) -> AttributionResult:
    """
    Validate, publish and attribute a generated draft.

    Raises:
        ValidationError before any write, including DUPLICATE_APPEND
        ConsistencyFault / ValidationError(DUPLICATE_APPEND) from the publish
            when the store changed after validation
        PartialAttributionFailure when the module committed but attribution
            did not complete
    """
    async with session_factory() as db:
        validated = await validate_draft(db, draft, allowed_slugs)

    photos = list(photos or [])
    logger.info(
        f"Publishing '{validated.target_slug}' "
        f"({'append' if validated.is_append else 'create'}) with {len(photos)} photos for {user_id}"
    )

    if photos:
        group_outcome, module_outcome = await asyncio.gather(
            _create_group_branch(session_factory, validated, user_id, photos),
            _publish_branch(session_factory, validated, user_id, generation_context),
            return_exceptions=True,
        )
    else:
        group_outcome = None
        module_outcome = await _publish_branch(session_factory, validated, user_id, generation_context)

    if isinstance(module_outcome, BaseException):
        if isinstance(group_outcome, PhotoGroup):
            logger.warning(
                f"Module publish failed; photo group {group_outcome.id} left orphaned "
                f"for user {user_id}"
            )
        raise module_outcome

    module = module_outcome

    if isinstance(group_outcome, BaseException):
        logger.warning(f"Photo group creation failed for module {module.slug}: {str(group_outcome)}")
        try:
            async with session_factory() as db:
                module = await _link_and_record(db, module.slug, None, user_id, 0, validated.is_append)
        except Exception as e:
            logger.error(f"Module contribution for {module.slug} not recorded: {str(e)}")
        raise PartialAttributionFailure(
            f"Module '{module.slug}' published but its photo group could not be created",
            module_slug=module.slug,
            photo_group_id=None,
            failed_step="photo_group",
            module=module.to_dict(),
        ) from group_outcome

    group_id = group_outcome.id if group_outcome is not None else None

    try:
        async with session_factory() as db:
            module = await _link_and_record(
                db, module.slug, group_id, user_id, len(photos), validated.is_append
            )
            group_photos = await get_group_photos(db, group_id) if group_id else []
    except Exception as e:
        logger.warning(
            f"Attribution incomplete for module {module.slug}, group {group_id}: {str(e)}"
        )
        raise PartialAttributionFailure(
            f"Module '{module.slug}' published but attribution did not complete",
            module_slug=module.slug,
            photo_group_id=group_id,
            failed_step="link",
            module=module.to_dict(),
        ) from e

    return AttributionResult(
        module=module,
        photo_group=group_outcome,
        photos=group_photos,
        appended=validated.is_append,
    )


async def complete_attribution(
    db: AsyncSession,
    module_slug: str,
    photo_group_id: str,
    user_id: str,
) -> Module:
    """
    Repair path after PartialAttributionFailure: link the group and record
    the module contribution. Safe to call repeatedly.

    Only the user who created the group may complete it. The recorded photo
    count and creation/append type are read from the store, not the caller.

    Raises:
        ModuleNotFoundError / PhotoGroupNotFoundError
        PhotoGroupOwnershipError when user_id did not create the group
    """
    module = await module_service.get_module_or_404(db, module_slug)
    group = await get_photo_group(db, photo_group_id)
    if group.created_by != user_id:
        logger.warning(f"User {user_id} tried to complete attribution of group {photo_group_id}")
        raise PhotoGroupOwnershipError(photo_group_id)

    photo_count = await count_group_photos(db, photo_group_id, user_id)
    module_action = await get_group_module_action(db, photo_group_id)
    if module_action:
        appended = module_action == "append-to"
    else:
        appended = module.created_by != user_id

    module = await _link_and_record(
        db, module_slug, photo_group_id, user_id, photo_count, appended
    )
    logger.info(f"Attribution completed for module {module_slug}, group {photo_group_id}")
    return module
