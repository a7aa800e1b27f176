"""
Photo attribution service

Photo groups, photo rows and the per-user contribution ledger.

Rules:
- The ledger is append-only: this module only ever inserts contributions
- A photo group records one "photo" contribution for its creation and one
  per photo added
- Primitives (create_photo_group, add_photos_to_group,
  record_user_contribution, create_group_with_photos) only flush; the
  caller owns the transaction
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.exceptions import ModuleNotFoundError, PhotoGroupNotFoundError, NotFoundError
from lecturehub.orm.discipline import Discipline
from lecturehub.orm.module import Module
from lecturehub.orm.photo import Photo, PhotoGroup
from lecturehub.orm.user import User
from lecturehub.orm.user_contribution import ContributionType, UserContribution
from lecturehub.schemas.attribution import PhotoPayload, PhotoUploadRequest

logger = logging.getLogger(__name__)

MAX_RECENT_PHOTOS = 20


# ================= LEDGER =================

async def record_user_contribution(
    db: AsyncSession,
    user_id: str,
    contribution_type: ContributionType,
    contribution_id: str,
    contribution_data: Optional[Dict[str, Any]] = None,
) -> UserContribution:
    """Append one ledger row."""
    contribution = UserContribution(
        user_id=user_id,
        contribution_type=ContributionType(contribution_type).value,
        contribution_id=contribution_id,
        contribution_data=contribution_data,
    )
    db.add(contribution)
    await db.flush()
    return contribution


async def get_user_contributions(db: AsyncSession, user_id: str) -> List[UserContribution]:
    """A user's ledger, newest first."""
    result = await db.execute(
        select(UserContribution)
        .where(UserContribution.user_id == user_id)
        .order_by(UserContribution.created_at.desc())
    )
    return list(result.scalars().all())


# ================= PHOTO GROUPS =================

async def get_photo_group(db: AsyncSession, photo_group_id: str) -> PhotoGroup:
    result = await db.execute(select(PhotoGroup).where(PhotoGroup.id == photo_group_id))
    group = result.scalar_one_or_none()
    if not group:
        raise PhotoGroupNotFoundError(photo_group_id)
    return group


async def create_photo_group(
    db: AsyncSession,
    title: str,
    description: Optional[str],
    discipline_id: Optional[str],
    created_by: str,
) -> PhotoGroup:
    group = PhotoGroup(
        title=title,
        description=description,
        discipline_id=discipline_id,
        created_by=created_by,
    )
    db.add(group)
    await db.flush()
    return group


async def add_photos_to_group(
    db: AsyncSession,
    photo_group_id: str,
    photos: Sequence[PhotoPayload],
    uploaded_by: str,
) -> List[Photo]:
    """Insert one Photo row per payload. base64 payloads are stored as data: URLs."""
    rows = []
    for payload in photos:
        photo = Photo(
            photo_group_id=photo_group_id,
            uploaded_by=uploaded_by,
            filename=payload.filename,
            file_size=payload.resolved_size(),
            mime_type=payload.mime_type,
            url=payload.resolved_url(),
        )
        db.add(photo)
        rows.append(photo)

    await db.flush()
    return rows


async def create_group_with_photos(
    db: AsyncSession,
    title: str,
    description: Optional[str],
    discipline_id: Optional[str],
    user_id: str,
    photos: Sequence[PhotoPayload],
    module_slug: Optional[str] = None,
    module_action: Optional[str] = None,
) -> PhotoGroup:
    """
    Create a photo group, its photos and their ledger rows.

    Writes len(photos) + 1 "photo" contributions: one for the group and one
    per photo. The group row carries moduleAction when the group was created
    for a publish, so a later repair can tell a create from an append.
    """
    group = await create_photo_group(db, title, description, discipline_id, user_id)

    group_data = {"type": "photo_group_creation", "title": title, "description": description}
    if module_slug:
        group_data["moduleSlug"] = module_slug
    if module_action:
        group_data["moduleAction"] = module_action
    await record_user_contribution(db, user_id, ContributionType.PHOTO, group.id, group_data)

    uploaded = await add_photos_to_group(db, group.id, photos, user_id)
    for photo in uploaded:
        photo_data = {"type": "photo_upload", "filename": photo.filename}
        if module_slug:
            photo_data["moduleSlug"] = module_slug
        await record_user_contribution(db, user_id, ContributionType.PHOTO, photo.id, photo_data)

    logger.info(f"Photo group {group.id} created by {user_id} with {len(uploaded)} photos")
    return group


async def upload_photos(db: AsyncSession, user_id: str, request: PhotoUploadRequest) -> Dict[str, Any]:
    """
    Standalone upload: into an existing group, or into a new group named by
    request.title. Commits.
    """
    try:
        if request.photo_group_id:
            group = await get_photo_group(db, request.photo_group_id)
            uploaded = await add_photos_to_group(db, group.id, request.photos, user_id)
            for photo in uploaded:
                await record_user_contribution(
                    db, user_id, ContributionType.PHOTO, photo.id,
                    {"type": "photo_upload", "filename": photo.filename}
                )
        else:
            group = await create_group_with_photos(
                db,
                title=request.title.strip(),
                description=request.description,
                discipline_id=request.discipline_id,
                user_id=user_id,
                photos=request.photos,
            )
            uploaded = await get_group_photos(db, group.id)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    return {
        "photo_group_id": group.id,
        "photos": [p.to_dict() for p in uploaded],
    }


async def get_group_photos(db: AsyncSession, photo_group_id: str) -> List[Photo]:
    result = await db.execute(
        select(Photo)
        .where(Photo.photo_group_id == photo_group_id)
        .order_by(Photo.uploaded_at)
    )
    return list(result.scalars().all())


async def count_group_photos(db: AsyncSession, photo_group_id: str, uploaded_by: str) -> int:
    result = await db.execute(
        select(func.count(Photo.id)).where(
            Photo.photo_group_id == photo_group_id,
            Photo.uploaded_by == uploaded_by,
        )
    )
    return result.scalar() or 0


async def get_group_module_action(db: AsyncSession, photo_group_id: str) -> Optional[str]:
    """moduleAction from the group's creation row, if it was created for a publish."""
    result = await db.execute(
        select(UserContribution.contribution_data).where(
            UserContribution.contribution_type == ContributionType.PHOTO.value,
            UserContribution.contribution_id == photo_group_id,
        )
    )
    for data in result.scalars().all():
        if data and data.get("type") == "photo_group_creation":
            return data.get("moduleAction")
    return None


# ================= MODULE ATTRIBUTION =================

async def _module_photo_group_ids(db: AsyncSession, module_slug: str) -> List[str]:
    result = await db.execute(select(Module.photo_groups).where(Module.slug == module_slug))
    row = result.first()
    if row is None:
        raise ModuleNotFoundError(module_slug)
    return list(row.photo_groups or [])


async def get_photo_groups_for_module(db: AsyncSession, module_slug: str) -> List[PhotoGroup]:
    group_ids = await _module_photo_group_ids(db, module_slug)
    if not group_ids:
        return []
    result = await db.execute(
        select(PhotoGroup)
        .where(PhotoGroup.id.in_(group_ids))
        .order_by(PhotoGroup.created_at)
    )
    return list(result.scalars().all())


async def get_module_photo_attributions(db: AsyncSession, module_slug: str) -> List[Dict[str, Any]]:
    """
    Photo counts per uploader across every group the module references,
    largest contributor first.
    """
    group_ids = await _module_photo_group_ids(db, module_slug)
    if not group_ids:
        return []

    photo_count = func.count(Photo.id).label("photo_count")
    result = await db.execute(
        select(
            User.id,
            User.name,
            User.display_name,
            User.email,
            User.avatar_url,
            photo_count,
            func.max(Photo.uploaded_at).label("last_uploaded_at"),
        )
        .join(Photo, Photo.uploaded_by == User.id)
        .where(Photo.photo_group_id.in_(group_ids))
        .group_by(User.id, User.name, User.display_name, User.email, User.avatar_url)
        .order_by(photo_count.desc(), User.name)
    )

    return [
        {
            "user_id": row.id,
            "user_name": row.display_name or row.name,
            "user_email": row.email,
            "avatar_url": row.avatar_url,
            "photo_count": row.photo_count,
            "contribution_date": row.last_uploaded_at.isoformat() if row.last_uploaded_at else None,
        }
        for row in result.all()
    ]


async def get_module_photo_attributions_detailed(db: AsyncSession, module_slug: str) -> Dict[str, Any]:
    """Every photo behind a module (newest first) plus the contributor summary."""
    group_ids = await _module_photo_group_ids(db, module_slug)
    photos = []

    if group_ids:
        result = await db.execute(
            select(Photo, PhotoGroup.title, User.name, User.display_name)
            .join(PhotoGroup, PhotoGroup.id == Photo.photo_group_id)
            .outerjoin(User, User.id == Photo.uploaded_by)
            .where(Photo.photo_group_id.in_(group_ids))
            .order_by(Photo.uploaded_at.desc())
        )
        for photo, group_title, user_name, display_name in result.all():
            item = photo.to_dict()
            item["photo_group_title"] = group_title
            item["uploaded_by_name"] = user_name
            item["uploaded_by_display_name"] = display_name or user_name
            photos.append(item)

    return {
        "module_slug": module_slug,
        "photos": photos,
        "contributors": await get_module_photo_attributions(db, module_slug),
    }


# ================= USER READS =================

async def get_user_photos(db: AsyncSession, user_id: str) -> List[Photo]:
    result = await db.execute(
        select(Photo)
        .where(Photo.uploaded_by == user_id)
        .order_by(Photo.uploaded_at.desc())
    )
    return list(result.scalars().all())


async def get_user_modules(db: AsyncSession, user_id: str) -> List[Module]:
    """Modules the user created or last updated, most recently updated first."""
    result = await db.execute(
        select(Module)
        .where(or_(Module.created_by == user_id, Module.last_updated_by == user_id))
        .order_by(Module.updated_at.desc())
    )
    return list(result.scalars().all())


async def get_recent_photos(db: AsyncSession, limit: int = 12) -> List[Dict[str, Any]]:
    """Recent photos with their group, discipline and uploader, for the landing page."""
    limit = max(1, min(limit, MAX_RECENT_PHOTOS))
    result = await db.execute(
        select(
            Photo.id,
            Photo.url,
            Photo.filename,
            Photo.uploaded_at,
            PhotoGroup.title.label("group_title"),
            PhotoGroup.discipline_id,
            Discipline.name.label("discipline_name"),
            User.name.label("uploaded_by"),
        )
        .outerjoin(PhotoGroup, PhotoGroup.id == Photo.photo_group_id)
        .outerjoin(Discipline, Discipline.id == PhotoGroup.discipline_id)
        .outerjoin(User, User.id == Photo.uploaded_by)
        .where(Photo.url.is_not(None), Photo.url != "")
        .order_by(Photo.uploaded_at.desc())
        .limit(limit)
    )
    return [
        {
            "id": row.id,
            "url": row.url,
            "filename": row.filename,
            "module_title": row.group_title,
            "discipline": row.discipline_id,
            "discipline_name": row.discipline_name,
            "uploaded_by": row.uploaded_by,
            "uploaded_at": row.uploaded_at.isoformat() if row.uploaded_at else None,
        }
        for row in result.all()
    ]


async def update_user_profile(db: AsyncSession, user_id: str, display_name: str) -> User:
    """Set the public attribution name. Commits."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError(f"User not found: {user_id}", details={"user_id": user_id})

    user.display_name = display_name.strip()
    await db.commit()
    logger.info(f"User {user_id} display name updated")
    return user
