"""
lecturehub/routes/attribution.py
Contribution ledger and photo routes for the acting user
"""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.database import get_db
from lecturehub.orm.user import User
from lecturehub.routes.auth import get_current_user
from lecturehub.schemas.attribution import PhotoUploadRequest, ProfileUpdate
from lecturehub.services import photo_attribution_service

logger = logging.getLogger(__name__)

users_router = APIRouter(prefix="/users", tags=["Users"])
photos_router = APIRouter(prefix="/photos", tags=["Photos"])


# ================= USERS =================

@users_router.get("/me/contributions")
async def get_my_contributions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    contributions = await photo_attribution_service.get_user_contributions(db, current_user.id)
    return {"contributions": [c.to_dict() for c in contributions]}


@users_router.get("/me/modules")
async def get_my_modules(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    modules = await photo_attribution_service.get_user_modules(db, current_user.id)
    return {
        "modules": [
            {
                "id": m.id,
                "slug": m.slug,
                "title": m.title,
                "description": m.description,
                "discipline": m.discipline_id,
                "updated_at": m.updated_at.isoformat() if m.updated_at else None,
            }
            for m in modules
        ]
    }


@users_router.get("/me/photos")
async def get_my_photos(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    photos = await photo_attribution_service.get_user_photos(db, current_user.id)
    return {"photos": [p.to_dict() for p in photos]}


@users_router.put("/me")
async def update_my_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await photo_attribution_service.update_user_profile(db, current_user.id, payload.display_name)
    return {"success": True, "user": user.to_dict()}


# ================= PHOTOS =================

@photos_router.get("/recent")
async def get_recent_photos(
    limit: int = Query(12, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Recent photos for the landing page carousel (at most 20)"""
    photos = await photo_attribution_service.get_recent_photos(db, limit)
    return {"photos": photos}


@photos_router.post("/upload")
async def upload_photos(
    payload: PhotoUploadRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upload photos into an existing group or a new titled group"""
    result = await photo_attribution_service.upload_photos(db, current_user.id, payload)
    logger.info(f"User {current_user.id} uploaded {len(result['photos'])} photos")
    return {"success": True, **result}
