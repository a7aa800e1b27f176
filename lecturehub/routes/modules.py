"""
lecturehub/routes/modules.py
Module routes: reads, drafts, publish with attribution, edits and deletes

Publishing is rate limited per client address (PUBLISH_RATE_LIMIT).
"""
import os
import logging
from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lecturehub.config.feature_flags import get_bool_env
from lecturehub.database import get_db, get_session_factory
from lecturehub.orm.user import User
from lecturehub.routes.auth import get_current_user, require_admin
from lecturehub.schemas.attribution import CompleteAttributionRequest, PublishRequest
from lecturehub.schemas.module import ModuleDraft, ModuleUpdate
from lecturehub.services import module_service, photo_attribution_service
from lecturehub.services.module_photo_integration import (
    complete_attribution,
    publish_with_attribution,
)
from lecturehub.errors import raise_bad_request
from lecturehub.exceptions import ModuleNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/modules", tags=["Modules"])
limiter = Limiter(key_func=get_remote_address, enabled=get_bool_env("RATE_LIMIT_ENABLED", True))

PUBLISH_RATE_LIMIT = os.getenv("PUBLISH_RATE_LIMIT", "10/minute")


# ================= READS =================

@router.get("")
async def list_published_modules(db: AsyncSession = Depends(get_db)):
    modules = await module_service.get_published_modules(db)
    return {"modules": [m.to_dict() for m in modules], "total": len(modules)}


@router.get("/recent")
async def list_recent_modules(
    limit: int = Query(10, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Most recently published modules (at most 20)"""
    modules = await module_service.get_recent_modules(db, limit)
    return {"modules": [m.to_dict() for m in modules]}


@router.get("/{slug}")
async def get_module(slug: str, db: AsyncSession = Depends(get_db)):
    module = await module_service.get_module_or_404(db, slug)
    return module.to_dict()


@router.get("/{slug}/contributors")
async def get_module_contributors(slug: str, db: AsyncSession = Depends(get_db)):
    """Per-user photo counts across the module's photo groups"""
    contributors = await photo_attribution_service.get_module_photo_attributions(db, slug)
    return {"module_slug": slug, "contributors": contributors}


@router.get("/{slug}/photo-attributions-detailed")
async def get_module_photo_attributions_detailed(slug: str, db: AsyncSession = Depends(get_db)):
    return await photo_attribution_service.get_module_photo_attributions_detailed(db, slug)


# ================= WRITES =================

@router.post("/drafts", status_code=201)
async def save_draft(
    draft: ModuleDraft,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Persist a generated draft without publishing it"""
    if not draft.draft:
        raise_bad_request("Use /api/modules/publish to publish a module")
    module = await module_service.save_module(db, draft, current_user.id)
    return {"success": True, "module": module.to_dict()}


@router.post("/publish")
@limiter.limit(PUBLISH_RATE_LIMIT)
async def publish_module(
    request: Request,  # Required by slowapi
    payload: PublishRequest,
    current_user: User = Depends(get_current_user),
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Validate, publish (create or append) and attribute a generated draft.

    Returns 202 with the identifiers needed for
    /api/modules/{slug}/attribution/complete when only attribution failed.
    """
    result = await publish_with_attribution(
        session_factory,
        payload.module,
        current_user.id,
        payload.photos,
        generation_context=payload.generation_context,
        allowed_slugs=payload.allowed_module_slugs,
    )
    return {"success": True, **result.to_dict()}


@router.post("/{slug}/attribution/complete")
async def complete_module_attribution(
    slug: str,
    payload: CompleteAttributionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Retry the link + module contribution step after a partial failure"""
    module = await complete_attribution(db, slug, payload.photo_group_id, current_user.id)
    return {"success": True, "module": module.to_dict()}


@router.patch("/{slug}")
async def update_module(
    slug: str,
    updates: ModuleUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    module = await module_service.update_module(db, slug, updates, current_user.id)
    return {"success": True, "module": module.to_dict()}


@router.delete("/{slug}")
async def delete_module(
    slug: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Admin-only hard delete"""
    deleted = await module_service.delete_module(db, slug)
    if not deleted:
        raise ModuleNotFoundError(slug)

    logger.info(f"Module {slug} deleted by admin {admin.id}")
    return {"success": True, "slug": slug}
