"""
lecturehub/routes/disciplines.py
Discipline catalog and consolidation-context routes
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.database import get_db
from lecturehub.orm.user import User
from lecturehub.routes.auth import get_current_user
from lecturehub.services import discipline_context_service
from lecturehub.services.discipline_counter import reconcile_all_disciplines

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/disciplines", tags=["Disciplines"])


@router.get("")
async def list_disciplines(db: AsyncSession = Depends(get_db)):
    """Catalog grouped by category"""
    grouped = await discipline_context_service.get_disciplines_by_category(db)
    return {
        "categories": grouped,
        "total": sum(len(items) for items in grouped.values()),
    }


@router.get("/context")
async def get_all_disciplines_context(db: AsyncSession = Depends(get_db)):
    """Consolidation context across every discipline"""
    return await discipline_context_service.get_all_disciplines_context(db)


@router.post("/reconcile")
async def reconcile_counters(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Recompute module_count for the whole catalog"""
    try:
        counts = await reconcile_all_disciplines(db)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Counter sweep requested by {current_user.id}")
    return {"success": True, "module_counts": counts}


@router.get("/{discipline_id}")
async def get_discipline(discipline_id: str, db: AsyncSession = Depends(get_db)):
    discipline = await discipline_context_service.get_discipline(db, discipline_id)
    return discipline.to_dict()


@router.get("/{discipline_id}/context")
async def get_discipline_context(discipline_id: str, db: AsyncSession = Depends(get_db)):
    """Published modules and concepts the generator may consolidate into"""
    return await discipline_context_service.get_discipline_context(db, discipline_id)


@router.get("/{discipline_id}/concepts")
async def get_modules_by_concept(discipline_id: str, db: AsyncSession = Depends(get_db)):
    await discipline_context_service.get_discipline(db, discipline_id)
    concepts = await discipline_context_service.get_modules_by_concept(db, discipline_id)
    return {"discipline_id": discipline_id, "concepts": concepts}


@router.get("/{discipline_id}/modules")
async def get_discipline_modules(discipline_id: str, db: AsyncSession = Depends(get_db)):
    modules = await discipline_context_service.get_discipline_modules(db, discipline_id)
    return {
        "discipline_id": discipline_id,
        "modules": [m.to_dict() for m in modules],
    }
