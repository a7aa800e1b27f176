"""
Discipline Counter Reconciler

Keeps Discipline.module_count equal to the number of published (non-draft)
modules in each discipline.

Rules:
- The counter is always recomputed from the modules table, never
  incremented or decremented in place
- A single UPDATE ... SET module_count = (SELECT COUNT(*) ...) so redundant
  or concurrent calls converge on the same value
- Runs inside the caller's transaction; the caller commits
"""
import logging
from typing import Dict, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.orm.discipline import Discipline
from lecturehub.orm.module import Module

logger = logging.getLogger(__name__)


def _published_count_subquery():
    return (
        select(func.count(Module.id))
        .where(
            Module.discipline_id == Discipline.id,
            Module.draft == False
        )
        .scalar_subquery()
    )


async def reconcile_discipline(db: AsyncSession, discipline_id: Optional[str]) -> int:
    """
    Recompute module_count for one discipline and return the fresh value.

    A None discipline (module without a discipline) is a no-op returning 0.
    """
    if not discipline_id:
        return 0

    await db.execute(
        update(Discipline)
        .where(Discipline.id == discipline_id)
        .values(module_count=_published_count_subquery())
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(
        select(Discipline.module_count).where(Discipline.id == discipline_id)
    )
    count = result.scalar_one_or_none()

    if count is None:
        logger.warning(f"Reconcile skipped: discipline {discipline_id} not in catalog")
        return 0

    logger.info(f"Discipline {discipline_id} module_count reconciled to {count}")
    return count


async def reconcile_all_disciplines(db: AsyncSession) -> Dict[str, int]:
    """Catalog-wide sweep. Returns {discipline_id: module_count}."""
    await db.execute(
        update(Discipline)
        .values(module_count=_published_count_subquery())
        .execution_options(synchronize_session=False)
    )

    result = await db.execute(
        select(Discipline.id, Discipline.module_count).order_by(Discipline.id)
    )
    counts = {row.id: row.module_count for row in result.all()}

    logger.info(f"Reconciled module_count for {len(counts)} disciplines")
    return counts
