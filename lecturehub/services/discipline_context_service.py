"""
Discipline Context Builder

Read-only snapshots of the catalog handed to the external generator so it
can decide between creating a new module and appending to an existing one.

Only published (non-draft) modules are ever offered as append targets; the
slugs returned in allowed_module_slugs are the full universe the generator
may reference.
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.exceptions import DisciplineNotFoundError
from lecturehub.orm.concept import Concept, ModuleConcept
from lecturehub.orm.discipline import Discipline
from lecturehub.orm.module import Module

logger = logging.getLogger(__name__)


async def get_discipline(db: AsyncSession, discipline_id: str) -> Discipline:
    result = await db.execute(select(Discipline).where(Discipline.id == discipline_id))
    discipline = result.scalar_one_or_none()
    if not discipline:
        raise DisciplineNotFoundError(discipline_id)
    return discipline


async def list_disciplines(db: AsyncSession) -> List[Discipline]:
    result = await db.execute(select(Discipline).order_by(Discipline.category, Discipline.name))
    return list(result.scalars().all())


async def get_disciplines_by_category(db: AsyncSession) -> Dict[str, List[Dict[str, Any]]]:
    """Catalog grouped by category, in category then name order."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for discipline in await list_disciplines(db):
        grouped.setdefault(discipline.category or "uncategorized", []).append(discipline.to_dict())
    return grouped


async def get_discipline_context(db: AsyncSession, discipline_id: str) -> Dict[str, Any]:
    """
    Build the consolidation context for one discipline.

    Returns:
        {
            "discipline": {...},
            "existing_modules": [{slug, title, description, concepts, tags}],
            "existing_concepts": [name, ...],
            "allowed_module_slugs": [slug, ...]
        }

    Raises:
        DisciplineNotFoundError if the discipline is not in the catalog
    """
    discipline = await get_discipline(db, discipline_id)

    modules_result = await db.execute(
        select(Module)
        .where(
            Module.discipline_id == discipline_id,
            Module.draft == False
        )
        .order_by(Module.created_at)
    )
    existing_modules = [m.to_summary() for m in modules_result.scalars().all()]

    concepts_result = await db.execute(
        select(Concept.name)
        .where(Concept.discipline_id == discipline_id)
        .order_by(Concept.name)
    )
    existing_concepts = list(concepts_result.scalars().all())

    logger.info(
        f"Context for {discipline_id}: {len(existing_modules)} modules, "
        f"{len(existing_concepts)} concepts"
    )

    return {
        "discipline": discipline.to_dict(),
        "existing_modules": existing_modules,
        "existing_concepts": existing_concepts,
        "allowed_module_slugs": [m["slug"] for m in existing_modules],
    }


async def get_all_disciplines_context(db: AsyncSession) -> Dict[str, Any]:
    """Consolidation context across the whole catalog, for drafts with no discipline hint."""
    disciplines = await list_disciplines(db)

    modules_result = await db.execute(
        select(Module)
        .where(Module.draft == False)
        .order_by(Module.created_at)
    )
    all_modules = []
    for module in modules_result.scalars().all():
        summary = module.to_summary()
        summary["discipline"] = module.discipline_id
        all_modules.append(summary)

    concepts_result = await db.execute(
        select(Concept).order_by(Concept.discipline_id, Concept.name)
    )
    all_concepts = [
        {"name": c.name, "description": c.description, "discipline": c.discipline_id}
        for c in concepts_result.scalars().all()
    ]

    return {
        "disciplines": [d.to_dict() for d in disciplines],
        "all_modules": all_modules,
        "all_concepts": all_concepts,
        "allowed_module_slugs": [m["slug"] for m in all_modules],
    }


async def get_modules_by_concept(db: AsyncSession, discipline_id: str) -> List[Dict[str, Any]]:
    """
    Published modules of a discipline grouped under each concept.

    Concepts with no published module are returned with an empty list.
    """
    stmt = (
        select(
            Concept.name.label("concept_name"),
            Concept.description.label("concept_description"),
            Module.slug,
            Module.title,
            Module.description,
            Module.tags,
        )
        .select_from(Concept)
        .outerjoin(ModuleConcept, ModuleConcept.concept_id == Concept.id)
        .outerjoin(Module, and_(Module.slug == ModuleConcept.module_slug, Module.draft == False))
        .where(Concept.discipline_id == discipline_id)
        .order_by(Concept.name, Module.created_at)
    )
    result = await db.execute(stmt)

    groups: Dict[str, Dict[str, Any]] = {}
    for row in result.all():
        group = groups.setdefault(row.concept_name, {
            "name": row.concept_name,
            "description": row.concept_description,
            "modules": [],
        })
        if row.slug:
            group["modules"].append({
                "slug": row.slug,
                "title": row.title,
                "description": row.description,
                "tags": list(row.tags or []),
            })

    return list(groups.values())


async def get_discipline_modules(db: AsyncSession, discipline_id: str) -> List[Module]:
    """Published modules of one discipline, newest first."""
    await get_discipline(db, discipline_id)
    result = await db.execute(
        select(Module)
        .where(
            Module.discipline_id == discipline_id,
            Module.draft == False
        )
        .order_by(Module.created_at.desc())
    )
    return list(result.scalars().all())
