"""
Concept graph service

Concepts are registered per discipline as modules are published and linked
to modules through module_concepts. Concepts also form two graphs:
- a parent tree (parent_concept_id)
- a prerequisite DAG (concept_prerequisites)

Both are kept acyclic on write. Linking a concept to a module requires the
concept's discipline to equal the module's.

All functions run in the caller's transaction and only flush.
"""
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.exceptions import (
    ConceptCycleError,
    ConceptDisciplineMismatchError,
    ConceptNotFoundError,
    ModuleNotFoundError,
)
from lecturehub.orm.concept import Concept, ConceptPrerequisite, ModuleConcept
from lecturehub.orm.module import Module

logger = logging.getLogger(__name__)


async def get_concept(db: AsyncSession, concept_id: int) -> Concept:
    result = await db.execute(select(Concept).where(Concept.id == concept_id))
    concept = result.scalar_one_or_none()
    if not concept:
        raise ConceptNotFoundError(concept_id)
    return concept


async def find_concept(db: AsyncSession, name: str, discipline_id: Optional[str]) -> Optional[Concept]:
    stmt = select(Concept).where(Concept.name == name)
    if discipline_id is None:
        stmt = stmt.where(Concept.discipline_id.is_(None))
    else:
        stmt = stmt.where(Concept.discipline_id == discipline_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_or_create_concept(
    db: AsyncSession,
    name: str,
    discipline_id: Optional[str],
    description: Optional[str] = None
) -> Concept:
    """Return the (name, discipline) concept, creating it if needed."""
    concept = await find_concept(db, name, discipline_id)
    if concept:
        return concept

    concept = Concept(name=name, discipline_id=discipline_id, description=description)
    db.add(concept)
    await db.flush()
    logger.info(f"Registered concept '{name}' in {discipline_id}")
    return concept


async def _link(db: AsyncSession, module_slug: str, concept_id: int) -> bool:
    result = await db.execute(
        select(ModuleConcept).where(
            ModuleConcept.module_slug == module_slug,
            ModuleConcept.concept_id == concept_id
        )
    )
    if result.scalar_one_or_none():
        return False
    db.add(ModuleConcept(module_slug=module_slug, concept_id=concept_id))
    await db.flush()
    return True


async def save_module_concepts(db: AsyncSession, module: Module, concept_names: Sequence[str]) -> List[Concept]:
    """
    Register each concept name under the module's discipline and link it
    to the module once. Blank and repeated names are skipped.
    """
    concepts = []
    seen = set()
    for name in concept_names:
        name = (name or "").strip()
        if not name or name in seen:
            continue
        seen.add(name)

        concept = await get_or_create_concept(db, name, module.discipline_id)
        await _link(db, module.slug, concept.id)
        concepts.append(concept)

    return concepts


async def link_concept_to_module(db: AsyncSession, module_slug: str, concept_id: int) -> bool:
    """
    Link an existing concept to a module.

    Returns True when a new link was written, False when it already existed.

    Raises:
        ConceptDisciplineMismatchError if the disciplines differ
    """
    result = await db.execute(select(Module).where(Module.slug == module_slug))
    module = result.scalar_one_or_none()
    if not module:
        raise ModuleNotFoundError(module_slug)

    concept = await get_concept(db, concept_id)
    if concept.discipline_id != module.discipline_id:
        raise ConceptDisciplineMismatchError(
            f"Concept '{concept.name}' belongs to {concept.discipline_id}, "
            f"module '{module_slug}' to {module.discipline_id}",
            details={"concept_id": concept_id, "module_slug": module_slug}
        )

    return await _link(db, module_slug, concept_id)


async def remove_module_concepts(db: AsyncSession, module_slug: str) -> None:
    await db.execute(delete(ModuleConcept).where(ModuleConcept.module_slug == module_slug))


async def get_module_concepts(db: AsyncSession, module_slug: str) -> List[Concept]:
    result = await db.execute(
        select(Concept)
        .join(ModuleConcept, ModuleConcept.concept_id == Concept.id)
        .where(ModuleConcept.module_slug == module_slug)
        .order_by(Concept.name)
    )
    return list(result.scalars().all())


# ================= PARENT TREE =================

async def get_concept_ancestors(db: AsyncSession, concept_id: int) -> List[Concept]:
    """Parent chain of a concept, nearest first and root last."""
    concept = await get_concept(db, concept_id)

    ancestors = []
    seen = {concept.id}
    parent_id = concept.parent_concept_id
    while parent_id is not None and parent_id not in seen:
        parent = await get_concept(db, parent_id)
        ancestors.append(parent)
        seen.add(parent.id)
        parent_id = parent.parent_concept_id

    return ancestors


async def set_parent_concept(db: AsyncSession, concept_id: int, parent_id: Optional[int]) -> Concept:
    """
    Set (or clear, with None) a concept's parent.

    Raises:
        ConceptCycleError if the concept would become its own ancestor
        ConceptDisciplineMismatchError if the parent is in another discipline
    """
    concept = await get_concept(db, concept_id)

    if parent_id is None:
        concept.parent_concept_id = None
        await db.flush()
        return concept

    if parent_id == concept_id:
        raise ConceptCycleError(
            f"Concept {concept_id} cannot be its own parent",
            details={"concept_id": concept_id}
        )

    parent = await get_concept(db, parent_id)
    if parent.discipline_id != concept.discipline_id:
        raise ConceptDisciplineMismatchError(
            f"Parent concept {parent_id} is in {parent.discipline_id}, "
            f"concept {concept_id} is in {concept.discipline_id}",
            details={"concept_id": concept_id, "parent_concept_id": parent_id}
        )

    for ancestor in await get_concept_ancestors(db, parent_id):
        if ancestor.id == concept_id:
            raise ConceptCycleError(
                f"Setting parent {parent_id} on concept {concept_id} would create a cycle",
                details={"concept_id": concept_id, "parent_concept_id": parent_id}
            )

    concept.parent_concept_id = parent_id
    await db.flush()
    return concept


# ================= PREREQUISITES =================

async def get_concept_prerequisites(db: AsyncSession, concept_id: int) -> List[Concept]:
    """Direct prerequisites of a concept."""
    result = await db.execute(
        select(Concept)
        .join(ConceptPrerequisite, ConceptPrerequisite.prerequisite_concept_id == Concept.id)
        .where(ConceptPrerequisite.concept_id == concept_id)
        .order_by(Concept.name)
    )
    return list(result.scalars().all())


async def _requires(db: AsyncSession, start_id: int, target_id: int) -> bool:
    """True when start_id transitively requires target_id."""
    stack = [start_id]
    visited = set()
    while stack:
        current = stack.pop()
        if current == target_id:
            return True
        if current in visited:
            continue
        visited.add(current)

        result = await db.execute(
            select(ConceptPrerequisite.prerequisite_concept_id)
            .where(ConceptPrerequisite.concept_id == current)
        )
        stack.extend(result.scalars().all())

    return False


async def add_concept_prerequisite(db: AsyncSession, concept_id: int, prerequisite_id: int) -> bool:
    """
    Record that concept_id requires prerequisite_id.

    Returns False if the edge already existed.

    Raises:
        ConceptCycleError for self-edges or edges that close a cycle
    """
    if concept_id == prerequisite_id:
        raise ConceptCycleError(
            f"Concept {concept_id} cannot be its own prerequisite",
            details={"concept_id": concept_id}
        )

    await get_concept(db, concept_id)
    await get_concept(db, prerequisite_id)

    existing = await db.execute(
        select(ConceptPrerequisite).where(
            ConceptPrerequisite.concept_id == concept_id,
            ConceptPrerequisite.prerequisite_concept_id == prerequisite_id
        )
    )
    if existing.scalar_one_or_none():
        return False

    if await _requires(db, prerequisite_id, concept_id):
        raise ConceptCycleError(
            f"Prerequisite {prerequisite_id} already requires concept {concept_id}",
            details={"concept_id": concept_id, "prerequisite_concept_id": prerequisite_id}
        )

    db.add(ConceptPrerequisite(concept_id=concept_id, prerequisite_concept_id=prerequisite_id))
    await db.flush()
    return True
