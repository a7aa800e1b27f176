"""
Discipline counter reconciliation tests.

module_count must always equal the number of published modules in the
discipline, whichever path changed the modules table.
"""
import pytest
from sqlalchemy import select, update

from lecturehub.orm.discipline import Discipline
from lecturehub.orm.module import Module
from lecturehub.services import module_service
from lecturehub.services.discipline_counter import reconcile_all_disciplines, reconcile_discipline


async def stored_count(session_factory, discipline_id: str) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(Discipline.module_count).where(Discipline.id == discipline_id)
        )
        return result.scalar_one()


class TestReconcileDiscipline:

    @pytest.mark.asyncio
    async def test_counts_only_published(self, session_factory, make_draft, user):
        async with session_factory() as db:
            await module_service.publish_module(db, make_draft(), user.id)
            await module_service.save_module(db, make_draft(slug="draft-statistics"), user.id)

        assert await stored_count(session_factory, "statistics") == 1

    @pytest.mark.asyncio
    async def test_repairs_drifted_counter(self, session_factory, make_draft, user):
        async with session_factory() as db:
            await module_service.publish_module(db, make_draft(), user.id)

        async with session_factory() as db:
            await db.execute(
                update(Discipline).where(Discipline.id == "statistics").values(module_count=7)
            )
            await db.commit()

        async with session_factory() as db:
            assert await reconcile_discipline(db, "statistics") == 1
            await db.commit()

        assert await stored_count(session_factory, "statistics") == 1

    @pytest.mark.asyncio
    async def test_is_idempotent(self, db_session, make_draft, user):
        await module_service.publish_module(db_session, make_draft(), user.id)

        first = await reconcile_discipline(db_session, "statistics")
        second = await reconcile_discipline(db_session, "statistics")

        assert first == second == 1

    @pytest.mark.asyncio
    async def test_none_and_unknown(self, db_session):
        assert await reconcile_discipline(db_session, None) == 0
        assert await reconcile_discipline(db_session, "astrology") == 0

    @pytest.mark.asyncio
    async def test_unpublishing_through_edit(self, session_factory, make_draft, user):
        async with session_factory() as db:
            await module_service.publish_module(db, make_draft(), user.id)

        async with session_factory() as db:
            result = await db.execute(select(Module).where(Module.slug == "descriptive-statistics"))
            module = result.scalar_one()
            module.draft = True
            await db.flush()
            await reconcile_discipline(db, "statistics")
            await db.commit()

        assert await stored_count(session_factory, "statistics") == 0


class TestReconcileAll:

    @pytest.mark.asyncio
    async def test_sweep_covers_every_discipline(self, session_factory, make_draft, user):
        async with session_factory() as db:
            await module_service.publish_module(db, make_draft(), user.id)
            await module_service.publish_module(
                db, make_draft(slug="memory", title="Memory", discipline="psychology", concepts=[]), user.id
            )
            await module_service.publish_module(
                db, make_draft(slug="perception", title="Perception", discipline="psychology", concepts=[]), user.id
            )
            await db.execute(update(Discipline).values(module_count=99))
            await db.commit()

        async with session_factory() as db:
            counts = await reconcile_all_disciplines(db)
            await db.commit()

        assert counts == {"computer-science": 0, "psychology": 2, "statistics": 1}
        assert await stored_count(session_factory, "psychology") == 2
        assert await stored_count(session_factory, "computer-science") == 0
