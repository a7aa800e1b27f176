"""
Concept graph tests: registration on publish, the parent tree and the
prerequisite graph.
"""
import pytest

from lecturehub.exceptions import (
    ConceptCycleError,
    ConceptDisciplineMismatchError,
    ConceptNotFoundError,
    ModuleNotFoundError,
)
from lecturehub.services import concept_service, module_service


@pytest.fixture
def concepts(db_session):
    async def _make(*names, discipline_id="statistics"):
        created = []
        for name in names:
            created.append(await concept_service.get_or_create_concept(db_session, name, discipline_id))
        return created
    return _make


class TestRegistration:

    @pytest.mark.asyncio
    async def test_get_or_create_reuses(self, db_session):
        first = await concept_service.get_or_create_concept(db_session, "mean", "statistics")
        again = await concept_service.get_or_create_concept(db_session, "mean", "statistics")
        other = await concept_service.get_or_create_concept(db_session, "mean", "psychology")

        assert first.id == again.id
        assert other.id != first.id

    @pytest.mark.asyncio
    async def test_save_module_concepts_skips_blanks_and_repeats(self, db_session, make_draft, user):
        module = await module_service.publish_module(db_session, make_draft(concepts=[]), user.id)

        saved = await concept_service.save_module_concepts(db_session, module, ["mean", " ", "mean", "", "mode"])
        await concept_service.save_module_concepts(db_session, module, ["mean", "mode"])

        assert [c.name for c in saved] == ["mean", "mode"]
        linked = await concept_service.get_module_concepts(db_session, module.slug)
        assert [c.name for c in linked] == ["mean", "mode"]

    @pytest.mark.asyncio
    async def test_link_requires_same_discipline(self, db_session, make_draft, user, concepts):
        await module_service.publish_module(db_session, make_draft(concepts=[]), user.id)
        (memory,) = await concepts("memory", discipline_id="psychology")
        (mode,) = await concepts("mode")

        with pytest.raises(ConceptDisciplineMismatchError):
            await concept_service.link_concept_to_module(db_session, "descriptive-statistics", memory.id)

        assert await concept_service.link_concept_to_module(db_session, "descriptive-statistics", mode.id) is True
        assert await concept_service.link_concept_to_module(db_session, "descriptive-statistics", mode.id) is False

    @pytest.mark.asyncio
    async def test_link_unknown_module(self, db_session, concepts):
        (mode,) = await concepts("mode")

        with pytest.raises(ModuleNotFoundError):
            await concept_service.link_concept_to_module(db_session, "missing", mode.id)

    @pytest.mark.asyncio
    async def test_unknown_concept(self, db_session):
        with pytest.raises(ConceptNotFoundError):
            await concept_service.get_concept(db_session, 12345)


class TestParentTree:

    @pytest.mark.asyncio
    async def test_ancestors_nearest_first(self, db_session, concepts):
        root, middle, leaf = await concepts("statistics", "central tendency", "mean")
        await concept_service.set_parent_concept(db_session, middle.id, root.id)
        await concept_service.set_parent_concept(db_session, leaf.id, middle.id)

        ancestors = await concept_service.get_concept_ancestors(db_session, leaf.id)

        assert [c.name for c in ancestors] == ["central tendency", "statistics"]

    @pytest.mark.asyncio
    async def test_self_parent_rejected(self, db_session, concepts):
        (mean,) = await concepts("mean")

        with pytest.raises(ConceptCycleError):
            await concept_service.set_parent_concept(db_session, mean.id, mean.id)

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, db_session, concepts):
        a, b, c = await concepts("a", "b", "c")
        await concept_service.set_parent_concept(db_session, b.id, a.id)
        await concept_service.set_parent_concept(db_session, c.id, b.id)

        with pytest.raises(ConceptCycleError):
            await concept_service.set_parent_concept(db_session, a.id, c.id)

        assert a.parent_concept_id is None

    @pytest.mark.asyncio
    async def test_parent_in_other_discipline(self, db_session, concepts):
        (mean,) = await concepts("mean")
        (memory,) = await concepts("memory", discipline_id="psychology")

        with pytest.raises(ConceptDisciplineMismatchError):
            await concept_service.set_parent_concept(db_session, mean.id, memory.id)

    @pytest.mark.asyncio
    async def test_clear_parent(self, db_session, concepts):
        parent, child = await concepts("parent", "child")
        await concept_service.set_parent_concept(db_session, child.id, parent.id)

        cleared = await concept_service.set_parent_concept(db_session, child.id, None)

        assert cleared.parent_concept_id is None
        assert await concept_service.get_concept_ancestors(db_session, child.id) == []


class TestPrerequisites:

    @pytest.mark.asyncio
    async def test_add_and_list(self, db_session, concepts):
        variance, mean, sums = await concepts("variance", "mean", "sums")

        assert await concept_service.add_concept_prerequisite(db_session, variance.id, mean.id) is True
        assert await concept_service.add_concept_prerequisite(db_session, variance.id, sums.id) is True
        assert await concept_service.add_concept_prerequisite(db_session, variance.id, mean.id) is False

        prerequisites = await concept_service.get_concept_prerequisites(db_session, variance.id)
        assert [c.name for c in prerequisites] == ["mean", "sums"]

    @pytest.mark.asyncio
    async def test_self_prerequisite_rejected(self, db_session, concepts):
        (mean,) = await concepts("mean")

        with pytest.raises(ConceptCycleError):
            await concept_service.add_concept_prerequisite(db_session, mean.id, mean.id)

    @pytest.mark.asyncio
    async def test_transitive_cycle_rejected(self, db_session, concepts):
        a, b, c = await concepts("a", "b", "c")
        await concept_service.add_concept_prerequisite(db_session, a.id, b.id)
        await concept_service.add_concept_prerequisite(db_session, b.id, c.id)

        with pytest.raises(ConceptCycleError):
            await concept_service.add_concept_prerequisite(db_session, c.id, a.id)

        assert await concept_service.get_concept_prerequisites(db_session, c.id) == []
