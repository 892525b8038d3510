"""Tests for the Prisma-backed store and hierarchy accessor."""

from types import SimpleNamespace

import pytest
from prisma.errors import PrismaError

from prepdeck.models.goals import GoalCategory, GoalType
from prepdeck.services.goal_scope import CourseScope, CustomScope, ModuleScope
from prepdeck.services.goal_store import PrismaGoalStore, scope_filters
from prepdeck.services.hierarchy_service import PrismaHierarchyAccessor, set_topic_completion
from prepdeck.utils.exceptions import PersistenceError, ResourceNotFoundError

from .conftest import NOW, OWNER


def goal_row(**overrides):
    row = {
        "id": "g1",
        "userId": OWNER,
        "title": "Goal",
        "type": "weekly",
        "category": "COURSE",
        "targetId": "c1",
        "target": 3,
        "current": 1,
        "isDone": False,
        "deadline": None,
        "color": None,
        "createdAt": NOW,
        "updatedAt": NOW,
    }
    row.update(overrides)
    return SimpleNamespace(**row)


class TestScopeFilters:
    """Test the goal-matching predicate."""

    def test_course_and_modules(self):
        filters = scope_filters([CourseScope("c1"), ModuleScope("m2"), ModuleScope("m1")])
        assert filters == [
            {"category": "COURSE", "targetId": {"in": ["c1"]}},
            {"category": "MODULE", "targetId": {"in": ["m1", "m2"]}},
        ]

    def test_custom_scope_matches_nothing(self):
        assert scope_filters([CustomScope()]) == []


class TestPrismaGoalStore:
    """Test goal persistence against a mock Prisma client."""

    @pytest.mark.asyncio
    async def test_insert_stores_enum_values_and_owner(self, mock_db):
        mock_db.goal.results["create"] = goal_row()
        store = PrismaGoalStore(mock_db)

        goal = await store.insert_goal(
            OWNER,
            {"title": "Goal", "type": GoalType.WEEKLY, "category": GoalCategory.COURSE, "target": 3},
        )

        _, kwargs = mock_db.goal.calls[0]
        assert kwargs["data"] == {
            "title": "Goal",
            "type": "weekly",
            "category": "COURSE",
            "target": 3,
            "userId": OWNER,
        }
        assert goal.category is GoalCategory.COURSE

    @pytest.mark.asyncio
    async def test_find_goal_filters_by_owner(self, mock_db):
        store = PrismaGoalStore(mock_db)
        assert await store.find_goal("g1", OWNER) is None
        _, kwargs = mock_db.goal.calls[0]
        assert kwargs["where"] == {"id": "g1", "userId": OWNER}

    @pytest.mark.asyncio
    async def test_find_goals_matching(self, mock_db):
        mock_db.goal.results["find_many"] = [goal_row(), goal_row(id="g2")]
        store = PrismaGoalStore(mock_db)

        goals = await store.find_goals_matching(OWNER, [CourseScope("c1")])

        assert [goal.id for goal in goals] == ["g1", "g2"]
        _, kwargs = mock_db.goal.calls[0]
        assert kwargs["where"]["userId"] == OWNER
        assert kwargs["where"]["OR"] == [{"category": "COURSE", "targetId": {"in": ["c1"]}}]

    @pytest.mark.asyncio
    async def test_find_goals_matching_without_scopes_skips_query(self, mock_db):
        store = PrismaGoalStore(mock_db)
        assert await store.find_goals_matching(OWNER, []) == []
        assert mock_db.goal.calls == []

    @pytest.mark.asyncio
    async def test_update_is_owner_scoped(self, mock_db):
        mock_db.goal.results["update_many"] = 0
        store = PrismaGoalStore(mock_db)

        written = await store.update_goal("g1", OWNER, {"current": 2, "isDone": False})

        assert written is False
        _, kwargs = mock_db.goal.calls[0]
        assert kwargs["where"] == {"id": "g1", "userId": OWNER}

    @pytest.mark.asyncio
    async def test_delete_missing_goal_is_a_no_op(self, mock_db):
        mock_db.goal.results["delete_many"] = 0
        await PrismaGoalStore(mock_db).delete_goal("g1", OWNER)
        _, kwargs = mock_db.goal.calls[0]
        assert kwargs["where"] == {"id": "g1", "userId": OWNER}

    @pytest.mark.asyncio
    async def test_prisma_errors_become_persistence_errors(self, mock_db):
        mock_db.goal.error = PrismaError("connection reset")
        with pytest.raises(PersistenceError) as exc_info:
            await PrismaGoalStore(mock_db).list_goals(OWNER)
        assert exc_info.value.status_code == 503
        assert "list_goals" in exc_info.value.detail


class TestPrismaHierarchyAccessor:
    """Test hierarchy reads against a mock Prisma client."""

    @pytest.mark.asyncio
    async def test_fetch_course_with_topics(self, mock_db):
        mock_db.course.results["find_first"] = SimpleNamespace(
            id="c1",
            userId=OWNER,
            title="Course",
            modules=[
                SimpleNamespace(
                    id="m1",
                    courseId="c1",
                    title="Module",
                    topics=[
                        SimpleNamespace(id="t1", title="T1", isCompleted=True, completedAt=NOW),
                        SimpleNamespace(id="t2", title="T2", isCompleted=False, completedAt=None),
                    ],
                )
            ],
        )

        course = await PrismaHierarchyAccessor(mock_db).fetch_course_with_topics(OWNER, "c1")

        assert len(course.topics) == 2
        assert len(course.completed_topics) == 1
        _, kwargs = mock_db.course.calls[0]
        assert kwargs["where"] == {"id": "c1", "userId": OWNER}

    @pytest.mark.asyncio
    async def test_fetch_module_is_owner_scoped(self, mock_db):
        module = await PrismaHierarchyAccessor(mock_db).fetch_module_with_topics(OWNER, "m1")
        assert module is None
        _, kwargs = mock_db.module.calls[0]
        assert kwargs["where"] == {"id": "m1", "course": {"userId": OWNER}}

    @pytest.mark.asyncio
    async def test_list_module_ids(self, mock_db):
        mock_db.course.results["find_first"] = SimpleNamespace(
            id="c1", modules=[SimpleNamespace(id="m1"), SimpleNamespace(id="m2")]
        )
        ids = await PrismaHierarchyAccessor(mock_db).list_module_ids(OWNER, "c1")
        assert ids == ["m1", "m2"]

    @pytest.mark.asyncio
    async def test_list_module_ids_for_invisible_course(self, mock_db):
        assert await PrismaHierarchyAccessor(mock_db).list_module_ids(OWNER, "c1") is None


class TestSetTopicCompletion:
    """Test the topic completion write."""

    @pytest.mark.asyncio
    async def test_completing_stamps_completed_at(self, mock_db):
        mock_db.topic.results["find_first"] = SimpleNamespace(
            id="t1", module=SimpleNamespace(courseId="c1")
        )
        mock_db.topic.results["update"] = SimpleNamespace(
            id="t1", title="T1", isCompleted=True, completedAt=NOW
        )

        topic, course_id = await set_topic_completion(mock_db, OWNER, "t1", True)

        assert course_id == "c1"
        assert topic.isCompleted is True
        _, kwargs = mock_db.topic.calls[1]
        assert kwargs["data"]["isCompleted"] is True
        assert kwargs["data"]["completedAt"] is not None

    @pytest.mark.asyncio
    async def test_uncompleting_clears_completed_at(self, mock_db):
        mock_db.topic.results["find_first"] = SimpleNamespace(
            id="t1", module=SimpleNamespace(courseId="c1")
        )
        mock_db.topic.results["update"] = SimpleNamespace(
            id="t1", title="T1", isCompleted=False, completedAt=None
        )

        await set_topic_completion(mock_db, OWNER, "t1", False)

        _, kwargs = mock_db.topic.calls[1]
        assert kwargs["data"] == {"isCompleted": False, "completedAt": None}

    @pytest.mark.asyncio
    async def test_foreign_topic(self, mock_db):
        with pytest.raises(ResourceNotFoundError):
            await set_topic_completion(mock_db, OWNER, "t1", True)
        assert len(mock_db.topic.calls) == 1
