"""Shared fixtures: in-memory hierarchy and goal store, builders, HTTP client."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from prepdeck.config import Settings
from prepdeck.core.database import get_db_client
from prepdeck.core.security import create_access_token
from prepdeck.dependencies import get_goal_service
from prepdeck.main import app
from prepdeck.models.goals import Goal, GoalCategory
from prepdeck.models.hierarchy import CourseSnapshot, ModuleSnapshot, TopicSnapshot
from prepdeck.services.goal_scope import CourseScope, GoalScope, ModuleScope
from prepdeck.services.goal_service import GoalService
from prepdeck.utils.exceptions import PersistenceError

OWNER = "user-1"
OTHER_OWNER = "user-2"
NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


# ============================================================================
# Builders
# ============================================================================


def make_course(
    course_id: str = "course-1",
    owner_id: str = OWNER,
    modules: dict[str, list[bool]] | None = None,
    completed_at: datetime | None = None,
) -> CourseSnapshot:
    """
    Build a course snapshot from ``{module_id: [completed, ...]}``.

    Completed topics are stamped with ``completed_at`` (defaults to NOW).
    """
    modules = modules if modules is not None else {"module-1": [False, False]}
    return CourseSnapshot(
        id=course_id,
        userId=owner_id,
        title=f"Course {course_id}",
        modules=[
            ModuleSnapshot(
                id=module_id,
                courseId=course_id,
                title=f"Module {module_id}",
                topics=[
                    TopicSnapshot(
                        id=f"{module_id}-t{index}",
                        title=f"Topic {index}",
                        isCompleted=done,
                        completedAt=(completed_at or NOW) if done else None,
                    )
                    for index, done in enumerate(states)
                ],
            )
            for module_id, states in modules.items()
        ],
    )


def make_goal(**overrides: Any) -> Goal:
    fields: dict[str, Any] = {
        "id": "goal-1",
        "userId": OWNER,
        "title": "A goal",
        "category": GoalCategory.CUSTOM,
        "target": 1,
        "current": 0,
        "isDone": False,
        "createdAt": NOW,
    }
    fields.update(overrides)
    return Goal(**fields)


# ============================================================================
# In-memory collaborators
# ============================================================================


class FakeHierarchy:
    """HierarchyAccessor over a dict of course snapshots, filtered by owner."""

    def __init__(self, *courses: CourseSnapshot):
        self.courses = {course.id: course for course in courses}
        self.fail = False
        self.reads = 0

    def add(self, course: CourseSnapshot) -> None:
        self.courses[course.id] = course

    def set_topic(self, course_id: str, topic_id: str, completed: bool) -> None:
        for topic in self.courses[course_id].topics:
            if topic.id == topic_id:
                topic.isCompleted = completed
                topic.completedAt = NOW if completed else None

    def _check(self) -> None:
        self.reads += 1
        if self.fail:
            raise PersistenceError(detail="hierarchy unavailable")

    async def fetch_course_with_topics(self, owner_id: str, course_id: str):
        self._check()
        course = self.courses.get(course_id)
        if course is None or course.userId != owner_id:
            return None
        return course.model_copy(deep=True)

    async def fetch_module_with_topics(self, owner_id: str, module_id: str):
        self._check()
        for course in self.courses.values():
            if course.userId != owner_id:
                continue
            module = course.find_module(module_id)
            if module is not None:
                return module.model_copy(deep=True)
        return None

    async def list_module_ids(self, owner_id: str, course_id: str):
        self._check()
        course = self.courses.get(course_id)
        if course is None or course.userId != owner_id:
            return None
        return [module.id for module in course.modules]


class FakeGoalStore:
    """GoalStore over a dict, with per-goal write failure and deletion injection."""

    def __init__(self):
        self.goals: dict[str, Goal] = {}
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.failing_ids: set[str] = set()
        # Deleted by a concurrent request just before the write lands
        self.vanishing_ids: set[str] = set()
        self._ids = count(1)

    def put(self, goal: Goal) -> Goal:
        self.goals[goal.id] = goal
        return goal

    async def insert_goal(self, owner_id: str, fields: dict[str, Any]) -> Goal:
        n = next(self._ids)
        goal = Goal(
            id=f"goal-{n}",
            userId=owner_id,
            createdAt=NOW + timedelta(seconds=n),
            **fields,
        )
        return self.put(goal)

    async def find_goal(self, goal_id: str, owner_id: str):
        goal = self.goals.get(goal_id)
        return goal if goal and goal.userId == owner_id else None

    async def find_goals_matching(self, owner_id: str, scopes: list[GoalScope]):
        wanted = set()
        for scope in scopes:
            if isinstance(scope, CourseScope):
                wanted.add((GoalCategory.COURSE, scope.course_id))
            elif isinstance(scope, ModuleScope):
                wanted.add((GoalCategory.MODULE, scope.module_id))
        return sorted(
            (
                goal
                for goal in self.goals.values()
                if goal.userId == owner_id and (goal.category, goal.targetId) in wanted
            ),
            key=lambda goal: goal.createdAt,
        )

    async def list_goals(self, owner_id: str):
        owned = [goal for goal in self.goals.values() if goal.userId == owner_id]
        return sorted(owned, key=lambda goal: goal.createdAt, reverse=True)

    async def update_goal(self, goal_id: str, owner_id: str, patch: dict[str, Any]) -> bool:
        if goal_id in self.failing_ids:
            raise PersistenceError(detail=f"write failed for {goal_id}")
        if goal_id in self.vanishing_ids:
            self.goals.pop(goal_id, None)
        goal = await self.find_goal(goal_id, owner_id)
        if goal is None:
            return False
        self.writes.append((goal_id, patch))
        self.goals[goal_id] = goal.model_copy(update=patch)
        return True

    async def delete_goal(self, goal_id: str, owner_id: str) -> None:
        if await self.find_goal(goal_id, owner_id):
            del self.goals[goal_id]


# ============================================================================
# Mock Prisma client
# ============================================================================


class MockActions:
    """Stands in for one Prisma model: records calls, returns canned results."""

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.results: dict[str, Any] = {}
        self.error: Exception | None = None

    async def _call(self, action: str, **kwargs: Any) -> Any:
        self.calls.append((action, kwargs))
        if self.error is not None:
            raise self.error
        return self.results.get(action)

    async def create(self, **kwargs):
        return await self._call("create", **kwargs)

    async def find_first(self, **kwargs):
        return await self._call("find_first", **kwargs)

    async def find_many(self, **kwargs):
        return await self._call("find_many", **kwargs)

    async def update(self, **kwargs):
        return await self._call("update", **kwargs)

    async def update_many(self, **kwargs):
        return await self._call("update_many", **kwargs)

    async def delete_many(self, **kwargs):
        return await self._call("delete_many", **kwargs)


class MockPrismaClient:
    """Mock Prisma client for testing."""

    def __init__(self):
        self.course = MockActions()
        self.module = MockActions()
        self.topic = MockActions()
        self.goal = MockActions()
        self.healthy = True

    async def query_raw(self, query: str):
        if not self.healthy:
            raise ConnectionError("database down")
        return [{"test": 1}]


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        GOAL_DEFAULT_VELOCITY_PER_WEEK=2.5,
        GOAL_URGENCY_WINDOW_DAYS=3,
        GOAL_VELOCITY_WINDOW_WEEKS=4,
    )


@pytest.fixture
def hierarchy() -> FakeHierarchy:
    return FakeHierarchy(
        make_course("course-1", modules={"module-1": [True, False], "module-2": [False, False]}),
        make_course("course-2", modules={"module-3": [True]}),
        make_course("foreign-course", owner_id=OTHER_OWNER, modules={"foreign-module": [False]}),
    )


@pytest.fixture
def store() -> FakeGoalStore:
    return FakeGoalStore()


@pytest.fixture
def service(store, hierarchy, settings) -> GoalService:
    return GoalService(store=store, hierarchy=hierarchy, settings=settings)


@pytest.fixture
def mock_db() -> MockPrismaClient:
    return MockPrismaClient()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(OWNER)}"}


@pytest.fixture
async def client(service, mock_db) -> AsyncGenerator[AsyncClient, None]:
    """Async test client wired to the in-memory service and mock database."""

    async def override_get_db_client() -> AsyncGenerator:
        yield mock_db

    app.dependency_overrides[get_goal_service] = lambda: service
    app.dependency_overrides[get_db_client] = override_get_db_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
