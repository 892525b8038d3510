"""
Database seed script for local and preview environments.

Seeds a demo course hierarchy and a few goals for DEMO_USER_ID. Safe to run
multiple times: every row is upserted on a fixed id.

Copyright (C) 2025 Prepdeck
"""

import asyncio
import os
from datetime import UTC, datetime, timedelta

from prisma import Prisma

DEMO_USER_ID = os.getenv("DEMO_USER_ID", "demo-user")
COURSE_ID = "seed-course-dsa"

# module id -> (title, [topic titles])
MODULES = {
    "seed-module-arrays": ("Arrays and Hashing", ["Two pointers", "Sliding window", "Prefix sums"]),
    "seed-module-graphs": ("Graphs", ["BFS", "DFS", "Topological sort", "Dijkstra"]),
}


async def main() -> None:
    """Seed the database with demo data."""
    prisma = Prisma()
    await prisma.connect()

    try:
        await prisma.course.upsert(
            where={"id": COURSE_ID},
            data={
                "create": {
                    "id": COURSE_ID,
                    "userId": DEMO_USER_ID,
                    "title": "Data Structures and Algorithms",
                },
                "update": {"userId": DEMO_USER_ID},
            },
        )

        topic_count = 0
        for module_order, (module_id, (module_title, topics)) in enumerate(MODULES.items()):
            await prisma.module.upsert(
                where={"id": module_id},
                data={
                    "create": {
                        "id": module_id,
                        "courseId": COURSE_ID,
                        "title": module_title,
                        "order": module_order,
                    },
                    "update": {"title": module_title, "order": module_order},
                },
            )
            for topic_order, topic_title in enumerate(topics):
                topic_id = f"{module_id}-topic-{topic_order}"
                await prisma.topic.upsert(
                    where={"id": topic_id},
                    data={
                        "create": {
                            "id": topic_id,
                            "moduleId": module_id,
                            "title": topic_title,
                            "order": topic_order,
                        },
                        "update": {"title": topic_title, "order": topic_order},
                    },
                )
                topic_count += 1

        # Progress starts at zero; the first topic toggle syncs it
        goals = [
            {
                "id": "seed-goal-course",
                "title": "Finish DSA",
                "category": "COURSE",
                "targetId": COURSE_ID,
                "target": topic_count,
            },
            {
                "id": "seed-goal-graphs",
                "title": "Master graphs",
                "category": "MODULE",
                "targetId": "seed-module-graphs",
                "target": len(MODULES["seed-module-graphs"][1]),
                "deadline": datetime.now(UTC) + timedelta(days=14),
            },
            {
                "id": "seed-goal-mock",
                "title": "Mock interviews",
                "category": "CUSTOM",
                "target": 5,
            },
        ]
        for goal in goals:
            await prisma.goal.upsert(
                where={"id": goal["id"]},
                data={
                    "create": {**goal, "userId": DEMO_USER_ID, "type": "weekly"},
                    "update": {"target": goal["target"]},
                },
            )

        print(f"✓ Seeded course {COURSE_ID} with {topic_count} topics for {DEMO_USER_ID}")
        print(f"✓ Seeded {len(goals)} goals")
    except Exception as e:
        print(f"✗ Error seeding database: {e}")
        raise
    finally:
        await prisma.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
