#!/usr/bin/env python3
"""
SyncFlow — Demo data seeder

Populates an empty database with a small team, a four-column board, tasks,
ADRs, PR reviews and a few activity entries. Does nothing when users exist.

Usage:
    python seed.py
    python seed.py --init-db
"""

import argparse
import asyncio
import logging

from storage import Storage

logger = logging.getLogger("syncflow.seed")

USERS = [
    {"key": "alex", "name": "Alex Chen", "email": "alex@syncflow.com", "avatar": "https://i.pravatar.cc/150?u=u1",
     "role": "Architect", "timezone": "America/Los_Angeles", "utc_offset": -8, "status": "online"},
    {"key": "sarah", "name": "Sarah Jones", "email": "sarah@syncflow.com", "avatar": "https://i.pravatar.cc/150?u=u2",
     "role": "Engineer", "timezone": "Europe/London", "utc_offset": 0, "status": "online"},
    {"key": "mike", "name": "Mike Ross", "email": "mike@syncflow.com", "avatar": "https://i.pravatar.cc/150?u=u3",
     "role": "Reviewer", "timezone": "Asia/Tokyo", "utc_offset": 9, "status": "idle"},
    {"key": "jessica", "name": "Jessica Pearson", "email": "jessica@syncflow.com", "avatar": "https://i.pravatar.cc/150?u=u4",
     "role": "Engineer", "timezone": "America/New_York", "utc_offset": -5, "status": "online"},
]

COLUMNS = ["Backlog", "In Progress", "Review", "Done"]

# (column, title, description, tag, priority, assignees, viewers, comments)
TASKS = [
    ("Backlog", "Research Competitor Analysis", "Deep dive into Q4 strategies of main competitors.",
     "Product", "Low", ["mike"], [], 2),
    ("Backlog", "Update API Documentation", "Reflect recent changes in the auth endpoints.",
     "Engineering", "Medium", ["alex"], ["mike"], 0),
    ("In Progress", "Fix Navigation Bug on Mobile", "Menu doesn't collapse when clicking outside.",
     "Bug", "High", ["alex", "sarah"], ["alex", "sarah"], 5),
    ("In Progress", "Design System Audit", "Check consistency of primary button styles.",
     "Design", "Medium", ["jessica"], [], 1),
    ("Review", "Integrate Stripe Payments", "Full checkout flow implementation.",
     "Engineering", "High", ["sarah"], [], 8),
    ("Done", "Q3 Marketing Plan", "Finalized and approved by board.",
     "Product", "High", ["jessica"], [], 12),
]

ADRS = [
    ("alex", "ADR-001: Use PostgreSQL for Relational Data", "Accepted",
     "We will use PostgreSQL as our primary relational database due to its robustness, JSON support, and active community.",
     ["Database", "Backend"]),
    ("jessica", "ADR-002: Adopt Tailwind CSS for Styling", "Accepted",
     "Tailwind CSS will be used to ensure consistency and speed up development. We will use a custom theme configuration.",
     ["Frontend", "Styling"]),
    ("sarah", "ADR-003: Server-Side Rendering Strategy", "Proposed",
     "Evaluating the shift to SSR for better SEO and initial load performance on marketing pages.",
     ["Frontend", "Performance"]),
]

PR_REVIEWS = [
    ("sarah", "feat: Add user authentication flow", "High",
     "Implements JWT based auth. Changes to security middleware detected.",
     [("c1", "Verify token expiration handling", False),
      ("c2", "Check for hardcoded secrets", True),
      ("c3", "Ensure secure cookie settings", False)]),
    ("jessica", "fix: Navbar responsiveness", "Low",
     "CSS changes only. Updates breakpoints for mobile devices.",
     [("c4", "Test on iPhone SE", True),
      ("c5", "Check landscape mode", False)]),
]

ACTIVITIES = [
    ("alex", "moved", "Fix Navigation Bug"),
    ("sarah", "commented on", "Design System Audit"),
    ("jessica", "completed", "Q3 Marketing Plan"),
]


async def seed_database(store: Storage) -> bool:
    """Seed an empty database. Returns False when data already exists."""
    if await store.list_users():
        logger.info("Database already seeded, skipping")
        return False

    async with store.atomic():
        users = {}
        for spec in USERS:
            fields = {k: v for k, v in spec.items() if k != "key"}
            users[spec["key"]] = await store.create_user(fields)

        columns = {}
        for position, title in enumerate(COLUMNS):
            columns[title] = await store.create_column({"title": title, "position": position})

        for column, title, description, tag, priority, assignees, viewers, comments in TASKS:
            await store.create_task({
                "title": title,
                "description": description,
                "tag": tag,
                "priority": priority,
                "column_id": columns[column].id,
                "assigned_to": [users[k].id for k in assignees],
                "active_viewers": [users[k].id for k in viewers],
                "comments": comments,
            })

        for author, title, status, summary, tags in ADRS:
            await store.create_adr({
                "title": title, "status": status, "summary": summary,
                "author_id": users[author].id, "tags": tags,
            })

        for author, title, risk, summary, checklist in PR_REVIEWS:
            await store.create_pr_review({
                "title": title, "author_id": users[author].id, "risk_level": risk,
                "summary": summary,
                "checklist": [{"id": i, "text": t, "checked": c} for i, t, c in checklist],
            })

        for actor, action, target in ACTIVITIES:
            await store.create_activity({"user_id": users[actor].id, "action": action, "target": target})

    logger.info(
        f"Seeded {len(USERS)} users, {len(COLUMNS)} columns, {len(TASKS)} tasks, "
        f"{len(ADRS)} ADRs, {len(PR_REVIEWS)} PR reviews, {len(ACTIVITIES)} activities"
    )
    return True


async def _main(init: bool):
    from database import get_db_context, init_db, close_db

    if init:
        await init_db()
    async with get_db_context() as session:
        await seed_database(Storage(session))
    await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="SyncFlow demo data seeder")
    parser.add_argument("--init-db", action="store_true", help="Create tables before seeding")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    asyncio.run(_main(args.init_db))
