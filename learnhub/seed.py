"""Development seed for the in-memory backend.

Creates one admin, one student and a small catalog so a fresh dev
server has something to browse.  Skips everything if the admin account
already exists.
"""

from __future__ import annotations

import logging

from learnhub.api.stores import Repos, build_catalog
from learnhub.models.user import UserProfile
from learnhub.services import auth_service

logger = logging.getLogger(__name__)

ADMIN_EMAIL = "admin@example.com"
STUDENT_EMAIL = "student@example.com"
DEV_PASSWORD = "dev-password"

_CATALOG = [
    (
        "Introduction to Web Development",
        "Learn the basics of HTML, CSS, and JavaScript to build modern websites.",
        "Beginner",
        [
            ("HTML Fundamentals", ["Document structure", "Forms and inputs"]),
            ("CSS Styling", ["Selectors", "Flexbox layouts"]),
            ("JavaScript Basics", ["Variables and types", "Working with the DOM"]),
        ],
    ),
    (
        "Advanced React Patterns",
        "Master advanced React concepts including hooks, context, and custom patterns.",
        "Advanced",
        [
            ("React Hooks in Depth", ["Built-in hooks", "Custom hooks"]),
            ("Context and State Management", ["Context API", "Reducers"]),
        ],
    ),
    (
        "TypeScript for JavaScript Developers",
        "Add static typing to your JavaScript projects with TypeScript.",
        "Average",
        [
            ("Types and Interfaces", ["Basic types", "Interfaces vs aliases"]),
        ],
    ),
]


async def seed_dev_data(repos: Repos) -> None:
    if await repos.users.get_by_email(ADMIN_EMAIL) is not None:
        return

    admin = UserProfile.new(
        name="Admin",
        email=ADMIN_EMAIL,
        role="admin",
        password_hash=auth_service.hash_password(DEV_PASSWORD),
    )
    await repos.users.add(admin)
    await repos.users.add(
        UserProfile.new(
            name="Student",
            email=STUDENT_EMAIL,
            role="student",
            password_hash=auth_service.hash_password(DEV_PASSWORD),
        )
    )

    catalog = build_catalog(repos)
    for title, description, category, modules in _CATALOG:
        course = await catalog.create_course(
            title=title,
            description=description,
            category=category,  # type: ignore[arg-type]
            created_by=admin.id,
        )
        for module_title, videos in modules:
            module = await catalog.create_module(course.id, title=module_title)
            for video_title in videos:
                await catalog.create_video(module.id, title=video_title, duration=600)

    logger.info(
        "Seeded dev data: admin=%s student=%s courses=%d",
        ADMIN_EMAIL,
        STUDENT_EMAIL,
        len(_CATALOG),
    )
