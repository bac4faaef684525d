#!/usr/bin/env python
"""Seed development database with a sample wiki hierarchy.

Creates a small published tree in the "docs" collection for local UI testing:

    Getting Started
      Installation
        Docker Setup
      Configuration
    Reference
      API Endpoints

Constraints:
- Refuses to run in staging or prod (PAGETREE_ENV check)
- Idempotent: nodes whose slug already exists are reused, not recreated
- Never runs automatically (manual invocation only)

Usage:
    cd python && DATABASE_URL=... python ../scripts/seed_dev.py
"""

import os
import sys

COLLECTION_ID = "docs"

# (title, parent title or None), parents listed before children
FIXTURE_TREE = [
    ("Getting Started", None),
    ("Installation", "Getting Started"),
    ("Docker Setup", "Installation"),
    ("Configuration", "Getting Started"),
    ("Reference", None),
    ("API Endpoints", "Reference"),
]


def main():
    # 1. Environment check (hard fail in staging/prod)
    pagetree_env = os.getenv("PAGETREE_ENV", "local")
    if pagetree_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in PAGETREE_ENV={pagetree_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from pagetree.db.models import ContentStatus
    from pagetree.db.session import create_session_factory
    from pagetree.errors import SlugConflictError
    from pagetree.services import content_nodes
    from pagetree.services.slugs import slugify

    session_factory = create_session_factory()
    ids_by_title = {}
    report = []

    # 3. Idempotent seeding through the service layer
    with session_factory() as db:
        for title, parent_title in FIXTURE_TREE:
            parent_id = ids_by_title.get(parent_title) if parent_title else None
            try:
                node = content_nodes.create_node(
                    db,
                    COLLECTION_ID,
                    title,
                    parent_id=parent_id,
                    status=ContentStatus.published,
                    content=f"Sample content for {title}.",
                )
                report.append(("✓ Created", title))
            except SlugConflictError:
                node = content_nodes.get_node_by_slug(db, COLLECTION_ID, slugify(title))
                report.append(("• Exists", title))
            ids_by_title[title] = node.id

    # 4. Report
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"PAGETREE_ENV: {pagetree_env}")
    print(f"Collection: {COLLECTION_ID}")
    print()
    for label, title in report:
        print(f"{label}: {title} ({ids_by_title[title]})")


if __name__ == "__main__":
    main()
