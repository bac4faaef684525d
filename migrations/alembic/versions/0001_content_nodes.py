"""Content node hierarchy schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates table:
  - content_nodes (tree-shaped content, one forest per collection)

Adds indexes:
  - uix_content_nodes_collection_slug (unique on collection_id, slug)
  - idx_content_nodes_collection_parent (collection_id, parent_id)
  - idx_content_nodes_parent (parent_id)

parent_id deliberately has no foreign key: parent existence and acyclicity
are checked by the service inside its write transaction.
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_nodes",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("collection_id", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column(
            "status",
            sa.String(length=16),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        # Check constraints
        sa.CheckConstraint(
            "parent_id IS NULL OR parent_id <> id",
            name="ck_content_nodes_parent_nonself",
        ),
        sa.CheckConstraint(
            "length(collection_id) BETWEEN 1 AND 100",
            name="ck_content_nodes_collection_id_length",
        ),
        sa.CheckConstraint(
            "length(slug) BETWEEN 1 AND 200",
            name="ck_content_nodes_slug_length",
        ),
        sa.CheckConstraint(
            "status IN ('draft', 'scheduled', 'published', 'archived')",
            name="ck_content_nodes_status",
        ),
        sa.UniqueConstraint("collection_id", "slug", name="uix_content_nodes_collection_slug"),
    )
    op.create_index(
        "idx_content_nodes_collection_parent",
        "content_nodes",
        ["collection_id", "parent_id"],
    )
    op.create_index("idx_content_nodes_parent", "content_nodes", ["parent_id"])


def downgrade() -> None:
    op.drop_index("idx_content_nodes_parent", table_name="content_nodes")
    op.drop_index("idx_content_nodes_collection_parent", table_name="content_nodes")
    op.drop_table("content_nodes")
