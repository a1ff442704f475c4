"""Create the articles table.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # gen_random_uuid() is built in from PostgreSQL 13; pgcrypto covers older servers.
    op.execute(sa.text("CREATE EXTENSION IF NOT EXISTS pgcrypto"))

    op.create_table(
        "articles",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(512), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("original_content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("source_url", sa.Text(), nullable=False),
        sa.Column("author", sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "published_date",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("is_updated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "reference_articles",
            JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("enhancing_since", TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint("slug", name="uq_articles_slug"),
    )
    op.create_index("idx_articles_is_updated", "articles", ["is_updated"])
    op.create_index(
        "idx_articles_published_date",
        "articles",
        [sa.text("published_date DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_articles_published_date", table_name="articles")
    op.drop_index("idx_articles_is_updated", table_name="articles")
    op.drop_table("articles")
