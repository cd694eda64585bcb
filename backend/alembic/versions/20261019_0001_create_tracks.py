"""Create tracks table."""
from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """建立音軌文件資料表。"""

    op.create_table(
        "tracks",
        sa.Column("track_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("original_track_url", sa.Text(), nullable=False),
        sa.Column("stems", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("mix_settings", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("generation", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("separation", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("storage", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=False),
    )
    op.create_index(op.f("ix_tracks_created_at"), "tracks", ["created_at"], unique=False)


def downgrade() -> None:
    """移除音軌文件資料表。"""

    op.drop_index(op.f("ix_tracks_created_at"), table_name="tracks")
    op.drop_table("tracks")
