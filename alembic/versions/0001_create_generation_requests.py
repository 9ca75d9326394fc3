"""
Initial schema: create generation_requests table
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# --- Alembic identifiers ---
revision = "0001_create_generation_requests"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "generation_requests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("source_text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("timezone('utc', now())")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("timezone('utc', now())")),
    )

    op.create_index("ix_generation_requests_user_id", "generation_requests", ["user_id"])
    op.create_index(
        "ix_generation_requests_user_created",
        "generation_requests",
        ["user_id", "created_at"],
    )


def downgrade():
    op.drop_index("ix_generation_requests_user_created", table_name="generation_requests")
    op.drop_index("ix_generation_requests_user_id", table_name="generation_requests")
    op.drop_table("generation_requests")
