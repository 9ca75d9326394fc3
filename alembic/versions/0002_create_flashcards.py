"""
Add flashcards table with SM-2 scheduling fields.

Cards reference their generation request with ON DELETE SET NULL: deleting a
request detaches its cards instead of removing them.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# --- Alembic identifiers ---
revision = "0002_create_flashcards"
down_revision = "0001_create_generation_requests"
branch_labels = None
depends_on = None

flashcard_source_enum = postgresql.ENUM("manual", "ai_generated", name="flashcard_source_enum", create_type=False)
flashcard_status_enum = postgresql.ENUM(
    "active", "pending_review", "rejected", name="flashcard_status_enum", create_type=False
)


def upgrade():
    flashcard_source_enum.create(op.get_bind(), checkfirst=True)
    flashcard_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "flashcards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "generation_request_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("generation_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("front", sa.String(length=1000), nullable=False),
        sa.Column("back", sa.String(length=2000), nullable=False),
        sa.Column("source", flashcard_source_enum, nullable=False),
        sa.Column("status", flashcard_status_enum, nullable=False),
        sa.Column("interval", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ease_factor", sa.Float(), nullable=False, server_default="2.5"),
        sa.Column("next_review_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("timezone('utc', now())")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("timezone('utc', now())")),
        sa.CheckConstraint('"interval" >= 0', name="ck_flashcards_interval_non_negative"),
        sa.CheckConstraint("ease_factor >= 1.3", name="ck_flashcards_ease_factor_floor"),
        sa.CheckConstraint(
            "(status = 'active') = (next_review_at IS NOT NULL)",
            name="ck_flashcards_next_review_matches_status",
        ),
    )

    op.create_index("ix_flashcards_user_id", "flashcards", ["user_id"])
    op.create_index(
        "ix_flashcards_due_queue",
        "flashcards",
        ["user_id", "status", "next_review_at"],
    )
    op.create_index(
        "ix_flashcards_generation_request_id",
        "flashcards",
        ["generation_request_id"],
    )


def downgrade():
    op.drop_index("ix_flashcards_generation_request_id", table_name="flashcards")
    op.drop_index("ix_flashcards_due_queue", table_name="flashcards")
    op.drop_index("ix_flashcards_user_id", table_name="flashcards")
    op.drop_table("flashcards")
    flashcard_status_enum.drop(op.get_bind(), checkfirst=True)
    flashcard_source_enum.drop(op.get_bind(), checkfirst=True)
