"""Initial schema."""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "batches",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("total_files", sa.Integer(), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_batches_profile_id", "batches", ["profile_id"], unique=False)
    op.create_index("ix_batches_status", "batches", ["status"], unique=False)
    op.create_index("ix_batches_created_at", "batches", ["created_at"], unique=False)

    op.create_table(
        "uploads",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("storage_path", sa.String(length=500), nullable=False),
        sa.Column("mime_type", sa.String(length=64), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_uploads_profile_id", "uploads", ["profile_id"], unique=False)
    op.create_index("ix_uploads_batch_id", "uploads", ["batch_id"], unique=False)
    op.create_index("ix_uploads_status", "uploads", ["status"], unique=False)
    op.create_index("ix_uploads_created_at", "uploads", ["created_at"], unique=False)

    op.create_table(
        "card_pairs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("front_upload_id", sa.String(length=36), sa.ForeignKey("uploads.id", ondelete="CASCADE"), nullable=False),
        sa.Column("back_upload_id", sa.String(length=36), sa.ForeignKey("uploads.id", ondelete="CASCADE"), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("method", sa.String(length=32), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_card_pairs_profile_id", "card_pairs", ["profile_id"], unique=False)
    op.create_index("ix_card_pairs_batch_id", "card_pairs", ["batch_id"], unique=False)
    op.create_index("ix_card_pairs_front_upload_id", "card_pairs", ["front_upload_id"], unique=True)
    op.create_index("ix_card_pairs_back_upload_id", "card_pairs", ["back_upload_id"], unique=True)
    op.create_index("ix_card_pairs_status", "card_pairs", ["status"], unique=False)
    op.create_index("ix_card_pairs_created_at", "card_pairs", ["created_at"], unique=False)

    op.create_table(
        "jobs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_jobs_profile_id", "jobs", ["profile_id"], unique=False)
    op.create_index("ix_jobs_batch_id", "jobs", ["batch_id"], unique=False)
    op.create_index("ix_jobs_type", "jobs", ["type"], unique=False)
    op.create_index("ix_jobs_status", "jobs", ["status"], unique=False)
    op.create_index("ix_jobs_created_at", "jobs", ["created_at"], unique=False)

    op.create_table(
        "job_events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("job_id", sa.String(length=36), sa.ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("level", sa.String(length=16), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_job_events_job_id", "job_events", ["job_id"], unique=False)
    op.create_index("ix_job_events_at", "job_events", ["at"], unique=False)

    op.create_table(
        "cards",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("profile_id", sa.String(length=64), nullable=False),
        sa.Column("batch_id", sa.String(length=36), sa.ForeignKey("batches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("pair_id", sa.String(length=36), sa.ForeignKey("card_pairs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("player", sa.String(length=255), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("card_number", sa.String(length=64), nullable=True),
        sa.Column("set_name", sa.String(length=255), nullable=True),
        sa.Column("brand", sa.String(length=128), nullable=True),
        sa.Column("sport", sa.String(length=64), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=True),
        sa.Column("condition", sa.String(length=128), nullable=True),
        sa.Column("is_graded", sa.Boolean(), nullable=False),
        sa.Column("grading_company", sa.String(length=64), nullable=True),
        sa.Column("grade", sa.String(length=32), nullable=True),
        sa.Column("certification_number", sa.String(length=64), nullable=True),
        sa.Column("parallel_type", sa.String(length=128), nullable=True),
        sa.Column("insert_type", sa.String(length=128), nullable=True),
        sa.Column("rarity_type", sa.String(length=128), nullable=True),
        sa.Column("is_rookie", sa.Boolean(), nullable=False),
        sa.Column("is_autographed", sa.Boolean(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("needs_human_review", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("ocr_raw", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_cards_profile_id", "cards", ["profile_id"], unique=False)
    op.create_index("ix_cards_batch_id", "cards", ["batch_id"], unique=False)
    op.create_index("ix_cards_pair_id", "cards", ["pair_id"], unique=True)
    op.create_index("ix_cards_needs_human_review", "cards", ["needs_human_review"], unique=False)
    op.create_index("ix_cards_status", "cards", ["status"], unique=False)
    op.create_index("ix_cards_created_at", "cards", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("cards")
    op.drop_table("job_events")
    op.drop_table("jobs")
    op.drop_table("card_pairs")
    op.drop_table("uploads")
    op.drop_table("batches")
