from sqlalchemy import JSON, Boolean, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cardintake.db.base import Base
from cardintake.models.common import TimestampMixin, UUIDPrimaryKeyMixin


class Card(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "cards"

    profile_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    batch_id: Mapped[str] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    pair_id: Mapped[str] = mapped_column(
        ForeignKey("card_pairs.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    player: Mapped[str | None] = mapped_column(String(255), nullable=True)
    year: Mapped[int | None] = mapped_column(nullable=True)
    card_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(128), nullable=True)
    sport: Mapped[str | None] = mapped_column(String(64), nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    condition: Mapped[str | None] = mapped_column(String(128), nullable=True)

    is_graded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    grading_company: Mapped[str | None] = mapped_column(String(64), nullable=True)
    grade: Mapped[str | None] = mapped_column(String(32), nullable=True)
    certification_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    parallel_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    insert_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    rarity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_rookie: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_autographed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    confidence: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    needs_human_review: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), default="needs_review", nullable=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    ocr_raw: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    batch = relationship("Batch", back_populates="cards")
    pair = relationship("CardPair", back_populates="card")
