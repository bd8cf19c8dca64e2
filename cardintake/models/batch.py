from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cardintake.db.base import Base
from cardintake.models.common import TimestampMixin, UUIDPrimaryKeyMixin

BATCH_STATUSES = ("uploaded", "processing", "needs_pairing", "paired", "ocr_processing", "ocr_complete", "failed")


class Batch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "batches"

    profile_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="Untitled Batch")
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="uploaded", nullable=False, index=True)
    total_files: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    uploads = relationship("Upload", back_populates="batch", cascade="all, delete-orphan")
    pairs = relationship("CardPair", back_populates="batch", cascade="all, delete-orphan")
    jobs = relationship("Job", back_populates="batch", cascade="all, delete-orphan")
    cards = relationship("Card", back_populates="batch", cascade="all, delete-orphan")
