from sqlalchemy import Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cardintake.db.base import Base
from cardintake.models.common import TimestampMixin, UUIDPrimaryKeyMixin

PAIR_STATUSES = ("unpaired", "paired")
PAIR_METHODS = ("auto_filename", "auto_sequential", "manual")


class CardPair(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "card_pairs"

    profile_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    batch_id: Mapped[str] = mapped_column(ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    front_upload_id: Mapped[str] = mapped_column(
        ForeignKey("uploads.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    back_upload_id: Mapped[str | None] = mapped_column(
        ForeignKey("uploads.id", ondelete="CASCADE"), nullable=True, unique=True, index=True
    )
    status: Mapped[str] = mapped_column(String(32), default="paired", nullable=False, index=True)
    method: Mapped[str] = mapped_column(String(32), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)

    batch = relationship("Batch", back_populates="pairs")
    front_upload = relationship("Upload", foreign_keys=[front_upload_id])
    back_upload = relationship("Upload", foreign_keys=[back_upload_id])
    card = relationship("Card", back_populates="pair", uselist=False)
