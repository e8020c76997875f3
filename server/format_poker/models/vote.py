from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from format_poker.core.time import utcnow
from format_poker.models.base import Base


class Vote(Base):
    """One device's vote for one format. The row's existence is the vote."""

    __tablename__ = "votes"

    device_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    format_id: Mapped[str] = mapped_column(
        ForeignKey("formats.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    format: Mapped["Format"] = relationship("Format", back_populates="vote_rows")
