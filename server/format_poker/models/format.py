import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from format_poker.core.time import utcnow
from format_poker.models.base import Base


class FormatStatus(str, Enum):
    REQUESTED = "Requested"
    PLANNED = "Planned"
    SUPPORTED = "Supported"
    IN_REVIEW = "In Review"


def new_format_id() -> str:
    return str(uuid.uuid4())


class Format(Base):
    __tablename__ = "formats"
    __table_args__ = (CheckConstraint("votes >= 0", name="ck_formats_votes_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_format_id)
    name: Mapped[str] = mapped_column(String(100))
    kind: Mapped[str] = mapped_column(String(20), index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=FormatStatus.REQUESTED.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Denormalized count of rows in `votes`; only the vote service adjusts it
    votes: Mapped[int] = mapped_column(Integer, default=0, server_default="0", index=True)

    vote_rows: Mapped[list["Vote"]] = relationship(
        "Vote", back_populates="format", cascade="all, delete-orphan", passive_deletes=True
    )


# Names are unique regardless of case ("webp" collides with "WebP")
Index("ux_formats_name_lower", func.lower(Format.name), unique=True)
