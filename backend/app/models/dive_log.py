from datetime import date, datetime
from sqlalchemy import String, Float, Boolean, Date, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class DiveLog(Base):
    """Dive log row. Written by the dive log app, only read by the coaching API."""

    __tablename__ = "dive_logs"

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True)
    user_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), nullable=False, index=True)
    dive_date: Mapped[date | None] = mapped_column("date", Date, nullable=True)
    discipline: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    target_depth: Mapped[float | None] = mapped_column(Float, nullable=True)
    reached_depth: Mapped[float | None] = mapped_column(Float, nullable=True)
    mouthfill_depth: Mapped[float | None] = mapped_column(Float, nullable=True)
    issue_depth: Mapped[float | None] = mapped_column(Float, nullable=True)
    issue_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_dive_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    squeeze: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    blackout: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
