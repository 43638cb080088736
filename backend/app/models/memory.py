from datetime import datetime
from sqlalchemy import JSON, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.core.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class UserMemory(Base):
    __tablename__ = "user_memory"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Oldest first; each item is {"userMessage", "assistantReply", "timestamp"}
    entries: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    profile: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
