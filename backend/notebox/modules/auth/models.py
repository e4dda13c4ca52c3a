from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from notebox.db import Base


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(120), nullable=False, unique=True, index=True)
    email = Column(String(254))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    notes = relationship("Note", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
