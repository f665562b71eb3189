from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from tasktracker.database import Base


def utc_now():
    return datetime.now(UTC)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    # always stored lower-cased; uniqueness is case-insensitive
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    name = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    tasks = relationship("Task", back_populates="owner", passive_deletes=True)
