from datetime import datetime, timezone
from sqlalchemy import Column, DateTime


def utcnow() -> datetime:
    # Set in Python so the value does not depend on the database session's time zone
    return datetime.now(timezone.utc)


class CreatedAtMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class UpdatedAtMixin:
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
