"""Base Models and Mixins"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer

from qpy_submission.database import Base


def utc_now() -> datetime:
    # Columns are TIMESTAMP WITHOUT TIME ZONE
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel(Base):
    """
    Base model class for all tables.

    Ids are integers because the host platform addresses every row
    (contexts, submissions, usages) by integer id.
    """
    __abstract__ = True

    id = Column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    """
    Mixin for rows this service writes itself.

    Provides:
    - created_at timestamp
    - updated_at timestamp
    """
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)
