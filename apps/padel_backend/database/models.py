"""
SQLAlchemy ORM models for the padel club store.

Club state is kept as whole-collection snapshots under a handful of keys
(players, bookings, logged_player) rather than as relational tables.
"""

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from padel_backend.database.db import Base


class StoredValue(Base):
    """One key-value bucket holding a JSON snapshot."""

    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
