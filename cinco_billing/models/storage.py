"""
SQLAlchemy model for the local persisted state.
Each row holds one JSON-serialised collection or value under a fixed key.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime
from cinco_billing.core.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class LocalState(Base):
    """Key/value table: 'sites', 'tenants', 'billingRecords', 'billingData', 'sharedData', 'lastSyncTime'."""
    __tablename__ = "local_state"

    key = Column(String(50), primary_key=True)
    value = Column(Text, nullable=False)  # JSON document
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
