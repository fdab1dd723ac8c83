"""
Sync Log - append-only audit trail of every ingestion attempt.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text
from datetime import datetime

from marketing_hub.models.base import Base


class SyncLog(Base):
    __tablename__ = "sync_log"

    id = Column(Integer, primary_key=True, index=True)
    source = Column(String, nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)  # success | partial | error
    records_count = Column(Integer, default=0)
    error_message = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "status": self.status,
            "records_count": self.records_count,
            "error_message": self.error_message,
            "metadata": self.metadata_,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<SyncLog {self.source} [{self.status}] {self.records_count}>"
