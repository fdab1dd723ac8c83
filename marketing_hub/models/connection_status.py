"""
Connection Status Model

Per-service health and last-sync record. Drives the dashboard's
connected/disconnected indicators.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text
from datetime import datetime

from marketing_hub.models.base import Base

CONNECTION_STATES = ("connected", "disconnected", "error")


class ConnectionStatus(Base):
    """
    One row per external service

    Created on the first sync attempt and overwritten on every later one.
    Never deleted.
    """
    __tablename__ = "connection_status"

    id = Column(Integer, primary_key=True, index=True)

    service_name = Column(String, unique=True, nullable=False, index=True)  # dataslayer, google_drive, google_sheets
    status = Column(String, nullable=False, default="disconnected", index=True)  # connected, disconnected, error
    last_check_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)  # last sync timestamp, counts

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "service_name": self.service_name,
            "status": self.status,
            "last_check_at": self.last_check_at.isoformat() if self.last_check_at else None,
            "error_message": self.error_message,
            "metadata": self.metadata_,
        }

    def __repr__(self):
        return f"<ConnectionStatus {self.service_name} [{self.status}]>"
