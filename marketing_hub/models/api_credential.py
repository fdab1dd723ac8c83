"""
API Credential Model

Shared secrets used to authenticate inbound webhook and import calls.
Written by the settings UI; read-only for ingestion apart from last_sync_at.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from datetime import datetime

from marketing_hub.models.base import Base


class ApiCredential(Base):
    __tablename__ = "api_credentials"

    id = Column(Integer, primary_key=True, index=True)
    service_name = Column(String, unique=True, nullable=False, index=True)
    api_key = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    additional_config = Column(JSON, nullable=True)  # e.g. {"folder_id": "..."} for google_drive
    last_sync_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        state = "active" if self.is_active else "inactive"
        return f"<ApiCredential {self.service_name} [{state}]>"
