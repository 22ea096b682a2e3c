"""Append-only audit log for registration admissions and review decisions.
No updates or deletes - every record is permanent."""
from sqlalchemy import JSON, Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    registration_id = Column(String(32), ForeignKey("registrations.id"), nullable=True, index=True)

    # category: admission | status_change | failed_attempt | notification
    category = Column(String(32), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # Optional structured data (e.g. previous_status, new_status)
    meta = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    # Who did it: admin username, or the submitting email for admissions
    actor = Column(String(255), nullable=True)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # UTC only - server_default
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
