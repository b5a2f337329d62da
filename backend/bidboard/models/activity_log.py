from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func

from bidboard.models.base import Base


class ActivityLog(Base):
    """Change feed: one row per insert/update/delete so clients can poll and reconcile."""
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=True)
    action = Column(String(50), nullable=False)  # INSERT | UPDATE | DELETE | send_to_apm ...
    entity_type = Column(String(50), nullable=False)  # table name
    entity_id = Column(String(128), nullable=True)  # users have string ids
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EmailLog(Base):
    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    report_type = Column(String(50), nullable=False)
    recipients = Column(Text, nullable=False)  # comma separated
    subject = Column(String(512), nullable=True)
    sent_successfully = Column(Boolean, default=False, nullable=False)
    error = Column(Text, nullable=True)
    sent_date = Column(DateTime(timezone=True), server_default=func.now())
