from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bidboard.models.base import Base


TIMELINE_CATEGORIES = ("demo", "mechanical", "equipment", "controls", "startup", "commissioning", "custom")


class TimelineStatus:
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (PENDING, IN_PROGRESS, COMPLETED, CANCELLED)
    CLOSED = (COMPLETED, CANCELLED)


class TimelineEvent(Base):
    __tablename__ = "project_timeline_events"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    event_name = Column(String(255), nullable=False)
    event_category = Column(String(50), default="custom", nullable=False)
    event_type = Column(String(50), default="custom", nullable=False)
    order_by = Column(Date, nullable=True)
    required_by = Column(Date, nullable=True)
    status = Column(String(20), default=TimelineStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="timeline_events")
    equipment = relationship("Equipment", back_populates="timeline_event")


class Equipment(Base):
    __tablename__ = "project_equipment"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    project_vendor_id = Column(Integer, ForeignKey("project_vendors.id", ondelete="SET NULL"), nullable=True)
    timeline_event_id = Column(
        Integer, ForeignKey("project_timeline_events.id", ondelete="SET NULL"), nullable=True, index=True
    )
    description = Column(String(512), nullable=False)
    quantity = Column(Float, default=1, nullable=False)
    unit = Column(String(32), nullable=True)
    po_number = Column(String(100), nullable=True)
    date_received = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    project = relationship("Project", back_populates="equipment")
    timeline_event = relationship("TimelineEvent", back_populates="equipment")
    bid_vendor = relationship("BidVendor")

    @property
    def vendor_name(self) -> str:
        if self.bid_vendor and self.bid_vendor.vendor:
            return self.bid_vendor.vendor.company_name
        return "Unknown Vendor"
