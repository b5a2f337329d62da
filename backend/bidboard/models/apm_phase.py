from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bidboard.models.base import Base


APM_PHASE_NAMES = (
    "Buy Number",
    "Purchase Order",
    "Submittals",
    "RFI",
    "Revised Plans",
    "Equipment Release",
    "Change Orders",
    "Closeout",
    "Invoicing",
)


class APMPhaseStatus:
    PENDING = "Pending"
    COMPLETED = "Completed"
    REJECTED_REVISED = "Rejected & Revised"

    ALL = (PENDING, COMPLETED, REJECTED_REVISED)


class APMPhase(Base):
    """One procurement/closeout step tracked for a vendor after the bid is won."""
    __tablename__ = "apm_phases"

    id = Column(Integer, primary_key=True, index=True)
    project_vendor_id = Column(
        Integer, ForeignKey("project_vendors.id", ondelete="CASCADE"), nullable=False, index=True
    )
    phase_name = Column(String(50), nullable=False)
    status = Column(String(30), default=APMPhaseStatus.PENDING, nullable=False)
    requested_date = Column(Date, nullable=True)
    follow_up_date = Column(Date, nullable=True)
    received_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    revision_count = Column(Integer, default=0, nullable=False)
    last_revision_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bid_vendor = relationship("BidVendor", back_populates="apm_phases")
