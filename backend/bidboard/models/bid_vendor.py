from sqlalchemy import Boolean, Column, Integer, String, Text, Date, DateTime, Float, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bidboard.models.base import Base


class VendorResponseStatus:
    PENDING = "pending"
    YES_BID = "yes bid"
    NO_BID = "no bid"

    ALL = (PENDING, YES_BID, NO_BID)


class BidVendor(Base):
    """A vendor invited to quote on a project, with its response and buyout numbers."""
    __tablename__ = "project_vendors"
    __table_args__ = (UniqueConstraint("bid_id", "vendor_id", name="uq_project_vendor"),)

    id = Column(Integer, primary_key=True, index=True)
    bid_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default=VendorResponseStatus.PENDING, nullable=False)
    due_date = Column(Date, nullable=True)  # when the vendor's cost is due
    response_received_date = Column(Date, nullable=True)
    follow_up_count = Column(Integer, default=0, nullable=False)
    last_follow_up_date = Column(Date, nullable=True)
    response_notes = Column(Text, nullable=True)
    responded_by = Column(String(255), nullable=True)
    is_priority = Column(Boolean, default=False, nullable=False)
    cost_amount = Column(Float, nullable=True)
    final_quote_amount = Column(Float, nullable=True)
    buy_number = Column(String(100), nullable=True)
    po_number = Column(String(100), nullable=True)
    assigned_apm_user = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    project = relationship("Project", back_populates="bid_vendors")
    vendor = relationship("Vendor", back_populates="project_links")
    apm_phases = relationship(
        "APMPhase",
        back_populates="bid_vendor",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="APMPhase.id",
    )

    @property
    def vendor_name(self) -> str | None:
        return self.vendor.company_name if self.vendor else None

    @property
    def has_submitted_cost(self) -> bool:
        return self.cost_amount is not None and self.cost_amount != 0
