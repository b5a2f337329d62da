from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bidboard.models.base import Base


VENDOR_TYPES = ("Vendor", "Subcontractor", "General Contractor")
CONTACT_TYPES = ("Office", "General Contractor", "Sales", "Billing")


class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(255), nullable=False, index=True)
    address = Column(Text, nullable=True)
    contact_person = Column(String(255), nullable=True)  # legacy single-contact fields
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    specialty = Column(String(255), nullable=True)
    is_priority = Column(Boolean, default=False, nullable=False)
    vendor_type = Column(String(50), default="Vendor", nullable=False)
    insurance_expiry_date = Column(Date, nullable=True)
    insurance_notes = Column(Text, nullable=True)
    insurance_file_path = Column(String(512), nullable=True)
    insurance_file_name = Column(String(255), nullable=True)
    insurance_file_size = Column(Integer, nullable=True)
    insurance_file_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    # No FK constraint: vendor and contact rows reference each other.
    primary_contact_id = Column(Integer, nullable=True)
    created_by = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    contacts = relationship(
        "VendorContact",
        back_populates="vendor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    project_links = relationship(
        "BidVendor",
        back_populates="vendor",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def primary_contact(self):
        for contact in self.contacts or []:
            if contact.id == self.primary_contact_id:
                return contact
        return None


class VendorContact(Base):
    __tablename__ = "vendor_contacts"

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_name = Column(String(255), nullable=False)
    contact_title = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    contact_type = Column(String(50), default="Office", nullable=False)
    is_primary = Column(Boolean, default=False, nullable=False)
    is_emergency_contact = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    vendor = relationship("Vendor", back_populates="contacts")
