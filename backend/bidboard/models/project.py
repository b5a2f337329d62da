from sqlalchemy import Boolean, Column, Integer, String, Text, Date, DateTime, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bidboard.models.base import Base


class BidStatus:
    NEW = "New"
    GATHERING_COSTS = "Gathering Costs"
    DRAFTING_BID = "Drafting Bid"
    BID_SENT = "Bid Sent"
    WON = "Won Bid"
    LOST = "Lost Bid"

    ALL = (NEW, GATHERING_COSTS, DRAFTING_BID, BID_SENT, WON, LOST)
    COMPLETED = (BID_SENT, WON, LOST)


class ActivityCycle:
    ACTIVE = "Active"
    ON_HOLD = "On Hold"
    ARCHIVED = "Archived"


GC_SYSTEMS = ("Procore", "AutoDesk", "Email", "Other")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    project_name = Column(String(255), nullable=False)
    project_email = Column(String(255), nullable=True)
    project_address = Column(Text, nullable=True)
    general_contractor = Column(String(255), nullable=True)
    project_description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    status = Column(String(50), default=BidStatus.GATHERING_COSTS, nullable=False)
    priority = Column(Boolean, default=False, nullable=False)
    estimated_value = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(128), nullable=True)
    assign_to = Column(String(128), nullable=True)
    file_location = Column(String(512), nullable=True)
    department = Column(String(50), default="Estimating", nullable=False)

    est_activity_cycle = Column(String(20), default=ActivityCycle.ACTIVE, nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    archived_by = Column(String(128), nullable=True)
    on_hold_at = Column(DateTime(timezone=True), nullable=True)
    on_hold_by = Column(String(128), nullable=True)

    sent_to_apm = Column(Boolean, default=False, nullable=False)
    sent_to_apm_at = Column(DateTime(timezone=True), nullable=True)
    apm_activity_cycle = Column(String(20), default=ActivityCycle.ACTIVE, nullable=False)
    apm_on_hold_at = Column(DateTime(timezone=True), nullable=True)
    apm_archived_at = Column(DateTime(timezone=True), nullable=True)

    gc_system = Column(String(50), nullable=True)  # "Procore" | "AutoDesk" | "Email" | "Other"
    added_to_procore = Column(Boolean, default=False, nullable=False)
    made_by_apm = Column(Boolean, default=False, nullable=False)
    project_start_date = Column(Date, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    bid_vendors = relationship(
        "BidVendor", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    notes_list = relationship(
        "ProjectNote",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProjectNote.created_at.desc()",
    )
    timeline_events = relationship(
        "TimelineEvent", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )
    equipment = relationship(
        "Equipment", back_populates="project", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def title(self) -> str:
        return self.project_name

    @property
    def archived(self) -> bool:
        return self.est_activity_cycle == ActivityCycle.ARCHIVED

    @property
    def on_hold(self) -> bool:
        return self.est_activity_cycle == ActivityCycle.ON_HOLD

    @property
    def apm_archived(self) -> bool:
        return self.apm_activity_cycle == ActivityCycle.ARCHIVED

    @property
    def apm_on_hold(self) -> bool:
        return self.apm_activity_cycle == ActivityCycle.ON_HOLD
