from bidboard.models.user import User
from bidboard.models.vendor import Vendor, VendorContact
from bidboard.models.project import Project
from bidboard.models.bid_vendor import BidVendor
from bidboard.models.apm_phase import APMPhase
from bidboard.models.project_note import ProjectNote
from bidboard.models.timeline import TimelineEvent, Equipment
from bidboard.models.activity_log import ActivityLog, EmailLog

__all__ = [
    "User",
    "Vendor",
    "VendorContact",
    "Project",
    "BidVendor",
    "APMPhase",
    "ProjectNote",
    "TimelineEvent",
    "Equipment",
    "ActivityLog",
    "EmailLog",
]
