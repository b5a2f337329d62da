"""
APM phase rules and derived progress for a bid vendor.
"""
from datetime import date
from typing import Optional, Sequence

from bidboard.models.apm_phase import APM_PHASE_NAMES, APMPhaseStatus
from bidboard.services.status_service import get_follow_up_urgency

PHASE_DISPLAY_NAMES = {
    "buy_number": "Buy Number",
    "po": "Purchase Order",
    "submittals": "Submittals",
    "rfi": "RFI",
    "revised_plans": "Revised Plans",
    "equipment_release": "Equipment Release",
    "change_orders": "Change Orders",
    "closeouts": "Closeouts",
    "invoicing": "Invoicing",
    "completed": "Completed",
    "quote_confirmed": "Quote Confirmed",
}


def phase_display_name(phase: Optional[str]) -> str:
    if not phase:
        return "Unknown Phase"
    if phase in PHASE_DISPLAY_NAMES:
        return PHASE_DISPLAY_NAMES[phase]
    return phase.replace("_", " ", 1).upper()


def phase_key(phase_name: str) -> str:
    """"Equipment Release" -> "equipment_release"."""
    return "_".join(phase_name.lower().split())


def validate_phase(
    phase_name: Optional[str],
    status: Optional[str],
    requested_date: Optional[date],
    follow_up_date: Optional[date],
    received_date: Optional[date],
) -> list[str]:
    """Return the list of rule violations for a phase; empty when valid."""
    errors = []
    if phase_name not in APM_PHASE_NAMES:
        errors.append(f"Invalid phase name: {phase_name}")
    if status not in APMPhaseStatus.ALL:
        errors.append(f"Invalid status: {status}")
    if requested_date and received_date and received_date < requested_date:
        errors.append("Received date cannot be before requested date")
    if requested_date and follow_up_date and follow_up_date < requested_date:
        errors.append("Follow-up date cannot be before requested date")
    if status == APMPhaseStatus.COMPLETED and not received_date:
        errors.append("Completed phases require a received date")
    return errors


def apply_status_change(phase, new_status: str, today: Optional[date] = None) -> None:
    """Set status; a rejection bumps the revision counter."""
    if new_status == APMPhaseStatus.REJECTED_REVISED and phase.status != APMPhaseStatus.REJECTED_REVISED:
        phase.revision_count = (phase.revision_count or 0) + 1
        phase.last_revision_date = today or date.today()
    phase.status = new_status


def current_phase(phases: Sequence) -> Optional[str]:
    """Name of the first non-completed phase, "completed" when all are done, "quote_confirmed" when none exist."""
    if not phases:
        return "quote_confirmed"
    for phase in phases:
        if phase.status != APMPhaseStatus.COMPLETED:
            return phase.phase_name
    return "completed"


def progress(phases: Sequence) -> int:
    if not phases:
        return 0
    done = sum(1 for p in phases if p.status == APMPhaseStatus.COMPLETED)
    return round(done / len(phases) * 100)


def soonest_follow_up(phases: Sequence) -> tuple[Optional[date], list]:
    """Earliest follow-up date among open phases and every open phase sharing it."""
    pending = [p for p in phases if p.status != APMPhaseStatus.COMPLETED and p.follow_up_date]
    if not pending:
        return None, []
    soonest = min(p.follow_up_date for p in pending)
    return soonest, [p for p in pending if p.follow_up_date == soonest]


def phase_summary(phases: Sequence, today: Optional[date] = None) -> dict:
    soonest, due_phases = soonest_follow_up(phases)
    return {
        "current_phase": current_phase(phases),
        "progress": progress(phases),
        "soonest_follow_up": soonest,
        "soonest_follow_up_phases": [p.phase_name for p in due_phases],
        "follow_up_urgency": get_follow_up_urgency(soonest, today),
    }
