from datetime import date, datetime

from bidboard.services import status_service as s

MONDAY = date(2025, 10, 6)


class TestBusinessDays:
    def test_counts_weekdays_after_start(self):
        assert s.business_days_between(MONDAY, date(2025, 10, 10)) == 4
        assert s.business_days_between(MONDAY, date(2025, 10, 13)) == 5

    def test_weekend_is_skipped(self):
        assert s.business_days_between(date(2025, 10, 10), date(2025, 10, 13)) == 1

    def test_same_day_or_reversed_is_zero(self):
        assert s.business_days_between(MONDAY, MONDAY) == 0
        assert s.business_days_between(date(2025, 10, 10), MONDAY) == 0

    def test_accepts_iso_strings(self):
        assert s.business_days_between("2025-10-06", "2025-10-08T09:30:00Z") == 2


class TestBidUrgency:
    def test_levels(self):
        assert s.get_bid_urgency(MONDAY, "Gathering Costs", MONDAY)["level"] == "dueToday"
        assert s.get_bid_urgency(date(2025, 10, 9), "Gathering Costs", MONDAY)["level"] == "critical"
        assert s.get_bid_urgency(date(2025, 10, 13), "Drafting Bid", MONDAY)["level"] == "warning"
        assert s.get_bid_urgency(date(2025, 10, 14), "New", MONDAY)["level"] == "none"

    def test_weekend_due_date_from_friday_is_due_today(self):
        friday = date(2025, 10, 10)
        for weekend_day in (date(2025, 10, 11), date(2025, 10, 12)):
            info = s.get_bid_urgency(weekend_day, "Gathering Costs", friday)
            assert info["level"] == "dueToday"
            assert info["is_overdue"] is False
            assert info["business_days_remaining"] == 0

    def test_overdue_counts_business_days(self):
        info = s.get_bid_urgency(date(2025, 10, 3), "Drafting Bid", MONDAY)
        assert info["level"] == "overdue"
        assert info["is_overdue"] is True
        assert info["business_days_overdue"] == 1
        assert info["business_days_remaining"] == -1

    def test_completed_statuses_have_no_urgency(self):
        for status in ("Bid Sent", "Won Bid", "Lost Bid"):
            assert s.get_bid_urgency(date(2025, 9, 1), status, MONDAY)["level"] == "none"

    def test_missing_due_date(self):
        assert s.get_bid_urgency(None, "New", MONDAY) == {
            "level": "none",
            "is_overdue": False,
            "business_days_remaining": 0,
            "business_days_overdue": 0,
        }

    def test_display_status(self):
        assert s.get_bid_display_status("Gathering Costs", MONDAY, MONDAY) == "Due Today"
        assert s.get_bid_display_status("Bid Sent", MONDAY, MONDAY) == "Bid Sent"
        assert s.get_bid_display_status("New", date(2025, 10, 20), MONDAY) == "New"

    def test_is_urgent_bid(self):
        assert s.is_urgent_bid(date(2025, 10, 8), MONDAY)
        assert s.is_urgent_bid(date(2025, 10, 1), MONDAY)
        assert not s.is_urgent_bid(date(2025, 10, 20), MONDAY)


class TestFollowUpUrgency:
    def test_levels(self):
        assert s.get_follow_up_urgency(MONDAY, MONDAY)["level"] == "due_today"
        assert s.get_follow_up_urgency(date(2025, 10, 8), MONDAY)["level"] == "critical"
        assert s.get_follow_up_urgency(date(2025, 10, 20), MONDAY)["level"] == "normal"
        assert s.get_follow_up_urgency(date(2025, 10, 2), MONDAY)["level"] == "overdue"
        assert s.get_follow_up_urgency(None, MONDAY)["level"] == "normal"


class TestStatusHelpers:
    def test_colors_are_case_insensitive(self):
        assert s.get_status_color("Won Bid") == s.get_status_color("won bid") == "#059669"
        assert s.get_status_color("Something Else") == "#6b7280"

    def test_descriptions_fall_back_to_status(self):
        assert s.get_status_description("Drafting Bid") == "Preparing bid documentation and proposal"
        assert s.get_status_description("Custom") == "Custom"

    def test_outcome_checks(self):
        assert s.is_won_status("Won Bid")
        assert s.is_lost_status("Lost Bid")
        assert s.is_active_status("Gathering Costs")
        assert not s.is_active_status("Won Bid")


class TestVendorDeadlines:
    def test_vendor_due_date_is_a_week_after_sending(self):
        assert s.get_vendor_due_date("2025-10-01") == date(2025, 10, 8)
        assert s.get_vendor_due_date(None) is None

    def test_vendor_overdue(self):
        assert s.is_vendor_overdue(date(2025, 9, 20), None, MONDAY)
        assert not s.is_vendor_overdue(date(2025, 9, 20), date(2025, 9, 25), MONDAY)
        assert not s.is_vendor_overdue(date(2025, 10, 1), None, MONDAY)

    def test_bid_vendor_overdue(self):
        past = date(2025, 10, 1)
        assert s.is_bid_vendor_overdue(past, None, None, MONDAY)
        assert s.is_bid_vendor_overdue(past, None, 0, MONDAY)
        assert not s.is_bid_vendor_overdue(past, None, 1500.0, MONDAY)
        assert not s.is_bid_vendor_overdue(past, date(2025, 10, 2), None, MONDAY)
        assert not s.is_bid_vendor_overdue(MONDAY, None, None, MONDAY)


def test_to_date_keeps_calendar_day():
    assert s.to_date("2025-10-09T23:30:00-07:00") == date(2025, 10, 9)
    assert s.to_date(datetime(2025, 10, 9, 8, 0)) == date(2025, 10, 9)
    assert s.to_date("") is None
