from datetime import date, datetime, timedelta, timezone

from bidboard.services import formatters as f


def test_format_date():
    assert f.format_date(date(2025, 1, 5)) == "Jan 5, 2025"
    assert f.format_date("2025-01-05", style="long") == "January 5, 2025"
    assert f.format_date(None) == "—"


def test_format_currency():
    assert f.format_currency(1234.5) == "$1,234.50"
    assert f.format_currency(None) == "$0.00"
    assert f.format_currency(-20) == "-$20.00"


def test_format_phone_number():
    assert f.format_phone_number("555.123.4567") == "(555) 123-4567"
    assert f.format_phone_number("+44 20 7946 0958") == "+44 20 7946 0958"
    assert f.format_phone_number(None) == ""


def test_format_relative_date():
    now = datetime(2025, 10, 6, 12, 0, tzinfo=timezone.utc)
    assert f.format_relative_date(now - timedelta(seconds=30), now) == "Just now"
    assert f.format_relative_date(now - timedelta(minutes=5), now) == "5m ago"
    assert f.format_relative_date(now - timedelta(hours=3), now) == "3h ago"
    assert f.format_relative_date(now - timedelta(days=2), now) == "2d ago"
    assert f.format_relative_date(now - timedelta(days=30), now) == "Sep 6, 2025"


def test_text_helpers():
    assert f.truncate_text("Chiller plant replacement", 10) == "Chiller..."
    assert f.truncate_text("Short", 10) == "Short"
    assert f.generate_initials("dana lee estimator") == "DL"
    assert f.capitalize_words("rooftop UNIT install") == "Rooftop Unit Install"
    assert f.to_title_case("gatheringCosts") == "Gathering Costs"
    assert f.to_title_case("equipment_release") == "Equipment Release"


def test_format_file_size():
    assert f.format_file_size(0) == "0 Bytes"
    assert f.format_file_size(1536) == "1.5 KB"
    assert f.format_file_size(5 * 1024 * 1024) == "5 MB"
