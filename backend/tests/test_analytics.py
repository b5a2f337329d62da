from datetime import date, datetime, timezone

from bidboard.models.bid_vendor import BidVendor
from bidboard.models.project import Project, ActivityCycle
from bidboard.models.vendor import Vendor
from bidboard.services import analytics

MONDAY = date(2025, 10, 6)


class TestStatistics:
    def test_empty(self):
        assert analytics.calculate_statistics([]) == {
            "count": 0, "min": 0, "max": 0, "mean": 0, "median": 0, "p25": 0, "p75": 0, "p90": 0,
        }

    def test_interpolated_percentiles(self):
        stats = analytics.calculate_statistics([10, 1, 4, 7])
        assert stats["count"] == 4
        assert stats["min"] == 1
        assert stats["max"] == 10
        assert stats["mean"] == 5.5
        assert stats["median"] == 5.5
        assert stats["p25"] == 3.25
        assert stats["p75"] == 7.75
        assert abs(stats["p90"] - 9.1) < 1e-9

    def test_single_value(self):
        stats = analytics.calculate_statistics([42])
        assert stats["median"] == stats["p90"] == 42


def test_status_distribution_counts_every_status(db):
    db.add_all(
        [
            Project(project_name="A", status="Gathering Costs"),
            Project(project_name="B", status="Gathering Costs"),
            Project(project_name="C", status="Drafting Bid"),
            Project(project_name="D", status="Won Bid"),
            Project(project_name="E", status="New", est_activity_cycle=ActivityCycle.ARCHIVED),
            Project(project_name="F", status="Lost Bid", est_activity_cycle=ActivityCycle.ON_HOLD),
        ]
    )
    db.commit()
    rows = analytics.status_distribution(db)
    assert [(r["status"], r["count"], r["percentage"]) for r in rows] == [
        ("Gathering Costs", 2, 50),
        ("Drafting Bid", 1, 25),
        ("Won Bid", 1, 25),
    ]
    assert rows[0]["color"] == "#f59e0b"


def test_percentages_round_half_up():
    assert analytics.percent(1, 8) == 13
    assert analytics.percent(2, 3) == 67
    assert analytics.percent(1, 0) == 0


def test_vendor_response_metrics(db):
    apex, bolt = Vendor(company_name="Apex"), Vendor(company_name="bolt")
    db.add_all([apex, bolt])
    projects = [Project(project_name=f"P{i}") for i in range(3)]
    db.add_all(projects)
    db.flush()
    sent = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)
    db.add_all(
        [
            BidVendor(bid_id=projects[0].id, vendor_id=apex.id, created_at=sent,
                      response_received_date=date(2025, 10, 2)),
            BidVendor(bid_id=projects[1].id, vendor_id=apex.id, created_at=sent,
                      response_received_date=date(2025, 10, 4)),
            BidVendor(bid_id=projects[2].id, vendor_id=apex.id, created_at=sent),
            BidVendor(bid_id=projects[0].id, vendor_id=bolt.id, created_at=sent),
        ]
    )
    db.commit()

    rows = analytics.vendor_response_metrics(db)
    assert [r["company_name"] for r in rows] == ["Apex", "bolt"]
    apex_row, bolt_row = rows
    assert apex_row["total_requests"] == 3
    assert apex_row["responses"] == 2
    assert apex_row["response_rate"] == 67
    assert apex_row["avg_response_hours"] == 36.0
    assert apex_row["median_response_hours"] == 36.0
    assert apex_row["response_status"] == "Responded"
    assert apex_row["avg_response_days"] == 1
    assert apex_row["on_time_rate"] == 100.0
    assert apex_row["reliability_score"] == 63
    assert apex_row["performance_score"] == 83.0
    assert apex_row["grade"] == "B"
    assert bolt_row["response_rate"] == 0
    assert bolt_row["avg_response_days"] is None
    assert bolt_row["reliability_score"] == 9
    assert bolt_row["performance_score"] == 0
    assert bolt_row["grade"] == "F"
    assert bolt_row["avg_response_hours"] is None
    assert bolt_row["response_status"] == "Pending"

    assert analytics.vendor_response_metrics(db, start_date=date(2025, 10, 2)) == []


def test_bid_completion(db):
    created = datetime(2025, 9, 29, 8, 0, tzinfo=timezone.utc)
    db.add_all(
        [
            Project(project_name="On Time", created_at=created, due_date=date(2025, 10, 3), status="Won Bid",
                    completed_at=datetime(2025, 10, 2, 8, 0, tzinfo=timezone.utc)),
            Project(project_name="Late", created_at=created, due_date=date(2025, 10, 1), status="Lost Bid",
                    completed_at=datetime(2025, 10, 3, 20, 0, tzinfo=timezone.utc)),
            Project(project_name="Overdue", created_at=created, due_date=date(2025, 10, 3)),
            Project(project_name="Open", created_at=created, due_date=date(2025, 10, 10)),
            Project(project_name="Archived", created_at=created, est_activity_cycle=ActivityCycle.ARCHIVED),
        ]
    )
    db.commit()

    result = analytics.bid_completion(db, today=MONDAY)
    by_name = {b["project_name"]: b for b in result["bids"]}
    assert set(by_name) == {"On Time", "Late", "Overdue", "Open"}
    assert by_name["On Time"]["completion_status"] == "On Time"
    assert by_name["On Time"]["completion_hours"] == 72.0
    assert by_name["Late"]["completion_status"] == "Late"
    assert by_name["Late"]["completion_hours"] == 108.0
    assert by_name["Overdue"]["completion_status"] == "Overdue"
    assert by_name["Open"]["completion_hours"] is None
    assert by_name["Open"]["completion_status"] == "In Progress"
    assert result["on_time_rate"] == 50
    assert result["completion_hours"]["count"] == 2
    assert result["completion_hours"]["mean"] == 90.0
    assert result["by_status"] == {"On Time": 1, "Late": 1, "Overdue": 1, "In Progress": 1}


def test_endpoints(client, make_project):
    make_project(status="New")
    assert client.get("/analytics/status-distribution").json()[0]["status"] == "New"
    assert client.get("/analytics/vendor-response").json() == []
    completion = client.get("/analytics/bid-completion").json()
    assert completion["by_status"]["In Progress"] == 1
    resp = client.get("/analytics/bid-completion", params={"start_date": "2025-10-10", "end_date": "2025-10-01"})
    assert resp.status_code == 400


def _request(db, vendor, project, created, responded=None, due=None):
    db.add(BidVendor(bid_id=project.id, vendor_id=vendor.id, created_at=created,
                     response_received_date=responded, due_date=due))


def test_response_time_distribution(db):
    vendor = Vendor(company_name="Apex")
    db.add(vendor)
    projects = [Project(project_name=f"P{i}") for i in range(5)]
    db.add_all(projects)
    db.flush()
    sent = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)
    _request(db, vendor, projects[0], sent, date(2025, 10, 2))
    _request(db, vendor, projects[1], sent, date(2025, 10, 4))
    _request(db, vendor, projects[2], sent, date(2025, 10, 20))
    _request(db, vendor, projects[3], sent, date(2025, 10, 1))
    _request(db, vendor, projects[4], sent)
    db.commit()

    rows = analytics.response_time_distribution(db)
    assert [r["range"] for r in rows] == ["Same Day", "1-3 Days", "4-7 Days", "1-2 Weeks", "2+ Weeks"]
    assert [r["count"] for r in rows] == [1, 1, 0, 0, 1]
    assert [r["percentage"] for r in rows] == [33, 33, 0, 0, 33]


def test_vendor_performance_ranks_repeat_vendors(db):
    apex, bolt, crest = Vendor(company_name="Apex"), Vendor(company_name="Bolt"), Vendor(company_name="Crest")
    db.add_all([apex, bolt, crest])
    projects = [Project(project_name=f"P{i}") for i in range(2)]
    db.add_all(projects)
    db.flush()
    sent = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)
    for project in projects:
        _request(db, bolt, project, sent)
        _request(db, apex, project, sent, date(2025, 10, 2), due=date(2025, 10, 3))
    _request(db, crest, projects[0], sent, date(2025, 10, 2))
    db.commit()

    ranked = analytics.vendor_performance(db)
    assert [r["company_name"] for r in ranked] == ["Apex", "Bolt"]
    assert ranked[0]["response_rate"] == 100
    assert ranked[0]["grade"] == "A"
    assert ranked[1]["grade"] == "F"


def test_late_vendor_response_is_not_on_time(db):
    vendor = Vendor(company_name="Apex")
    project = Project(project_name="P")
    db.add_all([vendor, project])
    db.flush()
    _request(db, vendor, project, datetime(2025, 10, 1, tzinfo=timezone.utc), date(2025, 10, 9), due=date(2025, 10, 3))
    db.commit()
    assert analytics.vendor_response_metrics(db)[0]["on_time_rate"] == 0


def test_analytics_summary(db):
    created = datetime(2025, 9, 29, 8, 0, tzinfo=timezone.utc)
    on_time = Project(project_name="On Time", created_at=created, due_date=date(2025, 10, 3), status="Won Bid",
                      completed_at=datetime(2025, 10, 2, 8, 0, tzinfo=timezone.utc))
    late = Project(project_name="Late", created_at=created, due_date=date(2025, 10, 1), status="Lost Bid",
                   completed_at=datetime(2025, 10, 3, 20, 0, tzinfo=timezone.utc))
    overdue = Project(project_name="Overdue", created_at=created, due_date=date(2025, 10, 3))
    apex, bolt = Vendor(company_name="Apex"), Vendor(company_name="Bolt")
    db.add_all([on_time, late, overdue, apex, bolt])
    db.flush()
    _request(db, apex, on_time, created, date(2025, 9, 30))
    _request(db, apex, late, created)
    _request(db, bolt, on_time, created)
    db.commit()

    summary = analytics.analytics_summary(db, today=MONDAY)
    assert summary == {
        "total_bids": 3,
        "completed_bids": 2,
        "avg_completion_hours": 90.0,
        "on_time_rate": 50,
        "avg_response_hours": 16.0,
        "vendors_responded": 1,
        "overdue_bids": 1,
        "vendor_response_rate": 50,
        "vendors_contacted": 2,
        "total_vendor_requests": 3,
    }


class TestTrends:
    def test_month_bounds_cross_year(self):
        assert analytics.month_bounds(date(2025, 2, 14), 0) == (date(2025, 2, 1), date(2025, 2, 28))
        assert analytics.month_bounds(date(2025, 2, 14), 3) == (date(2024, 11, 1), date(2024, 11, 30))

    def test_monthly_figures(self, db):
        sept = Project(
            project_name="September",
            created_at=datetime(2025, 9, 10, 8, 0, tzinfo=timezone.utc),
            completed_at=datetime(2025, 9, 12, 8, 0, tzinfo=timezone.utc),
            due_date=date(2025, 9, 20),
            status="Won Bid",
        )
        octo = Project(project_name="October", created_at=datetime(2025, 10, 1, 8, 0, tzinfo=timezone.utc))
        vendor = Vendor(company_name="Apex")
        db.add_all([sept, octo, vendor])
        db.flush()
        _request(db, vendor, sept, datetime(2025, 9, 10, 8, 0, tzinfo=timezone.utc), date(2025, 9, 11))
        db.commit()

        rows = analytics.trends(db, months=3, today=date(2025, 10, 15))
        assert [r["month"] for r in rows] == ["Aug 2025", "Sep 2025", "Oct 2025"]
        aug, sep, oct_ = rows
        assert aug["total_bids"] == 0
        assert aug["avg_completion_hours"] == 0
        assert sep["start_date"] == date(2025, 9, 1)
        assert sep["end_date"] == date(2025, 9, 30)
        assert sep["total_bids"] == 1
        assert sep["completed_bids"] == 1
        assert sep["completion_rate"] == 100
        assert sep["on_time_rate"] == 100
        assert sep["avg_completion_hours"] == 48.0
        assert sep["avg_response_hours"] == 16.0
        assert sep["vendors_responded"] == 1
        assert oct_["total_bids"] == 1
        assert oct_["completion_rate"] == 0
        assert oct_["vendors_responded"] == 0


class TestNewEndpoints:
    def test_summary_and_trends(self, client, make_project):
        make_project(status="New")
        summary = client.get("/analytics/summary").json()
        assert summary["total_bids"] == 1
        assert summary["completed_bids"] == 0
        assert len(client.get("/analytics/trends", params={"months": 2}).json()) == 2
        assert len(client.get("/analytics/trends").json()) == 6
        assert client.get("/analytics/trends", params={"months": 0}).status_code == 422

    def test_vendor_scores_and_distribution(self, client):
        assert client.get("/analytics/vendor-performance").json() == []
        rows = client.get("/analytics/response-time-distribution").json()
        assert [r["count"] for r in rows] == [0, 0, 0, 0, 0]
        bad = {"start_date": "2025-10-10", "end_date": "2025-10-01"}
        assert client.get("/analytics/summary", params=bad).status_code == 400
