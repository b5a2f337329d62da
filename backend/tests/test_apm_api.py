from datetime import date, timedelta

import pytest

from bidboard.services.phase_service import phase_display_name

TODAY = date.today()


def _days(n):
    return (TODAY + timedelta(days=n)).isoformat()


@pytest.fixture
def apm_link(client, make_project, make_vendor, attach_vendor):
    """A won project handed to APM with one vendor assigned to an APM user."""
    project = make_project(status="Won Bid")
    client.post(f"/projects/{project['id']}/send-to-apm")
    link = attach_vendor(project["id"], make_vendor()["id"], assigned_apm_user="auth0|apm")
    return project, link


class TestPhases:
    def test_create_and_progress(self, client, apm_link):
        project, link = apm_link
        url = f"/project-vendors/{link['id']}/phases"
        first = client.post(url, json={"phase_name": "Buy Number", "status": "Completed",
                                       "requested_date": _days(-5), "received_date": _days(-1)})
        assert first.status_code == 201
        client.post(url, json={"phase_name": "Submittals", "follow_up_date": _days(3)})

        vendors = client.get(f"/projects/{project['id']}/vendors").json()
        assert vendors[0]["current_phase"] == "Submittals"
        assert vendors[0]["progress"] == 50
        assert vendors[0]["soonest_follow_up"] == _days(3)
        assert [p["phase_name"] for p in vendors[0]["apm_phases"]] == ["Buy Number", "Submittals"]

    @pytest.mark.parametrize(
        "body",
        [
            {"phase_name": "Paperwork"},
            {"phase_name": "RFI", "status": "Done"},
            {"phase_name": "RFI", "requested_date": _days(0), "received_date": _days(-1)},
            {"phase_name": "RFI", "requested_date": _days(0), "follow_up_date": _days(-2)},
            {"phase_name": "RFI", "status": "Completed"},
        ],
    )
    def test_rule_violations(self, client, apm_link, body):
        _, link = apm_link
        resp = client.post(f"/project-vendors/{link['id']}/phases", json=body)
        assert resp.status_code == 400

    def test_rejection_counts_revisions(self, client, apm_link):
        _, link = apm_link
        phase = client.post(f"/project-vendors/{link['id']}/phases", json={"phase_name": "Submittals"}).json()
        url = f"/phases/{phase['id']}"
        rejected = client.patch(url, json={"status": "Rejected & Revised"}).json()
        assert rejected["revision_count"] == 1
        assert rejected["last_revision_date"] == TODAY.isoformat()
        # staying rejected does not count again
        assert client.patch(url, json={"notes": "resubmitted"}).json()["revision_count"] == 1
        client.patch(url, json={"status": "Pending"})
        assert client.patch(url, json={"status": "Rejected & Revised"}).json()["revision_count"] == 2

    def test_update_checks_merged_dates(self, client, apm_link):
        _, link = apm_link
        phase = client.post(
            f"/project-vendors/{link['id']}/phases", json={"phase_name": "RFI", "requested_date": _days(0)}
        ).json()
        resp = client.patch(f"/phases/{phase['id']}", json={"received_date": _days(-3)})
        assert resp.status_code == 400

    def test_delete(self, client, apm_link):
        _, link = apm_link
        phase = client.post(f"/project-vendors/{link['id']}/phases", json={"phase_name": "RFI"}).json()
        assert client.delete(f"/phases/{phase['id']}").status_code == 204
        assert client.get(f"/project-vendors/{link['id']}/phases").json() == []


class TestTasks:
    def test_lists_open_follow_ups_soonest_first(self, client, apm_link):
        project, link = apm_link
        url = f"/project-vendors/{link['id']}/phases"
        client.post(url, json={"phase_name": "Submittals", "follow_up_date": _days(30)})
        client.post(url, json={"phase_name": "RFI", "follow_up_date": _days(0)})
        client.post(url, json={"phase_name": "Invoicing"})

        tasks = client.get("/apm/tasks").json()
        assert [t["phase_name"] for t in tasks] == ["RFI", "Submittals"]
        assert tasks[0]["project_name"] == project["project_name"]
        assert tasks[0]["vendor_name"] == "Northwind Mechanical"
        assert tasks[0]["urgency"]["level"] == "due_today"

        due_today = client.get("/apm/tasks", params={"urgency": "due_today"}).json()
        assert [t["phase_name"] for t in due_today] == ["RFI"]

    def test_assignment_filter(self, client, apm_link, make_vendor, attach_vendor):
        project, link = apm_link
        other = attach_vendor(project["id"], make_vendor("Apex Controls")["id"])
        client.post(f"/project-vendors/{link['id']}/phases", json={"phase_name": "RFI", "follow_up_date": _days(2)})
        client.post(f"/project-vendors/{other['id']}/phases", json={"phase_name": "RFI", "follow_up_date": _days(2)})

        mine = client.get("/apm/tasks", params={"assigned_to": "auth0|apm"}).json()
        assert [t["bid_vendor_id"] for t in mine] == [link["id"]]
        unassigned = client.get("/apm/tasks", params={"assigned_to": "unassigned"}).json()
        assert [t["bid_vendor_id"] for t in unassigned] == [other["id"]]

    def test_held_projects_are_hidden(self, client, apm_link):
        project, link = apm_link
        client.post(f"/project-vendors/{link['id']}/phases", json={"phase_name": "RFI", "follow_up_date": _days(1)})
        client.patch(f"/projects/{project['id']}?scope=apm", json={"apm_on_hold": True})
        assert client.get("/apm/tasks").json() == []


class TestTimelineAndEquipment:
    def test_timeline_overdue_flag(self, client, make_project):
        project = make_project()
        url = f"/projects/{project['id']}/timeline"
        late = client.post(url, json={"event_name": "Order RTUs", "event_category": "equipment",
                                      "order_by": _days(-2)}).json()
        assert late["is_overdue"] is True
        done = client.patch(f"/timeline/{late['id']}", json={"status": "completed"}).json()
        assert done["is_overdue"] is False
        assert client.post(url, json={"event_name": "X", "event_category": "plumbing"}).status_code == 422

    def test_timeline_sorted_by_order_date(self, client, make_project):
        project = make_project()
        url = f"/projects/{project['id']}/timeline"
        client.post(url, json={"event_name": "Undated"})
        client.post(url, json={"event_name": "Later", "order_by": _days(10)})
        client.post(url, json={"event_name": "Sooner", "order_by": _days(2)})
        assert [e["event_name"] for e in client.get(url).json()] == ["Sooner", "Later", "Undated"]

    def test_equipment_links_must_match_project(self, client, make_project, make_vendor, attach_vendor):
        project, other = make_project(), make_project(project_name="Other")
        link = attach_vendor(project["id"], make_vendor()["id"])
        foreign_event = client.post(f"/projects/{other['id']}/timeline", json={"event_name": "Elsewhere"}).json()

        url = f"/projects/{project['id']}/equipment"
        item = client.post(url, json={"description": "RTU-1", "quantity": 2, "project_vendor_id": link["id"]})
        assert item.status_code == 201
        assert item.json()["vendor_name"] == "Northwind Mechanical"

        bad = client.post(url, json={"description": "RTU-2", "timeline_event_id": foreign_event["id"]})
        assert bad.status_code == 400

    def test_equipment_without_vendor(self, client, make_project):
        project = make_project()
        item = client.post(f"/projects/{project['id']}/equipment", json={"description": "Curb adapter"}).json()
        assert item["vendor_name"] == "Unknown Vendor"
        assert item["quantity"] == 1
        updated = client.patch(f"/equipment/{item['id']}", json={"po_number": "PO-7781"}).json()
        assert updated["po_number"] == "PO-7781"
        assert client.patch(f"/equipment/{item['id']}", json={"quantity": 0}).status_code == 400
        assert client.delete(f"/equipment/{item['id']}").status_code == 204


def test_phase_display_names():
    assert phase_display_name("buy_number") == "Buy Number"
    assert phase_display_name("po") == "Purchase Order"
    assert phase_display_name("custom_step_two") == "CUSTOM STEP_TWO"
    assert phase_display_name(None) == "Unknown Phase"
