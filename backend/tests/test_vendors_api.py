import os
from pathlib import Path


class TestVendors:
    def test_create_with_contacts_picks_flagged_primary(self, client):
        resp = client.post(
            "/vendors",
            json={
                "company_name": "Apex Controls",
                "vendor_type": "Subcontractor",
                "contacts": [
                    {"contact_name": "Lee Chen", "email": "lee@apex.example"},
                    {"contact_name": "Ana Ruiz", "contact_type": "Sales", "is_primary": True},
                ],
            },
        )
        assert resp.status_code == 201
        vendor = resp.json()
        assert vendor["contact_person"] == "Ana Ruiz"
        assert [c["contact_name"] for c in vendor["contacts"]] == ["Ana Ruiz", "Lee Chen"]
        assert [c["is_primary"] for c in vendor["contacts"]] == [True, False]
        assert vendor["primary_contact_id"] == vendor["contacts"][0]["id"]

    def test_first_contact_is_primary_by_default(self, make_vendor):
        vendor = make_vendor(contacts=[{"contact_name": "Pat Rivera"}, {"contact_name": "Alex Moss"}])
        primary = [c for c in vendor["contacts"] if c["is_primary"]]
        assert [c["contact_name"] for c in primary] == ["Pat Rivera"]

    def test_validation(self, client):
        assert client.post("/vendors", json={"company_name": ""}).status_code == 422
        assert client.post("/vendors", json={"company_name": "X", "email": "not-an-email"}).status_code == 422
        assert client.post("/vendors", json={"company_name": "X", "phone": "call me"}).status_code == 422
        assert client.post("/vendors", json={"company_name": "X", "vendor_type": "Supplier"}).status_code == 422

    def test_list_search_and_priority(self, client, make_vendor):
        make_vendor("Summit Sheet Metal", specialty="Ductwork")
        make_vendor("Apex Controls", is_priority=True)
        assert [v["company_name"] for v in client.get("/vendors").json()] == ["Apex Controls", "Summit Sheet Metal"]
        assert [v["company_name"] for v in client.get("/vendors", params={"search": "duct"}).json()] == [
            "Summit Sheet Metal"
        ]
        assert [v["company_name"] for v in client.get("/vendors", params={"priority_only": True}).json()] == [
            "Apex Controls"
        ]

    def test_update_and_delete(self, client, make_vendor):
        vendor = make_vendor()
        resp = client.patch(f"/vendors/{vendor['id']}", json={"specialty": "Boilers", "company_name": None})
        assert resp.status_code == 200
        assert resp.json()["specialty"] == "Boilers"
        assert resp.json()["company_name"] == "Northwind Mechanical"
        assert client.delete(f"/vendors/{vendor['id']}").status_code == 204
        assert client.get(f"/vendors/{vendor['id']}").status_code == 404


class TestContacts:
    def test_switch_primary(self, client, make_vendor):
        vendor = make_vendor(contacts=[{"contact_name": "Pat Rivera"}])
        added = client.post(f"/vendors/{vendor['id']}/contacts", json={"contact_name": "Alex Moss"}).json()
        assert added["is_primary"] is False

        updated = client.post(f"/vendors/{vendor['id']}/contacts/{added['id']}/primary").json()
        assert updated["primary_contact_id"] == added["id"]
        assert [(c["contact_name"], c["is_primary"]) for c in updated["contacts"]] == [
            ("Alex Moss", True),
            ("Pat Rivera", False),
        ]

    def test_first_contact_added_later_becomes_primary(self, client, make_vendor):
        vendor = make_vendor()
        contact = client.post(f"/vendors/{vendor['id']}/contacts", json={"contact_name": "Pat Rivera"}).json()
        assert contact["is_primary"] is True
        assert client.get(f"/vendors/{vendor['id']}").json()["primary_contact_id"] == contact["id"]

    def test_deleting_primary_clears_pointer(self, client, make_vendor):
        vendor = make_vendor(contacts=[{"contact_name": "Pat Rivera"}])
        contact_id = vendor["contacts"][0]["id"]
        assert client.delete(f"/vendors/{vendor['id']}/contacts/{contact_id}").status_code == 204
        refreshed = client.get(f"/vendors/{vendor['id']}").json()
        assert refreshed["primary_contact_id"] is None
        assert refreshed["contacts"] == []

    def test_contact_must_belong_to_vendor(self, client, make_vendor):
        first = make_vendor(contacts=[{"contact_name": "Pat Rivera"}])
        second = make_vendor("Apex Controls")
        contact_id = first["contacts"][0]["id"]
        assert client.patch(f"/vendors/{second['id']}/contacts/{contact_id}", json={"notes": "x"}).status_code == 404

    def test_bad_contact_type(self, client, make_vendor):
        vendor = make_vendor()
        resp = client.post(
            f"/vendors/{vendor['id']}/contacts", json={"contact_name": "Pat", "contact_type": "Friend"}
        )
        assert resp.status_code == 422


class TestInsurance:
    def test_upload_pdf(self, client, make_vendor):
        vendor = make_vendor()
        resp = client.post(
            f"/vendors/{vendor['id']}/insurance",
            files={"file": ("certificate.pdf", b"%PDF-1.4 test certificate", "application/pdf")},
            data={"expiry_date": "2026-01-31"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["insurance_file_name"] == "certificate.pdf"
        assert data["insurance_file_size"] == len(b"%PDF-1.4 test certificate")
        assert data["insurance_expiry_date"] == "2026-01-31"
        assert data["insurance_file_path"].startswith("insurance/")
        assert (Path(os.environ["UPLOAD_DIR"]) / data["insurance_file_path"]).exists()

    def test_replacing_certificate_removes_old_file(self, client, make_vendor):
        vendor = make_vendor()
        url = f"/vendors/{vendor['id']}/insurance"
        first = client.post(url, files={"file": ("a.pdf", b"%PDF-1.4 a", "application/pdf")}).json()
        second = client.post(url, files={"file": ("b.pdf", b"%PDF-1.4 b", "application/pdf")}).json()
        root = Path(os.environ["UPLOAD_DIR"])
        assert not (root / first["insurance_file_path"]).exists()
        assert (root / second["insurance_file_path"]).exists()

    def test_rejects_non_pdf(self, client, make_vendor):
        vendor = make_vendor()
        resp = client.post(
            f"/vendors/{vendor['id']}/insurance",
            files={"file": ("certificate.docx", b"not a pdf", "application/msword")},
        )
        assert resp.status_code == 400

    def test_needs_pdf_name_and_content_type(self, client, make_vendor):
        url = f"/vendors/{make_vendor()['id']}/insurance"
        renamed = client.post(url, files={"file": ("certificate.exe", b"MZ", "application/pdf")})
        assert renamed.status_code == 400
        mislabeled = client.post(url, files={"file": ("certificate.pdf", b"MZ", "application/octet-stream")})
        assert mislabeled.status_code == 400


def test_vendor_projects_hide_archived(client, make_project, make_vendor, attach_vendor):
    vendor = make_vendor()
    live = make_project(project_name="Live")
    archived = make_project(project_name="Old", archived=True)
    attach_vendor(live["id"], vendor["id"], cost_amount=900)
    attach_vendor(archived["id"], vendor["id"])

    rows = client.get(f"/vendors/{vendor['id']}/projects").json()
    assert [r["project_name"] for r in rows] == ["Live"]
    assert rows[0]["cost_amount"] == 900
    everything = client.get(f"/vendors/{vendor['id']}/projects", params={"include_archived": True}).json()
    assert sorted(r["project_name"] for r in everything) == ["Live", "Old"]
