#!/usr/bin/env python3
"""
Create demo data for the bid board.

Run with backend up:
  uvicorn bidboard.main:app --reload (from backend dir)

Usage:
  python scripts/create_demo_data.py
  python scripts/create_demo_data.py --base http://localhost:8001

Writes: scripts/demo_data.json with created user, vendor and project IDs.
"""

import json
import os
import sys
import urllib.error
import urllib.request
from datetime import date, timedelta
from pathlib import Path

# Default: backend on port 8001 (Docker or local)
BASE_URL = os.environ.get("API_BASE", "http://localhost:8001").rstrip("/")
USER_ID = "demo-estimator"


def request(method: str, path: str, body: dict | None = None) -> dict:
    url = f"{BASE_URL}{path}"
    data = None
    headers = {"X-User-Id": USER_ID}
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"
    req = urllib.request.Request(url, data=data, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=30) as resp:
            raw = resp.read().decode("utf-8")
            return json.loads(raw) if raw else {}
    except urllib.error.HTTPError as e:
        err_body = e.read().decode("utf-8") if e.fp else ""
        raise SystemExit(f"HTTP {e.code} {path}: {err_body}")
    except urllib.error.URLError as e:
        raise SystemExit(f"Request failed (is the backend running at {BASE_URL}?): {e.reason}")


def create_vendor(company_name: str, specialty: str, contact: str, email: str, insurance_days: int) -> dict:
    return request("POST", "/vendors", body={
        "company_name": company_name,
        "specialty": specialty,
        "vendor_type": "Vendor",
        "insurance_expiry_date": (date.today() + timedelta(days=insurance_days)).isoformat(),
        "contacts": [{"contact_name": contact, "email": email, "contact_type": "Sales", "is_primary": True}],
    })


def create_project(payload: dict) -> dict:
    return request("POST", "/projects", body=payload)


def main() -> None:
    global BASE_URL
    if "--help" in sys.argv or "-h" in sys.argv:
        print(__doc__)
        sys.exit(0)
    for i, arg in enumerate(sys.argv):
        if arg == "--base" and i + 1 < len(sys.argv):
            BASE_URL = sys.argv[i + 1].rstrip("/")
            break

    print(f"Using API base: {BASE_URL}")
    print("Creating demo data...")
    today = date.today()

    users = [
        request("PUT", "/users", body={"id": USER_ID, "email": "estimator@example.com", "name": "Dana Estimator",
                                       "role": "Estimating", "color_preference": "#3b82f6"}),
        request("PUT", "/users", body={"id": "demo-apm", "email": "apm@example.com", "name": "Sam Projects",
                                       "role": "APM", "color_preference": "#10b981"}),
    ]
    print(f"  Users: {', '.join(u['name'] for u in users)}")

    vendors = [
        create_vendor("Northwind Mechanical Supply", "Rooftop units", "Pat Rivera", "pat@northwind.example", 12),
        create_vendor("Apex Controls", "Building automation", "Lee Chen", "lee@apex.example", 90),
        create_vendor("Summit Sheet Metal", "Ductwork", "Jordan Blake", "jordan@summit.example", 25),
    ]
    print(f"  Vendors: {len(vendors)}")

    # --- Project 1: collecting costs, due this week ---
    p1 = create_project({
        "project_name": "Riverside Medical Office - HVAC Replacement",
        "general_contractor": "Harbor Builders",
        "project_address": "120 Riverside Dr",
        "due_date": (today + timedelta(days=4)).isoformat(),
        "status": "Gathering Costs",
        "priority": True,
        "estimated_value": 485000,
        "gc_system": "Procore",
    })
    for i, vendor in enumerate(vendors):
        request("POST", f"/projects/{p1['id']}/vendors", body={
            "vendor_id": vendor["id"],
            "due_date": (today + timedelta(days=2 + i)).isoformat(),
        })
    request("POST", f"/projects/{p1['id']}/notes", body={"content": "Walked the site, two RTUs need cranes."})
    print(f"  Project 1 created: id={p1['id']}")

    # --- Project 2: won and handed to APM ---
    p2 = create_project({
        "project_name": "Lakeview School - Chiller Plant",
        "general_contractor": "Granite Construction Group",
        "due_date": (today - timedelta(days=10)).isoformat(),
        "status": "Won Bid",
        "estimated_value": 1250000,
        "project_start_date": (today + timedelta(days=21)).isoformat(),
        "gc_system": "AutoDesk",
    })
    link = request("POST", f"/projects/{p2['id']}/vendors", body={
        "vendor_id": vendors[1]["id"],
        "cost_amount": 86000,
        "status": "yes bid",
        "assigned_apm_user": "demo-apm",
    })
    request("POST", f"/projects/{p2['id']}/send-to-apm")
    request("POST", f"/project-vendors/{link['id']}/phases", body={
        "phase_name": "Buy Number",
        "status": "Pending",
        "follow_up_date": (today + timedelta(days=1)).isoformat(),
    })
    event = request("POST", f"/projects/{p2['id']}/timeline", body={
        "event_name": "Order chillers",
        "event_category": "equipment",
        "event_type": "equipment_order",
        "order_by": (today + timedelta(days=5)).isoformat(),
        "required_by": (today + timedelta(days=40)).isoformat(),
    })
    request("POST", f"/projects/{p2['id']}/equipment", body={
        "description": "300 ton water-cooled chiller",
        "quantity": 2,
        "unit": "ea",
        "timeline_event_id": event["id"],
        "project_vendor_id": link["id"],
    })
    print(f"  Project 2 created and sent to APM: id={p2['id']}")

    # --- Project 3: new, no vendors yet ---
    p3 = create_project({
        "project_name": "Downtown Lofts - VRF System",
        "general_contractor": "Harbor Builders",
        "due_date": (today + timedelta(days=18)).isoformat(),
        "status": "New",
    })
    print(f"  Project 3 created: id={p3['id']}")

    out = {
        "base_url": BASE_URL,
        "user_ids": [u["id"] for u in users],
        "vendor_ids": [v["id"] for v in vendors],
        "project_ids": [p1["id"], p2["id"], p3["id"]],
    }
    out_file = Path(__file__).resolve().parent / "demo_data.json"
    out_file.write_text(json.dumps(out, indent=2), encoding="utf-8")
    print(f"  Wrote: {out_file}")
    print("Done.")


if __name__ == "__main__":
    main()
