from bidboard.services.change_feed import reconcile


class TestChangeFeedApi:
    def test_records_writes_in_order(self, client, make_project):
        project = make_project()
        client.patch(f"/projects/{project['id']}", json={"notes": "call GC"})
        client.delete(f"/projects/{project['id']}")

        feed = client.get("/changes").json()
        actions = [(c["action"], c["entity_type"], c["entity_id"]) for c in feed["changes"]]
        pid = str(project["id"])
        assert actions == [("INSERT", "projects", pid), ("UPDATE", "projects", pid), ("DELETE", "projects", pid)]
        assert feed["last_id"] == feed["changes"][-1]["id"]
        assert feed["changes"][1]["details"]["notes"] == "call GC"
        assert feed["changes"][2]["details"] == {"id": project["id"]}

    def test_polling_from_last_id(self, client, make_project):
        make_project()
        last_id = client.get("/changes").json()["last_id"]
        assert client.get("/changes", params={"since_id": last_id}).json() == {"changes": [], "last_id": last_id}
        make_project(project_name="Second")
        newer = client.get("/changes", params={"since_id": last_id}).json()
        assert len(newer["changes"]) == 1
        assert newer["changes"][0]["details"]["project_name"] == "Second"

    def test_limit(self, client, make_project):
        for i in range(3):
            make_project(project_name=f"P{i}")
        page = client.get("/changes", params={"limit": 2}).json()
        assert len(page["changes"]) == 2
        rest = client.get("/changes", params={"since_id": page["last_id"]}).json()
        assert len(rest["changes"]) == 1

    def test_user_ids_are_strings(self, client, make_user):
        make_user(user_id="auth0|abc")
        change = client.get("/changes").json()["changes"][0]
        assert change["entity_type"] == "users"
        assert change["entity_id"] == "auth0|abc"


class TestReconcile:
    def test_insert_update_delete(self):
        records = {}
        reconcile(records, {"action": "INSERT", "entity_type": "projects", "details": {"id": 1, "status": "New"}}, "projects")
        assert records == {1: {"id": 1, "status": "New"}}
        reconcile(
            records, {"action": "UPDATE", "entity_type": "projects", "details": {"id": 1, "status": "Bid Sent"}}, "projects"
        )
        assert records[1]["status"] == "Bid Sent"
        reconcile(records, {"action": "DELETE", "entity_type": "projects", "details": {"id": 1}}, "projects")
        assert records == {}

    def test_named_actions_replace_row(self):
        records = {3: {"id": 3, "sent_to_apm": False}}
        change = {"action": "send_to_apm", "entity_type": "projects", "details": {"id": 3, "sent_to_apm": True}}
        assert reconcile(records, change, "projects")[3]["sent_to_apm"] is True

    def test_other_entity_types_are_ignored(self):
        records = {1: {"id": 1}}
        reconcile(records, {"action": "DELETE", "entity_type": "vendors", "details": {"id": 1}}, "projects")
        assert records == {1: {"id": 1}}
