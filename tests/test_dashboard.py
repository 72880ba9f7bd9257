from conftest import auth


def test_lookups(client, users):
    types = client.get("/api/v1/lookups/leave-types", headers=auth(users["employee"]))
    assert types.json() == ["Annual", "Sick", "Emergency"]
    roles = client.get("/api/v1/lookups/roles", headers=auth(users["employee"])).json()
    assert "ACCOUNTS" in roles and "MANAGEMENT" in roles


def test_summary_counts(client, users):
    client.post(
        "/api/v1/leaves",
        json={"start_date": "2026-07-01", "end_date": "2026-07-03", "ticket_required": True},
        headers=auth(users["employee"]),
    )
    res = client.get("/api/v1/dashboard/summary", headers=auth(users["accounts"]))
    assert res.status_code == 200
    data = res.json()
    assert data["employees"] == 7
    assert data["leaves"]["PENDING_MANAGER"] == 1
    assert data["leaves"]["APPROVED"] == 0
    assert data["tickets"]["PENDING_QUOTES"] == 1


def test_summary_is_org_wide_only(client, users):
    assert client.get("/api/v1/dashboard/summary", headers=auth(users["supervisor"])).status_code == 403
