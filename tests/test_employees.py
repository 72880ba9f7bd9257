from bson import ObjectId

from conftest import auth

NEW = {
    "staff_code": "EMP9",
    "email": "New.Hire@Example.com",
    "password": "welcome",
    "name": "Nadia New",
    "department": "Logistics",
}


def test_create_and_fetch_employee(client, users):
    payload = {**NEW, "supervisor_id": str(users["supervisor"]["_id"])}
    res = client.post("/api/v1/employees", json=payload, headers=auth(users["hr"]))
    assert res.status_code == 201, res.text
    created = res.json()
    assert created["email"] == "new.hire@example.com"
    assert created["annual_leave_bal"] == 30
    assert created["role"] == "EMPLOYEE"

    res = client.get(f"/api/v1/employees/{created['id']}", headers=auth(users["admin"]))
    assert res.json()["supervisor"] == {"staff_code": "SUP1", "name": "Salim Supervisor"}

    login = client.post("/api/v1/auth/login", json={"email": "new.hire@example.com", "password": "welcome"})
    assert login.status_code == 200


def test_duplicate_staff_code_or_email(client, users):
    res = client.post("/api/v1/employees", json={**NEW, "staff_code": "EMP1"}, headers=auth(users["hr"]))
    assert res.status_code == 400
    assert res.json()["detail"] == "Staff code or email already exists"
    res = client.post("/api/v1/employees", json={**NEW, "email": "emp1@example.com"}, headers=auth(users["hr"]))
    assert res.status_code == 400


def test_directory_is_restricted(client, users):
    assert client.get("/api/v1/employees", headers=auth(users["employee"])).status_code == 403
    assert client.post("/api/v1/employees", json=NEW, headers=auth(users["supervisor"])).status_code == 403


def test_list_embeds_supervisor(client, users):
    res = client.get("/api/v1/employees", headers=auth(users["hr"]))
    assert res.status_code == 200
    by_code = {e["staff_code"]: e for e in res.json()}
    assert len(by_code) == 7
    assert by_code["EMP1"]["supervisor"]["staff_code"] == "SUP1"
    assert by_code["EMP2"]["supervisor"] is None


def test_update_employee(client, users):
    eid = str(users["other"]["_id"])
    res = client.put(
        f"/api/v1/employees/{eid}",
        json={"department": "Finance", "supervisor_id": str(users["supervisor"]["_id"])},
        headers=auth(users["hr"]),
    )
    assert res.status_code == 200
    assert res.json()["department"] == "Finance"
    assert res.json()["supervisor_id"] == str(users["supervisor"]["_id"])

    # Password untouched when not supplied
    login = client.post("/api/v1/auth/login", json={"email": "emp2@example.com", "password": "secret"})
    assert login.status_code == 200

    res = client.put(f"/api/v1/employees/{eid}", json={"supervisor_id": eid}, headers=auth(users["hr"]))
    assert res.status_code == 400
    res = client.put(f"/api/v1/employees/{eid}", json={"email": "emp1@example.com"}, headers=auth(users["hr"]))
    assert res.status_code == 400
    res = client.put(f"/api/v1/employees/{ObjectId()}", json={"name": "Ghost"}, headers=auth(users["hr"]))
    assert res.status_code == 404


def test_only_admin_deletes(client, users):
    eid = str(users["other"]["_id"])
    assert client.delete(f"/api/v1/employees/{eid}", headers=auth(users["hr"])).status_code == 403
    assert client.delete(f"/api/v1/employees/{eid}", headers=auth(users["admin"])).status_code == 200
    assert client.delete(f"/api/v1/employees/{eid}", headers=auth(users["admin"])).status_code == 404


def test_team_listings(client, users):
    subs = client.get("/api/v1/users/subordinates", headers=auth(users["supervisor"])).json()
    assert [u["staff_code"] for u in subs["items"]] == ["EMP1"]

    staff = client.get("/api/v1/users/employees", headers=auth(users["employee"])).json()
    assert [u["staff_code"] for u in staff["items"]] == ["EMP2"]


def test_profile_includes_supervisor(client, users):
    res = client.get("/api/v1/me/profile", headers=auth(users["employee"])).json()
    assert res["user"]["staff_code"] == "EMP1"
    assert res["supervisor"]["staff_code"] == "SUP1"


def test_null_fields_are_ignored_except_clearable_ones(client, users):
    eid = str(users["employee"]["_id"])
    res = client.put(
        f"/api/v1/employees/{eid}",
        json={"annual_leave_bal": None, "name": None, "role": None, "email": None, "department": None},
        headers=auth(users["hr"]),
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["annual_leave_bal"] == 30
    assert body["name"] == "Eman Employee"
    assert body["role"] == "EMPLOYEE"
    assert body["email"] == "emp1@example.com"
    assert body["department"] is None

    res = client.put(f"/api/v1/employees/{eid}", json={"supervisor_id": None}, headers=auth(users["hr"]))
    assert res.json()["supervisor_id"] is None

    # The employee can still authenticate afterwards
    me = client.get("/api/v1/auth/me", headers=auth(users["employee"]))
    assert me.status_code == 200
    assert me.json()["annual_leave_bal"] == 30
