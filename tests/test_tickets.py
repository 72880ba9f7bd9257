from conftest import auth, run

QUOTES = [
    {"id": "q1", "airline": "Oman Air", "price": 182.5, "departure": "01 Jul 08:10", "baggage": "30kg"},
    {"id": "q2", "airline": "SalamAir", "price": 121.0, "departure": "01 Jul 14:40", "baggage": "20kg", "refundable": False},
]


def _ticket(client, users):
    res = client.post(
        "/api/v1/leaves",
        json={
            "type": "Annual",
            "start_date": "2026-07-01",
            "end_date": "2026-07-21",
            "ticket_required": True,
            "route": "MCT-COK-MCT",
        },
        headers=auth(users["employee"]),
    )
    assert res.status_code == 201, res.text
    return res.json()["ticket_request"]


def test_quote_issue_settle_lifecycle(client, users):
    ticket = _ticket(client, users)
    tid = ticket["id"]

    res = client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES}, headers=auth(users["hr"]))
    assert res.status_code == 200
    assert res.json()["status"] == "QUOTE_RECEIVED"
    assert [q["airline"] for q in res.json()["quotes"]] == ["Oman Air", "SalamAir"]

    res = client.post(f"/api/v1/tickets/{tid}/issue", json={"quote_id": "q2"}, headers=auth(users["management"]))
    assert res.status_code == 200
    assert res.json()["status"] == "TICKET_ISSUED"
    assert res.json()["selected_quote"]["airline"] == "SalamAir"

    res = client.post(f"/api/v1/tickets/{tid}/settlement", json={"status": "SETTLEMENT_READY"}, headers=auth(users["accounts"]))
    assert res.json()["status"] == "SETTLEMENT_READY"

    res = client.post(f"/api/v1/tickets/{tid}/settlement", json={"status": "SETTLED"}, headers=auth(users["accounts"]))
    body = res.json()
    assert body["status"] == "SETTLED"
    assert body["settled_at"] is not None

    mine = client.get(f"/api/v1/tickets/{tid}", headers=auth(users["employee"]))
    assert mine.json()["status"] == "SETTLED"


def test_quotes_are_limited_to_three(client, users):
    tid = _ticket(client, users)["id"]
    four = [{"airline": f"Air {i}", "price": 100 + i} for i in range(4)]
    res = client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": four}, headers=auth(users["hr"]))
    assert res.status_code == 422


def test_requote_clears_selection_until_issued(client, users):
    tid = _ticket(client, users)["id"]
    client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES[:1]}, headers=auth(users["hr"]))
    res = client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES}, headers=auth(users["admin"]))
    assert res.status_code == 200
    assert len(res.json()["quotes"]) == 2

    client.post(f"/api/v1/tickets/{tid}/issue", json={"quote_id": "q1"}, headers=auth(users["hr"]))
    res = client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES}, headers=auth(users["hr"]))
    assert res.status_code == 409


def test_wrong_role_and_wrong_state(client, users):
    tid = _ticket(client, users)["id"]
    res = client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES}, headers=auth(users["accounts"]))
    assert res.status_code == 403

    res = client.post(f"/api/v1/tickets/{tid}/issue", json={"quote_id": "q1"}, headers=auth(users["hr"]))
    assert res.status_code == 409

    client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES}, headers=auth(users["hr"]))
    res = client.post(f"/api/v1/tickets/{tid}/issue", json={"quote_id": "missing"}, headers=auth(users["hr"]))
    assert res.status_code == 400

    res = client.post(f"/api/v1/tickets/{tid}/settlement", json={"status": "SETTLED"}, headers=auth(users["accounts"]))
    assert res.status_code == 409


def test_employees_only_see_their_own_tickets(client, users):
    tid = _ticket(client, users)["id"]
    assert client.get(f"/api/v1/tickets/{tid}", headers=auth(users["other"])).status_code == 403
    assert client.get("/api/v1/tickets", headers=auth(users["other"])).json()["total"] == 0

    listing = client.get("/api/v1/tickets", params={"status": "PENDING_QUOTES"}, headers=auth(users["accounts"])).json()
    assert [t["id"] for t in listing["items"]] == [tid]


def test_mail_preview(client, users):
    tid = _ticket(client, users)["id"]
    res = client.get(f"/api/v1/tickets/{tid}/mail/quote_request", headers=auth(users["hr"]))
    assert res.status_code == 200
    mail = res.json()
    assert mail["to"] == "travel-agent@example.com"
    assert mail["subject"] == "EMP1 | MCT-COK-MCT | EMAN EMPLOYEE | ELIGIBLE"
    assert mail["mailto"].startswith("mailto:travel-agent@example.com?subject=")
    assert mail["sent"] is False

    assert client.get(f"/api/v1/tickets/{tid}/mail/issue_ticket", headers=auth(users["hr"])).status_code == 409
    assert client.get(f"/api/v1/tickets/{tid}/mail/postcard", headers=auth(users["hr"])).status_code == 404
    assert client.get(f"/api/v1/tickets/{tid}/mail/quote_request", headers=auth(users["employee"])).status_code == 403


def test_mail_send_is_disabled_by_default(client, users):
    tid = _ticket(client, users)["id"]
    res = client.post(f"/api/v1/tickets/{tid}/mail/quote_request/send", headers=auth(users["hr"]))
    assert res.status_code == 404


def test_ticket_updates_notify_the_employee(client, users, db):
    tid = _ticket(client, users)["id"]
    client.post(f"/api/v1/tickets/{tid}/quotes", json={"quotes": QUOTES}, headers=auth(users["hr"]))
    client.post(f"/api/v1/tickets/{tid}/issue", json={"quote_id": "q1"}, headers=auth(users["hr"]))
    note = run(db["notifications"].find_one({"user_id": users["employee"]["_id"], "type": "ticket_status"}))
    assert note["payload"] == {"ticket_id": tid, "status": "TICKET_ISSUED"}


def test_mail_send_delivers_when_enabled(client, users, monkeypatch):
    from latms.api.v1 import tickets as tickets_api
    from latms.core.feature_flags import features

    sent = []
    monkeypatch.setattr(features, "mail_send", True)
    monkeypatch.setattr(tickets_api, "send_text_email", lambda **kw: sent.append(kw))
    tid = _ticket(client, users)["id"]

    res = client.post(f"/api/v1/tickets/{tid}/mail/settlement_request/send", headers=auth(users["accounts"]))
    assert res.status_code == 200
    assert res.json()["sent"] is True
    assert sent[0]["to"] == "accounts@example.com"
    assert sent[0]["subject"].endswith("| SETTLEMENT REQUEST")


def test_mail_send_failure_is_bad_gateway(client, users, monkeypatch):
    from latms.api.v1 import tickets as tickets_api
    from latms.core.feature_flags import features

    def boom(**kw):
        raise RuntimeError("SMTP delivery failed")

    monkeypatch.setattr(features, "mail_send", True)
    monkeypatch.setattr(tickets_api, "send_text_email", boom)
    tid = _ticket(client, users)["id"]
    res = client.post(f"/api/v1/tickets/{tid}/mail/quote_request/send", headers=auth(users["hr"]))
    assert res.status_code == 502


def test_status_filter(client, users):
    quoted = _ticket(client, users)["id"]
    pending = _ticket(client, users)["id"]
    client.post(f"/api/v1/tickets/{quoted}/quotes", json={"quotes": QUOTES}, headers=auth(users["hr"]))

    res = client.get("/api/v1/tickets", params={"status": "QUOTE_RECEIVED"}, headers=auth(users["hr"])).json()
    assert res["total"] == 1
    assert [t["id"] for t in res["items"]] == [quoted]

    res = client.get("/api/v1/tickets", params={"status": "PENDING_QUOTES"}, headers=auth(users["hr"])).json()
    assert res["total"] == 1
    assert [t["id"] for t in res["items"]] == [pending]

    res = client.get("/api/v1/tickets", params={"status": "SETTLED"}, headers=auth(users["hr"])).json()
    assert res == {"items": [], "total": 0, "page": 1, "size": 50}
    assert client.get("/api/v1/tickets", headers=auth(users["hr"])).json()["total"] == 2
