from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from invoicing.app.core.errors import EmailDeliveryError
from invoicing.app.core.time import utc_today
from invoicing.app.db.base import Base
from invoicing.app.db.session import SessionLocal, engine
from invoicing.app.dependencies.auth import get_mailer
from invoicing.app.main import app
from invoicing.app.models.invoice import Invoice
from invoicing.app.services.mailer import Mailer

client = TestClient(app)

FUTURE_DUE = "2030-01-31"
PAST_DUE = "2020-01-01"


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def outbox():
    mailer = Mailer(host=None)
    app.dependency_overrides[get_mailer] = lambda: mailer
    yield mailer
    app.dependency_overrides.pop(get_mailer, None)


def register_and_login(email: str, password: str = "secret") -> str:
    client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": "Owner", "company_name": "Owner Studio"},
    )
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_client(token: str, name: str = "Acme Corp") -> int:
    resp = client.post("/clients", json={"name": name, "email": "billing@acme.com"}, headers=auth(token))
    assert resp.status_code == 201
    return resp.json()["id"]


def create_invoice(token: str, client_id: int, due_date: str = FUTURE_DUE, items=None, tax_rate=10, **extra) -> dict:
    payload = {
        "client_id": client_id,
        "due_date": due_date,
        "tax_rate": tax_rate,
        "items": items or [{"description": "Design", "quantity": 2, "unit_price": 150}],
        **extra,
    }
    resp = client.post("/invoices", json=payload, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_invoice_computes_totals():
    token = register_and_login("owner@example.com")
    client_id = create_client(token)
    data = create_invoice(token, client_id, notes="Net 30")

    assert data["status"] == "DRAFT"
    assert data["stored_status"] == "DRAFT"
    assert Decimal(data["subtotal"]) == Decimal("300.00")
    assert Decimal(data["tax_rate"]) == Decimal("10")
    assert Decimal(data["tax_amount"]) == Decimal("30.00")
    assert Decimal(data["total"]) == Decimal("330.00")
    assert data["issue_date"] == utc_today().isoformat()
    assert data["due_date"] == FUTURE_DUE
    assert data["notes"] == "Net 30"
    assert data["client"]["name"] == "Acme Corp"
    assert len(data["items"]) == 1
    item = data["items"][0]
    assert item["description"] == "Design"
    assert Decimal(item["quantity"]) == Decimal("2")
    assert Decimal(item["total"]) == Decimal("300.00")


def test_invoice_numbers_are_sequential_per_owner():
    token_a = register_and_login("a@example.com")
    token_b = register_and_login("b@example.com")
    client_a = create_client(token_a)
    client_b = create_client(token_b)
    year = utc_today().year

    first = create_invoice(token_a, client_a)
    second = create_invoice(token_a, client_a)
    other = create_invoice(token_b, client_b)
    assert first["invoice_number"] == f"INV-{year}-0001"
    assert second["invoice_number"] == f"INV-{year}-0002"
    assert other["invoice_number"] == f"INV-{year}-0001"

    client.delete(f"/invoices/{second['id']}", headers=auth(token_a))
    third = create_invoice(token_a, client_a)
    assert third["invoice_number"] == f"INV-{year}-0003"


def test_create_invoice_validation():
    token = register_and_login("owner@example.com")
    client_id = create_client(token)
    base = {"client_id": client_id, "due_date": FUTURE_DUE}

    cases = [
        {**base, "items": []},
        {**base, "items": [{"description": "Bad", "quantity": 0, "unit_price": 10}]},
        {**base, "items": [{"description": "Bad", "quantity": 1, "unit_price": -1}]},
        {**base, "items": [{"description": "Ok", "quantity": 1, "unit_price": 1}], "tax_rate": 150},
        {"client_id": client_id, "items": [{"description": "Ok", "quantity": 1, "unit_price": 1}]},
    ]
    for payload in cases:
        resp = client.post("/invoices", json=payload, headers=auth(token))
        assert resp.status_code == 400, payload
        assert resp.json()["error"] == "Validation failed"


def test_create_invoice_for_foreign_client_is_not_found():
    token_a = register_and_login("a@example.com")
    token_b = register_and_login("b@example.com")
    client_a = create_client(token_a)
    resp = client.post(
        "/invoices",
        json={
            "client_id": client_a,
            "due_date": FUTURE_DUE,
            "items": [{"description": "Design", "quantity": 1, "unit_price": 10}],
        },
        headers=auth(token_b),
    )
    assert resp.status_code == 404
    assert resp.json() == {"error": "Client not found"}


def test_invoices_are_owner_scoped():
    token_a = register_and_login("a@example.com")
    token_b = register_and_login("b@example.com")
    invoice = create_invoice(token_a, create_client(token_a))
    path = f"/invoices/{invoice['id']}"

    assert client.get("/invoices", headers=auth(token_b)).json() == []
    assert client.get(path, headers=auth(token_b)).status_code == 404
    assert client.put(path, json={"notes": "x"}, headers=auth(token_b)).status_code == 404
    assert client.patch(f"{path}/status", json={"status": "SENT"}, headers=auth(token_b)).status_code == 404
    assert client.get(f"{path}/pdf", headers=auth(token_b)).status_code == 404
    assert client.post(f"{path}/send", headers=auth(token_b)).status_code == 404
    assert client.post(f"{path}/remind", headers=auth(token_b)).status_code == 404
    resp = client.delete(path, headers=auth(token_b))
    assert resp.status_code == 404
    assert resp.json() == {"error": "Invoice not found"}
    assert client.get(path, headers=auth(token_a)).status_code == 200


def test_update_draft_replaces_items_and_recomputes():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    resp = client.put(
        f"/invoices/{invoice['id']}",
        json={
            "items": [
                {"description": "Logo", "quantity": 1, "unit_price": "99.99"},
                {"description": "Hosting", "quantity": "1.5", "unit_price": 20},
            ],
            "notes": "Revised",
        },
        headers=auth(token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [item["description"] for item in data["items"]] == ["Logo", "Hosting"]
    assert Decimal(data["subtotal"]) == Decimal("129.99")
    assert Decimal(data["tax_amount"]) == Decimal("13.00")
    assert Decimal(data["total"]) == Decimal("142.99")
    assert data["notes"] == "Revised"
    assert data["invoice_number"] == invoice["invoice_number"]


def test_update_tax_rate_alone_recomputes_totals():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    resp = client.put(f"/invoices/{invoice['id']}", json={"tax_rate": 20}, headers=auth(token))
    assert resp.status_code == 200
    data = resp.json()
    assert Decimal(data["subtotal"]) == Decimal("300.00")
    assert Decimal(data["tax_amount"]) == Decimal("60.00")
    assert Decimal(data["total"]) == Decimal("360.00")


def test_only_drafts_can_be_edited(outbox):
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token), notes="Net 30")
    path = f"/invoices/{invoice['id']}"
    assert client.post(f"{path}/send", headers=auth(token)).status_code == 200
    before = client.get(path, headers=auth(token)).json()

    attempts = [
        {"notes": "late edit"},
        {"items": [{"description": "Extra", "quantity": 5, "unit_price": 1000}]},
        {"due_date": "2031-06-30", "tax_rate": 25},
    ]
    for payload in attempts:
        resp = client.put(path, json=payload, headers=auth(token))
        assert resp.status_code == 400
        assert resp.json() == {"error": "Can only edit draft invoices"}

    after = client.get(path, headers=auth(token)).json()
    assert after["notes"] == "Net 30"
    assert after["due_date"] == FUTURE_DUE
    assert [(i["description"], Decimal(i["quantity"]), Decimal(i["total"])) for i in after["items"]] == [
        ("Design", Decimal("2"), Decimal("300.00"))
    ]
    for field in ("subtotal", "tax_rate", "tax_amount", "total"):
        assert Decimal(after[field]) == Decimal(before[field])
    assert after["stored_status"] == "SENT"


def test_status_transitions():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    path = f"/invoices/{invoice['id']}/status"

    resp = client.patch(path, json={"status": "PAID"}, headers=auth(token))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot change invoice status from DRAFT to PAID"}

    resp = client.patch(path, json={"status": "SENT"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "SENT"

    resp = client.patch(path, json={"status": "PAID"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "PAID"

    resp = client.patch(path, json={"status": "SENT"}, headers=auth(token))
    assert resp.status_code == 400

    resp = client.patch(path, json={"status": "ARCHIVED"}, headers=auth(token))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"


def test_cancel_draft_invoice():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    resp = client.patch(f"/invoices/{invoice['id']}/status", json={"status": "CANCELLED"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"


def test_send_remind_and_pay_flow(outbox):
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    path = f"/invoices/{invoice['id']}"

    resp = client.post(f"{path}/send", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Invoice sent successfully"}
    assert client.get(path, headers=auth(token)).json()["status"] == "SENT"

    sent = outbox.sent[-1]
    assert sent["To"] == "billing@acme.com"
    assert sent["Subject"] == f"Invoice {invoice['invoice_number']} from Owner Studio"
    attachments = list(sent.iter_attachments())
    assert attachments[0].get_filename() == f"{invoice['invoice_number']}.pdf"
    assert attachments[0].get_content().startswith(b"%PDF")

    resp = client.post(f"{path}/remind", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json() == {"message": "Reminder sent successfully"}
    assert outbox.sent[-1]["Subject"] == f"Payment reminder: invoice {invoice['invoice_number']}"
    reminders = client.get(path, headers=auth(token)).json()["reminders"]
    assert len(reminders) == 1
    assert reminders[0]["status"] == "SENT"
    assert reminders[0]["sent_at"]

    assert client.patch(f"{path}/status", json={"status": "PAID"}, headers=auth(token)).status_code == 200

    resp = client.post(f"{path}/remind", headers=auth(token))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot send reminder for paid invoice"}

    resp = client.post(f"{path}/send", headers=auth(token))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot send a paid invoice"}
    assert len(outbox.sent) == 2


def test_resending_keeps_status(outbox):
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    path = f"/invoices/{invoice['id']}"
    client.post(f"{path}/send", headers=auth(token))
    resp = client.post(f"{path}/send", headers=auth(token))
    assert resp.status_code == 200
    assert client.get(path, headers=auth(token)).json()["stored_status"] == "SENT"
    assert len(outbox.sent) == 2


def test_cancelled_invoice_cannot_be_sent(outbox):
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    path = f"/invoices/{invoice['id']}"
    client.patch(f"{path}/status", json={"status": "CANCELLED"}, headers=auth(token))
    resp = client.post(f"{path}/send", headers=auth(token))
    assert resp.status_code == 400
    assert outbox.sent == []


def test_failed_delivery_leaves_invoice_in_draft():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))

    class BrokenMailer(Mailer):
        def send(self, message):
            raise EmailDeliveryError("Failed to send email")

    app.dependency_overrides[get_mailer] = lambda: BrokenMailer(host="smtp.invalid")
    try:
        resp = client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))
    finally:
        app.dependency_overrides.pop(get_mailer, None)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to send email"}
    assert client.get(f"/invoices/{invoice['id']}", headers=auth(token)).json()["status"] == "DRAFT"


def test_download_pdf():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token), notes="Payment by bank transfer")
    resp = client.get(f"/invoices/{invoice['id']}/pdf", headers=auth(token))
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    assert resp.headers["content-disposition"] == f'attachment; filename="{invoice["invoice_number"]}.pdf"'
    assert resp.content.startswith(b"%PDF")


def test_past_due_sent_invoice_reads_as_overdue_without_being_rewritten(outbox):
    token = register_and_login("owner@example.com")
    client_id = create_client(token)
    overdue = create_invoice(token, client_id, due_date=PAST_DUE)
    current = create_invoice(token, client_id)
    for invoice in (overdue, current):
        client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))

    detail = client.get(f"/invoices/{overdue['id']}", headers=auth(token)).json()
    assert detail["status"] == "OVERDUE"
    assert detail["stored_status"] == "SENT"

    overdue_ids = [i["id"] for i in client.get("/invoices?status=OVERDUE", headers=auth(token)).json()]
    sent_ids = [i["id"] for i in client.get("/invoices?status=SENT", headers=auth(token)).json()]
    assert overdue_ids == [overdue["id"]]
    assert sent_ids == [current["id"]]

    again = client.get(f"/invoices/{overdue['id']}", headers=auth(token)).json()
    assert again["stored_status"] == "SENT"

    resp = client.patch(f"/invoices/{overdue['id']}/status", json={"status": "PAID"}, headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "PAID"


def test_list_filters_by_client():
    token = register_and_login("owner@example.com")
    first = create_client(token, "First")
    second = create_client(token, "Second")
    create_invoice(token, first)
    wanted = create_invoice(token, second)

    resp = client.get(f"/invoices?client_id={second}", headers=auth(token))
    assert resp.status_code == 200
    data = resp.json()
    assert [i["id"] for i in data] == [wanted["id"]]
    assert data[0]["client"]["name"] == "Second"


def test_list_is_newest_first_and_rejects_unknown_status():
    token = register_and_login("owner@example.com")
    client_id = create_client(token)
    older = create_invoice(token, client_id)
    newer = create_invoice(token, client_id)
    ids = [i["id"] for i in client.get("/invoices", headers=auth(token)).json()]
    assert ids == [newer["id"], older["id"]]
    assert client.get("/invoices?status=LOST", headers=auth(token)).status_code == 400


def test_delete_invoice_in_any_status():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    path = f"/invoices/{invoice['id']}"
    client.patch(f"{path}/status", json={"status": "SENT"}, headers=auth(token))
    client.patch(f"{path}/status", json={"status": "PAID"}, headers=auth(token))

    resp = client.delete(path, headers=auth(token))
    assert resp.status_code == 204
    assert client.get(path, headers=auth(token)).status_code == 404


def test_amounts_beyond_two_decimal_places_are_rejected():
    token = register_and_login("owner@example.com")
    client_id = create_client(token)
    base = {"client_id": client_id, "due_date": FUTURE_DUE}

    cases = [
        {**base, "items": [{"description": "Tiny", "quantity": "0.001", "unit_price": 10}]},
        {**base, "items": [{"description": "Third", "quantity": "0.333", "unit_price": 10}]},
        {**base, "items": [{"description": "Fraction", "quantity": 1, "unit_price": "9.999"}]},
        {**base, "items": [{"description": "Ok", "quantity": 1, "unit_price": 10}], "tax_rate": "12.345"},
    ]
    for payload in cases:
        resp = client.post("/invoices", json=payload, headers=auth(token))
        assert resp.status_code == 400, payload
        assert resp.json()["error"] == "Validation failed"
    assert client.get("/invoices", headers=auth(token)).json() == []

    invoice = create_invoice(token, client_id)
    resp = client.put(f"/invoices/{invoice['id']}", json={"tax_rate": "12.345"}, headers=auth(token))
    assert resp.status_code == 400
    assert Decimal(client.get(f"/invoices/{invoice['id']}", headers=auth(token)).json()["tax_rate"]) == Decimal("10")


def test_stored_amounts_match_the_computed_totals():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(
        token,
        create_client(token),
        items=[{"description": "Hours", "quantity": "1.25", "unit_price": "80.10"}],
        tax_rate="7.25",
    )
    detail = client.get(f"/invoices/{invoice['id']}", headers=auth(token)).json()
    assert Decimal(detail["items"][0]["quantity"]) == Decimal("1.25")
    assert Decimal(detail["items"][0]["total"]) == Decimal("100.13")
    assert Decimal(detail["subtotal"]) == Decimal("100.13")
    assert Decimal(detail["tax_amount"]) == Decimal("7.26")
    assert Decimal(detail["total"]) == Decimal("107.39")
    for field in ("subtotal", "tax_amount", "total"):
        assert Decimal(detail[field]) == Decimal(invoice[field])


def test_overdue_cannot_be_set_explicitly():
    token = register_and_login("owner@example.com")
    invoice = create_invoice(token, create_client(token))
    path = f"/invoices/{invoice['id']}/status"
    assert client.patch(path, json={"status": "SENT"}, headers=auth(token)).status_code == 200

    resp = client.patch(path, json={"status": "OVERDUE"}, headers=auth(token))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Cannot change invoice status from SENT to OVERDUE"}
    assert client.get(f"/invoices/{invoice['id']}", headers=auth(token)).json()["status"] == "SENT"


def test_overdue_reads_the_same_across_every_view():
    token = register_and_login("owner@example.com")
    client_id = create_client(token)
    past_due = create_invoice(token, client_id, due_date=PAST_DUE)
    not_yet_due = create_invoice(token, client_id)
    for invoice in (past_due, not_yet_due):
        client.patch(f"/invoices/{invoice['id']}/status", json={"status": "SENT"}, headers=auth(token))

    db = SessionLocal()
    try:
        row = db.query(Invoice).filter(Invoice.id == not_yet_due["id"]).first()
        row.status = "OVERDUE"
        db.commit()
    finally:
        db.close()

    statuses = {i["id"]: i["status"] for i in client.get("/invoices", headers=auth(token)).json()}
    assert statuses == {past_due["id"]: "OVERDUE", not_yet_due["id"]: "SENT"}
    assert client.get(f"/invoices/{not_yet_due['id']}", headers=auth(token)).json()["status"] == "SENT"

    overdue_ids = [i["id"] for i in client.get("/invoices?status=OVERDUE", headers=auth(token)).json()]
    sent_ids = [i["id"] for i in client.get("/invoices?status=SENT", headers=auth(token)).json()]
    dashboard_ids = [i["id"] for i in client.get("/dashboard/overdue", headers=auth(token)).json()]
    assert overdue_ids == [past_due["id"]]
    assert sent_ids == [not_yet_due["id"]]
    assert dashboard_ids == [past_due["id"]]

    stats = client.get("/dashboard/stats", headers=auth(token)).json()
    assert stats["overdue_invoices"] == 1
    assert stats["pending_invoices"] == 2
    assert Decimal(stats["overdue_amount"]) == Decimal(past_due["total"])
