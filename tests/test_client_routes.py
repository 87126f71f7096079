import io

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from order_portal.extensions import db
from order_portal.models.feedback import Feedback
from order_portal.models.order import Order


@pytest.fixture
def order_token(app, client):
    client.post(
        "/admin/upload",
        data={"client_name": "Ann", "client_phone": "555", "file": (io.BytesIO(b"v1"), "v1.pdf")},
        content_type="multipart/form-data",
    )
    with app.app_context():
        return db.session.query(Order).one().token


def test_view_marks_order_viewed(app, client, order_token):
    resp = client.get(f"/api/v1/client/orders/{order_token}")
    order = resp.get_json()["order"]

    assert resp.status_code == 200
    assert order["status"] == "Viewed"
    assert order["latest_version"] == 1
    assert len(order["versions"]) == 1
    assert "client_phone" not in order


def test_unknown_token(client):
    resp = client.get("/api/v1/client/orders/nope")
    assert resp.status_code == 404
    assert resp.get_json()["error"]["code"] == "NOT_FOUND"


def test_expired_token(app, client, order_token):
    with app.app_context():
        order = db.session.query(Order).one()
        order.token_expiry = "2000-01-01T00:00:00.000Z"
        db.session.commit()

    resp = client.get(f"/api/v1/client/orders/{order_token}")

    assert resp.status_code == 410
    assert resp.get_json()["error"]["code"] == "TOKEN_EXPIRED"


def test_feedback_flags_order(app, client, order_token):
    resp = client.post(f"/api/v1/client/orders/{order_token}/feedback", json={"message": "Change the title"})

    assert resp.status_code == 201
    assert resp.get_json()["feedback"]["message"] == "Change the title"
    with app.app_context():
        order = db.session.query(Order).one()
        assert order.has_new_feedback is True
        assert order.status == "Feedback Received"


def test_blank_feedback(client, order_token):
    resp = client.post(f"/api/v1/client/orders/{order_token}/feedback", json={"message": ""})
    assert resp.status_code == 422


def test_approve_then_feedback_conflicts(client, order_token):
    resp = client.post(f"/api/v1/client/orders/{order_token}/approve")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "Approved"

    resp = client.post(f"/api/v1/client/orders/{order_token}/feedback", json={"message": "wait"})
    assert resp.status_code == 409


def test_feedback_store_failure_reports_feedback_error(app, client, order_token, monkeypatch):
    def broken_commit(self):
        raise OperationalError("INSERT INTO feedback (order_id, message) VALUES (?, ?)", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Session, "commit", broken_commit)

    resp = client.post(f"/api/v1/client/orders/{order_token}/feedback", json={"message": "Change the title"})

    monkeypatch.undo()
    error = resp.get_json()["error"]
    assert resp.status_code == 500
    assert error["code"] == "STORE_WRITE_FAILED"
    assert error["message"] == "Feedback could not be saved"
    assert error["details"] == {}
    assert "INSERT" not in resp.get_data(as_text=True)
    with app.app_context():
        assert db.session.query(Feedback).count() == 0
        assert db.session.query(Order).one().has_new_feedback is False


def test_oversized_feedback_gets_json_error(app, client, order_token):
    app.config["MAX_CONTENT_LENGTH"] = 10

    resp = client.post(f"/api/v1/client/orders/{order_token}/feedback", json={"message": "x" * 1024})

    assert resp.status_code == 413
    assert resp.get_json()["error"]["code"] == "FILE_TOO_LARGE"
