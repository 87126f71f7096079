import pytest

from order_portal.extensions import db
from order_portal.models.feedback import Feedback
from order_portal.models.order import Order
from order_portal.models.version import Version
from order_portal.services.dashboard_service import DashboardQuery
from order_portal.utils.exceptions import StoreReadFailed
from order_portal.utils.tokens import to_iso, utcnow


@pytest.fixture
def dashboard(app_ctx):
    return DashboardQuery(db.session)


def add_order(name, versions=()):
    now = to_iso(utcnow())
    order = Order(client_name=name, client_phone="", token=f"tok-{name}", token_expiry=now, created_at=now)
    db.session.add(order)
    db.session.flush()
    for number in versions:
        db.session.add(Version(
            order_id=order.id,
            file_url=f"ref/{name}/v{number}",
            version_number=number,
            uploaded_at=now,
        ))
    db.session.commit()
    return order.id


def test_orders_newest_first(service, dashboard):
    for name in ("A", "B", "C"):
        service.create_order(name, "", b"data", f"{name}.pdf")

    names = [o["client_name"] for o in dashboard.list_orders_with_latest_version()]
    assert names == ["C", "B", "A"]


def test_latest_version_ignores_insertion_order(dashboard):
    add_order("shuffled", versions=(2, 3, 1))

    (order,) = dashboard.list_orders_with_latest_version()
    assert order["latest_version"] == 3
    assert order["latest_file"] == "ref/shuffled/v3"


def test_order_without_versions_has_null_latest(dashboard):
    add_order("empty")

    (order,) = dashboard.list_orders_with_latest_version()
    assert order["latest_version"] is None
    assert order["latest_file"] is None


def test_feedback_grouped_per_order(service, dashboard):
    first = service.create_order("A", "", b"data", "a.pdf")
    second = service.create_order("B", "", b"data", "b.pdf")
    service.record_feedback(first, "one")
    service.record_feedback(first, "two")

    orders = {o["id"]: o for o in dashboard.list_orders_with_latest_version()}

    assert [f["message"] for f in orders[first]["feedbacks"]] == ["one", "two"]
    assert orders[second]["feedbacks"] == []
    assert orders[first]["has_new_feedback"] is True


def test_projection_fields(service, dashboard):
    service.create_order("Ann", "555", b"data", "a.pdf")

    (order,) = dashboard.list_orders_with_latest_version()
    assert set(order) == {
        "id", "client_name", "client_phone", "token", "token_expiry", "status",
        "has_new_feedback", "created_at", "latest_file", "latest_version", "feedbacks",
    }


def test_store_failure_is_raised_not_partial(service, dashboard):
    service.create_order("Ann", "555", b"data", "a.pdf")
    Feedback.__table__.drop(db.engine)

    with pytest.raises(StoreReadFailed):
        dashboard.list_orders_with_latest_version()


def test_order_detail_lists_versions_newest_first(service, dashboard):
    order_id = service.create_order("Ann", "555", b"v1", "v1.pdf")
    service.append_version(order_id, b"v2", "v2.pdf")

    detail = dashboard.get_order_detail(db.session.get(Order, order_id))

    assert detail["latest_version"] == 2
    assert [v["version_number"] for v in detail["versions"]] == [2, 1]
    assert detail["latest_file"] == detail["versions"][0]["file_url"]
