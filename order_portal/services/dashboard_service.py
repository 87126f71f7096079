import logging
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from order_portal.models.feedback import Feedback
from order_portal.models.order import Order
from order_portal.models.version import Version
from order_portal.utils.exceptions import StoreReadFailed

logger = logging.getLogger(__name__)


def latest_file_subquery():
    return (
        select(Version.file_url)
        .where(Version.order_id == Order.id)
        .order_by(Version.version_number.desc())
        .limit(1)
        .correlate(Order)
        .scalar_subquery()
    )


def latest_version_subquery():
    return (
        select(func.max(Version.version_number))
        .where(Version.order_id == Order.id)
        .correlate(Order)
        .scalar_subquery()
    )


class DashboardQuery:
    """Read-only projection of orders for the admin dashboard."""

    def __init__(self, session):
        self.session = session

    def list_orders_with_latest_version(self):
        """Every order, newest first, with its latest version and its feedback.

        Raises StoreReadFailed instead of returning a partial list.
        """
        try:
            rows = (
                self.session.query(
                    Order,
                    latest_file_subquery().label("latest_file"),
                    latest_version_subquery().label("latest_version"),
                )
                .order_by(Order.id.desc())
                .all()
            )
            feedbacks = self.session.query(Feedback).order_by(Feedback.id).all()
        except SQLAlchemyError as e:
            logger.error("Dashboard query failed: %s", e)
            raise StoreReadFailed("Dashboard failed to load", str(e)) from e

        grouped = defaultdict(list)
        for f in feedbacks:
            grouped[f.order_id].append(f.to_dict())

        orders = []
        for order, latest_file, latest_version in rows:
            item = order.to_dict()
            item["latest_file"] = latest_file
            item["latest_version"] = latest_version
            item["feedbacks"] = grouped.get(order.id, [])
            orders.append(item)
        return orders

    def get_order_detail(self, order):
        try:
            versions = (
                self.session.query(Version)
                .filter_by(order_id=order.id)
                .order_by(Version.version_number.desc())
                .all()
            )
            feedbacks = (
                self.session.query(Feedback)
                .filter_by(order_id=order.id)
                .order_by(Feedback.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("Order %s detail query failed: %s", order.id, e)
            raise StoreReadFailed("Order could not be loaded", str(e)) from e

        latest = versions[0] if versions else None
        item = order.to_dict()
        item["latest_file"] = latest.file_url if latest else None
        item["latest_version"] = latest.version_number if latest else None
        item["versions"] = [v.to_dict() for v in versions]
        item["feedbacks"] = [f.to_dict() for f in feedbacks]
        return item
