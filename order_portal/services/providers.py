from flask import current_app
from order_portal.extensions import db
from order_portal.services.dashboard_service import DashboardQuery
from order_portal.services.order_service import OrderService
from order_portal.services.storage_service import get_uploader


def get_order_service():
    return OrderService(
        db.session,
        get_uploader(),
        current_app.config["TEMP_FOLDER"],
        upload_timeout=current_app.config.get("UPLOAD_TIMEOUT"),
        upload_attempts=current_app.config.get("UPLOAD_MAX_ATTEMPTS", 1),
    )


def get_dashboard_query():
    return DashboardQuery(db.session)
