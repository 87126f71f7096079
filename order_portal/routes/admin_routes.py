from flask import Blueprint, request, redirect, render_template, url_for, current_app
from order_portal.services.providers import get_order_service, get_dashboard_query
from order_portal.schemas.order_schema import dashboard_orders_schema
from order_portal.utils.exceptions import ServiceError, StoreReadFailed
from order_portal.utils.response_formatter import (
    success_response,
    service_error_response,
    text_response
)

bp = Blueprint("admin", __name__, url_prefix="/admin")
api_bp = Blueprint("admin_api", __name__, url_prefix="/api/v1/admin")


def read_upload():
    file = request.files.get("file")
    if not file or not file.filename:
        return None, None
    return file.read(), file.filename


# ------------------------------------------------------------
# GET /admin - Dashboard
# ------------------------------------------------------------
@bp.route("", methods=["GET"])
def dashboard():
    try:
        orders = get_dashboard_query().list_orders_with_latest_version()
    except StoreReadFailed as e:
        current_app.logger.error("Dashboard load failed: %s", e.reason)
        return text_response(e.message, e.status)

    return render_template("admin/dashboard.html", orders=orders)


# ------------------------------------------------------------
# POST /admin/upload - Create an order with its first version
# ------------------------------------------------------------
@bp.route("/upload", methods=["POST"])
def upload():
    file_bytes, file_name = read_upload()
    if not file_bytes:
        return text_response("No file uploaded", 400)

    try:
        order_id = get_order_service().create_order(
            request.form.get("client_name", ""),
            request.form.get("client_phone", ""),
            file_bytes,
            file_name,
        )
    except ServiceError as e:
        current_app.logger.error("Order upload failed: %s", e.message)
        return text_response(e.message, e.status)

    current_app.logger.info("Order %s uploaded", order_id)
    return redirect(url_for("admin.dashboard"))


# ------------------------------------------------------------
# POST /admin/orders/<id>/versions - Attach a new revision
# ------------------------------------------------------------
@bp.route("/orders/<int:order_id>/versions", methods=["POST"])
def add_version(order_id):
    file_bytes, file_name = read_upload()
    if not file_bytes:
        return text_response("No file uploaded", 400)

    try:
        get_order_service().append_version(order_id, file_bytes, file_name)
    except ServiceError as e:
        current_app.logger.error("Version upload for order %s failed: %s", order_id, e.message)
        return text_response(e.message, e.status)

    return redirect(url_for("admin.dashboard"))


# ------------------------------------------------------------
# POST /admin/orders/<id>/feedback/seen - Clear the new-feedback flag
# ------------------------------------------------------------
@bp.route("/orders/<int:order_id>/feedback/seen", methods=["POST"])
def feedback_seen(order_id):
    try:
        get_order_service().mark_feedback_seen(order_id)
    except ServiceError as e:
        return text_response(e.message, e.status)

    return redirect(url_for("admin.dashboard"))


# ------------------------------------------------------------
# GET /api/v1/admin/orders - Dashboard as JSON
# ------------------------------------------------------------
@api_bp.route("/orders", methods=["GET"])
def list_orders():
    try:
        orders = get_dashboard_query().list_orders_with_latest_version()
    except StoreReadFailed as e:
        current_app.logger.error("Dashboard load failed: %s", e.reason)
        return service_error_response(e)

    return success_response({"orders": dashboard_orders_schema.dump(orders)})
