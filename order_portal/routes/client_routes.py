from flask import Blueprint, request, current_app
from order_portal.services.providers import get_order_service, get_dashboard_query
from order_portal.schemas.order_schema import client_order_schema, FeedbackSchema
from order_portal.utils.exceptions import ServiceError
from order_portal.utils.response_formatter import success_response, service_error_response

bp = Blueprint("client", __name__, url_prefix="/api/v1/client/orders")


@bp.errorhandler(ServiceError)
def handle_service_error(e):
    return service_error_response(e)


# ------------------------------------------------------------
# GET /client/orders/<token> - Client opens their link
# ------------------------------------------------------------
@bp.route("/<token>", methods=["GET"])
def view_order(token):
    service = get_order_service()
    order = service.get_order_by_token(token)
    service.mark_viewed(order)

    detail = get_dashboard_query().get_order_detail(order)
    return success_response({"order": client_order_schema.dump(detail)})


# ------------------------------------------------------------
# POST /client/orders/<token>/feedback - Client leaves a comment
# ------------------------------------------------------------
@bp.route("/<token>/feedback", methods=["POST"])
def leave_feedback(token):
    service = get_order_service()
    order = service.get_order_by_token(token)

    data = request.get_json(silent=True) or {}
    feedback = service.record_feedback(order.id, data.get("message"))

    current_app.logger.info("Feedback %s received for order %s", feedback.id, order.id)
    return success_response({"feedback": FeedbackSchema().dump(feedback.to_dict())}, status=201)


# ------------------------------------------------------------
# POST /client/orders/<token>/approve - Client signs off
# ------------------------------------------------------------
@bp.route("/<token>/approve", methods=["POST"])
def approve_order(token):
    service = get_order_service()
    order = service.get_order_by_token(token)
    service.approve(order)
    return success_response({"id": order.id, "status": order.status}, message="Order approved")
