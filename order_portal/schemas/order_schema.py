from marshmallow import fields
from order_portal.extensions import ma

class FeedbackSchema(ma.Schema):
    id = fields.Integer()
    message = fields.String()
    created_at = fields.String()

class VersionSchema(ma.Schema):
    id = fields.Integer()
    file_url = fields.String()
    version_number = fields.Integer()
    uploaded_at = fields.String()

class DashboardOrderSchema(ma.Schema):
    id = fields.Integer()
    client_name = fields.String(allow_none=True)
    client_phone = fields.String(allow_none=True)
    token = fields.String()
    token_expiry = fields.String()
    status = fields.String()
    has_new_feedback = fields.Boolean()
    created_at = fields.String()
    latest_file = fields.String(allow_none=True)
    latest_version = fields.Integer(allow_none=True)
    feedbacks = fields.List(fields.Nested(FeedbackSchema))

class ClientOrderSchema(ma.Schema):
    # no client_phone/token: the caller already holds the link
    id = fields.Integer()
    client_name = fields.String(allow_none=True)
    token_expiry = fields.String()
    status = fields.String()
    created_at = fields.String()
    latest_file = fields.String(allow_none=True)
    latest_version = fields.Integer(allow_none=True)
    versions = fields.List(fields.Nested(VersionSchema))
    feedbacks = fields.List(fields.Nested(FeedbackSchema))

dashboard_orders_schema = DashboardOrderSchema(many=True)
client_order_schema = ClientOrderSchema()
