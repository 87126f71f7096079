from order_portal.extensions import db

ORDER_STATUS_DEFAULT = "Sent"


class Order(db.Model):
    __tablename__ = "orders"

    __table_args__ = (
        db.Index("idx_orders_token", "token"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    client_name = db.Column(db.Text)
    client_phone = db.Column(db.Text)

    token = db.Column(db.String(36), nullable=False)
    # ISO-8601 UTC strings
    token_expiry = db.Column(db.String(32), nullable=False)

    status = db.Column(db.String(50), nullable=False, default=ORDER_STATUS_DEFAULT)
    has_new_feedback = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.String(32), nullable=False)

    versions = db.relationship(
        "Version",
        back_populates="order",
        order_by="Version.version_number",
        lazy=True
    )

    feedbacks = db.relationship(
        "Feedback",
        back_populates="order",
        order_by="Feedback.id",
        lazy=True
    )

    def to_dict(self):
        return {
            "id": self.id,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "token": self.token,
            "token_expiry": self.token_expiry,
            "status": self.status,
            "has_new_feedback": bool(self.has_new_feedback),
            "created_at": self.created_at,
        }
