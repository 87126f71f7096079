from order_portal.extensions import db


class Feedback(db.Model):
    __tablename__ = "feedback"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.String(32), nullable=False)

    order = db.relationship("Order", back_populates="feedbacks")

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "message": self.message,
            "created_at": self.created_at,
        }
