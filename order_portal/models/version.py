from order_portal.extensions import db


class Version(db.Model):
    """One uploaded revision of an order's deliverable. Rows are append-only."""

    __tablename__ = "versions"

    __table_args__ = (
        db.UniqueConstraint("order_id", "version_number", name="uq_versions_order_number"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id = db.Column(
        db.Integer,
        db.ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Opaque storage reference: a full URL or a bucket-relative key
    file_url = db.Column(db.Text, nullable=False)
    version_number = db.Column(db.Integer, nullable=False)
    uploaded_at = db.Column(db.String(32), nullable=False)

    order = db.relationship("Order", back_populates="versions")

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "file_url": self.file_url,
            "version_number": self.version_number,
            "uploaded_at": self.uploaded_at,
        }
