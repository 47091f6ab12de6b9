from core.extensions import db
from core.imports import datetime


class Review(db.Model):
    __tablename__ = "reviews"
    __table_args__ = (
        db.UniqueConstraint("order_id", "buyer_id", name="uq_reviews_order_buyer"),
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False)
    farmer_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)
    listing_id = db.Column(db.Integer, db.ForeignKey("grain_listings.id"), nullable=False)

    rating = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    buyer = db.relationship("Profile", foreign_keys=[buyer_id])

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "buyer_id": self.buyer_id,
            "buyer_name": self.buyer.display_name if self.buyer else None,
            "farmer_id": self.farmer_id,
            "listing_id": self.listing_id,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
