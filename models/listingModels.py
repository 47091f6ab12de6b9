from core.extensions import db
from core.imports import datetime

LISTING_STATUSES = ("active", "pending", "sold", "inactive")


class GrainListing(db.Model):
    __tablename__ = "grain_listings"

    id = db.Column(db.Integer, primary_key=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    grain_type = db.Column(db.String(100), nullable=False)
    farming_method = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    quantity_unit = db.Column(db.String(50), nullable=False)
    minimum_order = db.Column(db.Integer, nullable=True)
    harvest_date = db.Column(db.Date, nullable=True)
    description = db.Column(db.Text, default="")

    location = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(100))
    country = db.Column(db.String(100), default="United States")

    featured = db.Column(db.Boolean, default=False)
    status = db.Column(db.String(20), default="active", nullable=False)  # active, pending, sold, inactive
    view_count = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    farmer = db.relationship("Profile", backref="listings")

    def to_dict(self):
        return {
            "id": self.id,
            "farmer_id": self.farmer_id,
            "title": self.title,
            "grain_type": self.grain_type,
            "farming_method": self.farming_method,
            "price": float(self.price),
            "quantity": self.quantity,
            "quantity_unit": self.quantity_unit,
            "minimum_order": self.minimum_order,
            "harvest_date": self.harvest_date.isoformat() if self.harvest_date else None,
            "description": self.description,
            "location": self.location,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "featured": self.featured,
            "status": self.status,
            "view_count": self.view_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
