from core.extensions import db
from core.imports import datetime


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    listing_id = db.Column(db.Integer, db.ForeignKey("grain_listings.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)  # snapshot of listing price
    total_price = db.Column(db.Numeric(12, 2), nullable=False)

    status = db.Column(db.String(20), default="pending", nullable=False)
    payment_status = db.Column(db.String(20), default="pending", nullable=False)  # pending, partially_paid, paid
    payment_method = db.Column(db.String(50))

    shipping_address = db.Column(db.String(255), nullable=False)
    shipping_city = db.Column(db.String(100), nullable=False)
    shipping_state = db.Column(db.String(100), nullable=False)
    shipping_zip = db.Column(db.String(20), nullable=False)
    shipping_notes = db.Column(db.Text)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    listing = db.relationship("GrainListing", backref="orders")
    buyer = db.relationship("Profile", foreign_keys=[buyer_id])
    farmer = db.relationship("Profile", foreign_keys=[farmer_id])

    history = db.relationship(
        "OrderHistory", backref="order", order_by="OrderHistory.created_at", cascade="all, delete-orphan"
    )
    transactions = db.relationship(
        "Transaction", backref="order", order_by="Transaction.created_at.desc()", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "listing_id": self.listing_id,
            "buyer_id": self.buyer_id,
            "farmer_id": self.farmer_id,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "total_price": float(self.total_price),
            "status": self.status,
            "payment_status": self.payment_status,
            "payment_method": self.payment_method,
            "shipping_address": self.shipping_address,
            "shipping_city": self.shipping_city,
            "shipping_state": self.shipping_state,
            "shipping_zip": self.shipping_zip,
            "shipping_notes": self.shipping_notes,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderHistory(db.Model):
    __tablename__ = "order_history"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False)
    notes = db.Column(db.Text)
    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("Profile")

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "status": self.status,
            "payment_status": self.payment_status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_by_name": self.user.display_name if self.user else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Transaction(db.Model):
    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_method = db.Column(db.String(50))
    transaction_reference = db.Column(db.String(100))
    status = db.Column(db.String(20), default="pending", nullable=False)  # pending, paid, failed
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount": float(self.amount),
            "payment_method": self.payment_method,
            "transaction_reference": self.transaction_reference,
            "status": self.status,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
