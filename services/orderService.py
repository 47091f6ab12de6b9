from decimal import Decimal

from core.imports import SQLAlchemyError, logging
from core.extensions import db
from core.errors import Forbidden, NotFound, ValidationError, InternalError
from core import events
from models.listingModels import GrainListing
from models.orderModels import Order, OrderHistory

logger = logging.getLogger(__name__)

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "processing",
    "ready",
    "shipped",
    "delivered",
    "completed",
    "cancelled",
)

TERMINAL_STATUSES = ("completed", "cancelled")

# Forward moves are farmer-only; any active order may also be cancelled.
ALLOWED_TRANSITIONS = {
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("processing", "cancelled"),
    "processing": ("ready", "cancelled"),
    "ready": ("shipped", "cancelled"),
    "shipped": ("delivered", "cancelled"),
    "delivered": ("completed", "cancelled"),
    "completed": (),
    "cancelled": (),
}

CENTS = Decimal("0.01")


class OrderService:

    # =========================
    # STATE MACHINE
    # =========================
    @staticmethod
    def allowed_next_statuses(status):
        return ALLOWED_TRANSITIONS.get(status, ())

    @staticmethod
    def can_transition(current, new):
        return new in ALLOWED_TRANSITIONS.get(current, ())

    # =========================
    # LOOKUPS
    # =========================
    @staticmethod
    def get_order(order_id, for_update=False):
        query = Order.query.filter_by(id=order_id)
        if for_update:
            query = query.with_for_update()
        order = query.first()
        if not order:
            raise NotFound("Order not found")
        return order

    @staticmethod
    def get_order_for_party(caller, order_id):
        order = OrderService.get_order(order_id)
        if caller.id not in (order.buyer_id, order.farmer_id):
            raise Forbidden("You are not a party to this order")
        return order

    @staticmethod
    def list_orders(caller, role=None, status=None):
        """Orders where the caller is buyer or farmer, newest first.

        ``role`` narrows to "buying" or "selling"; ``status`` to one status.
        """
        if role == "buying":
            query = Order.query.filter(Order.buyer_id == caller.id)
        elif role == "selling":
            query = Order.query.filter(Order.farmer_id == caller.id)
        elif role is None:
            query = Order.query.filter(db.or_(Order.buyer_id == caller.id, Order.farmer_id == caller.id))
        else:
            raise ValidationError("Invalid role filter", {"allowed": ["buying", "selling"]})

        if status is not None:
            if status not in ORDER_STATUSES:
                raise ValidationError("Invalid status", {"valid_statuses": list(ORDER_STATUSES)})
            query = query.filter(Order.status == status)

        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    # =========================
    # HISTORY
    # =========================
    @staticmethod
    def log_history(order, actor_id, notes):
        """Append an audit entry. Failures are logged and never raised."""
        try:
            db.session.add(OrderHistory(
                order_id=order.id,
                status=order.status,
                payment_status=order.payment_status,
                notes=notes,
                created_by=actor_id,
            ))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Error creating order history for order %s", order.id)

    # =========================
    # COMMANDS
    # =========================
    @staticmethod
    def create_order(caller, form):
        """Place an order for a validated CreateOrderForm.

        Every availability check runs before anything is written; price and
        farmer are snapshotted from the listing.
        """
        listing = db.session.get(GrainListing, form.listing_id)
        if not listing:
            raise NotFound("Listing not found")

        if listing.status != "active":
            raise ValidationError("This listing is no longer available")

        if form.quantity > listing.quantity:
            raise ValidationError("Requested quantity exceeds available quantity")

        if listing.minimum_order and form.quantity < listing.minimum_order:
            raise ValidationError(f"Minimum order quantity is {listing.minimum_order}")

        if form.farmer_id != listing.farmer_id:
            raise ValidationError("Farmer does not match the listing")

        if listing.farmer_id == caller.id:
            raise ValidationError("You cannot order your own listing")

        unit_price = Decimal(listing.price).quantize(CENTS)
        if form.unit_price != unit_price:
            raise ValidationError(
                "The listing price has changed, please review the listing",
                {"current_price": float(unit_price)},
            )

        order = Order(
            listing_id=listing.id,
            buyer_id=caller.id,
            farmer_id=listing.farmer_id,
            quantity=form.quantity,
            unit_price=unit_price,
            total_price=(unit_price * form.quantity).quantize(CENTS),
            status="pending",
            payment_status="pending",
            payment_method=form.payment_method,
            shipping_address=form.shipping_address,
            shipping_city=form.shipping_city,
            shipping_state=form.shipping_state,
            shipping_zip=form.shipping_zip,
            shipping_notes=form.shipping_notes,
            notes=form.notes,
        )

        try:
            db.session.add(order)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Error creating order for listing %s", listing.id)
            raise InternalError("Failed to create order")

        logger.info("Order %s created by buyer %s for listing %s", order.id, caller.id, listing.id)
        OrderService.log_history(order, caller.id, "Order created")
        events.publish("orders", events.INSERT, order.to_dict())
        return order

    @staticmethod
    def cancel_order(caller, order_id):
        order = OrderService.get_order(order_id, for_update=True)

        if order.buyer_id != caller.id:
            logger.warning("User %s tried to cancel order %s they did not place", caller.id, order.id)
            raise Forbidden("You can only cancel your own orders")

        if order.status != "pending":
            raise ValidationError("Only pending orders can be cancelled")

        return OrderService._apply_status(order, "cancelled", caller.id, "Order cancelled by buyer")

    @staticmethod
    def update_status(caller, order_id, status, notes=None):
        if status not in ORDER_STATUSES:
            raise ValidationError("Invalid status", {"valid_statuses": list(ORDER_STATUSES)})

        order = OrderService.get_order(order_id, for_update=True)

        if order.farmer_id != caller.id:
            logger.warning("User %s tried to update status of order %s", caller.id, order.id)
            raise Forbidden("You can only update orders for your listings")

        if not OrderService.can_transition(order.status, status):
            raise ValidationError(
                f"Cannot change order status from '{order.status}' to '{status}'",
                {"allowed": list(OrderService.allowed_next_statuses(order.status))},
            )

        return OrderService._apply_status(order, status, caller.id, notes or f"Status changed to {status}")

    @staticmethod
    def _apply_status(order, status, actor_id, notes):
        previous = order.status
        order.status = status
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Error updating status of order %s", order.id)
            raise InternalError("Failed to update order status")

        logger.info("Order %s moved from %s to %s by %s", order.id, previous, status, actor_id)
        OrderService.log_history(order, actor_id, notes)
        events.publish("orders", events.UPDATE, order.to_dict())
        return order
