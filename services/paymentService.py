from decimal import Decimal

from core.imports import SQLAlchemyError, logging
from core.extensions import db
from core.errors import Forbidden, NotFound, ValidationError, InternalError
from core import events
from models.orderModels import Transaction
from services.orderService import OrderService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _to_decimal(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def derive_payment_status(total_price, paid_amounts, pending_amount=ZERO):
    """Payment status for an order given the amounts already confirmed paid.

    ``pending_amount`` is added on top when a not-yet-confirmed payment should
    count optimistically. The result depends only on the sum, so it is the
    same for any ordering of ``paid_amounts``.
    """
    total_paid = sum((_to_decimal(amount) for amount in paid_amounts), ZERO) + _to_decimal(pending_amount)

    if total_paid >= _to_decimal(total_price):
        return "paid"
    if total_paid > ZERO:
        return "partially_paid"
    return "pending"


class PaymentService:

    @staticmethod
    def paid_amounts(order_id):
        rows = Transaction.query.filter_by(order_id=order_id, status="paid").all()
        return [row.amount for row in rows]

    @staticmethod
    def total_paid(order_id):
        return sum((_to_decimal(a) for a in PaymentService.paid_amounts(order_id)), ZERO)

    @staticmethod
    def remaining_balance(order):
        return _to_decimal(order.total_price) - PaymentService.total_paid(order.id)

    @staticmethod
    def record_payment(caller, order_id, payment, optimistic=False):
        """Record a buyer's payment as a pending transaction.

        With ``optimistic`` the new amount counts toward payment_status right
        away; otherwise only confirmed transactions do.
        """
        order = OrderService.get_order(order_id, for_update=True)

        if order.buyer_id != caller.id:
            logger.warning("User %s tried to record a payment on order %s", caller.id, order.id)
            raise Forbidden("Only the buyer can record payments")

        if order.status == "cancelled":
            raise ValidationError("Cannot record payments on a cancelled order")

        if PaymentService.remaining_balance(order) <= ZERO:
            raise ValidationError("This order is already fully paid")

        transaction = Transaction(
            order_id=order.id,
            amount=payment.amount,
            payment_method=payment.payment_method,
            transaction_reference=payment.transaction_reference,
            status="pending",
            notes=payment.notes,
        )

        try:
            db.session.add(transaction)
            db.session.flush()

            pending_amount = payment.amount if optimistic else ZERO
            order.payment_status = derive_payment_status(
                order.total_price, PaymentService.paid_amounts(order.id), pending_amount
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Error recording payment for order %s", order_id)
            raise InternalError("Failed to record payment")

        logger.info(
            "Payment %s of %s recorded on order %s, payment_status=%s",
            transaction.id, transaction.amount, order.id, order.payment_status,
        )
        OrderService.log_history(order, caller.id, f"Payment of {transaction.amount} recorded")
        events.publish("transactions", events.INSERT, transaction.to_dict())
        events.publish("orders", events.UPDATE, order.to_dict())
        return transaction

    @staticmethod
    def confirm_payment(caller, order_id, confirmation):
        """Farmer marks a pending transaction paid or failed.

        payment_status is re-derived from confirmed transactions only, which
        also corrects any optimistic status set when the payment was recorded.
        """
        order = OrderService.get_order(order_id, for_update=True)

        if order.farmer_id != caller.id:
            logger.warning("User %s tried to confirm a payment on order %s", caller.id, order.id)
            raise Forbidden("Only the farmer can confirm payments")

        transaction = Transaction.query.filter_by(id=confirmation.transaction_id, order_id=order.id).first()
        if not transaction:
            raise NotFound("Transaction not found")

        if transaction.status != "pending":
            raise ValidationError("Only pending transactions can be confirmed")

        try:
            transaction.status = confirmation.status
            if confirmation.notes:
                transaction.notes = confirmation.notes
            db.session.flush()

            order.payment_status = derive_payment_status(order.total_price, PaymentService.paid_amounts(order.id))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Error confirming transaction %s", confirmation.transaction_id)
            raise InternalError("Failed to confirm payment")

        logger.info(
            "Transaction %s on order %s marked %s, payment_status=%s",
            transaction.id, order.id, transaction.status, order.payment_status,
        )
        OrderService.log_history(order, caller.id, f"Payment of {transaction.amount} marked {transaction.status}")
        events.publish("transactions", events.UPDATE, transaction.to_dict())
        events.publish("orders", events.UPDATE, order.to_dict())
        return transaction
