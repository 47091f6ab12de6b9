from core.imports import Blueprint, jwt_required, jsonify, request, redirect, current_app
from core.auth import current_caller, require_user_type, BUYER
from core.errors import ValidationError
from schemas.base import parse_payload
from schemas.orderSchemas import CreateOrderForm, UpdateStatusRequest, RecordPaymentRequest, ConfirmPaymentRequest
from services.orderService import OrderService
from services.paymentService import PaymentService
from services.reviewService import ReviewService

orders_bp = Blueprint('orders', __name__)


def _order_id_arg():
    order_id = request.args.get("id", type=int)
    if order_id is None:
        raise ValidationError("Order ID is required")
    return order_id


@orders_bp.route('/api/orders/create', methods=['POST'])
@jwt_required()
def create_order():
    """
    Place an order on a grain listing
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    consumes:
      - application/x-www-form-urlencoded
    parameters:
      - {name: listing_id, in: formData, type: integer, required: true}
      - {name: farmer_id, in: formData, type: integer, required: true}
      - {name: unit_price, in: formData, type: number, required: true, example: 8.50}
      - {name: quantity, in: formData, type: integer, required: true, example: 50}
      - {name: shipping_address, in: formData, type: string, required: true}
      - {name: shipping_city, in: formData, type: string, required: true}
      - {name: shipping_state, in: formData, type: string, required: true}
      - {name: shipping_zip, in: formData, type: string, required: true}
      - {name: shipping_notes, in: formData, type: string}
      - {name: payment_method, in: formData, type: string}
      - {name: notes, in: formData, type: string}
    responses:
      303:
        description: Order created, redirects to the confirmation page
      400:
        description: Missing fields, inactive listing or quantity out of range
      401:
        description: Not logged in
      403:
        description: Caller is not a buyer
      404:
        description: Listing not found
    """
    caller = current_caller()
    require_user_type(caller, BUYER, "Only buyers can create orders")

    form = parse_payload(CreateOrderForm, request.form)
    order = OrderService.create_order(caller, form)

    return redirect(f"/dashboard/orders/{order.id}/confirmation", code=303)


@orders_bp.route('/api/orders/cancel', methods=['POST'])
@jwt_required()
def cancel_order():
    """
    Cancel a pending order (buyer only)
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - {name: id, in: query, type: integer, required: true}
    responses:
      303:
        description: Order cancelled, redirects to the orders page
      400:
        description: Order is no longer pending
      403:
        description: Caller is not the buyer
      404:
        description: Order not found
    """
    order_id = _order_id_arg()
    caller = current_caller()

    OrderService.cancel_order(caller, order_id)

    return redirect("/dashboard/orders", code=303)


@orders_bp.route('/api/orders/update-status', methods=['POST'])
@jwt_required()
def update_order_status():
    """
    Move an order to its next status (farmer only)
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - {name: id, in: query, type: integer, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - status
          properties:
            status:
              type: string
              example: confirmed
            notes:
              type: string
              example: "Loading on Tuesday"
    responses:
      200:
        description: Status updated
      400:
        description: Invalid status or transition
      403:
        description: Caller is not the order's farmer
      404:
        description: Order not found
    """
    order_id = _order_id_arg()
    caller = current_caller()

    body = parse_payload(UpdateStatusRequest, request.get_json(silent=True))
    OrderService.update_status(caller, order_id, body.status, body.notes)

    return jsonify({"success": True}), 200


@orders_bp.route('/api/orders/record-payment', methods=['POST'])
@jwt_required()
def record_payment():
    """
    Record a payment against an order (buyer only)
    ---
    tags:
      - Payments
    security:
      - Bearer: []
    parameters:
      - {name: id, in: query, type: integer, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - amount
          properties:
            amount:
              type: number
              example: 425.00
            payment_method:
              type: string
              example: bank_transfer
            transaction_reference:
              type: string
              example: "TRX-2291"
            notes:
              type: string
    responses:
      200:
        description: Payment recorded as a pending transaction
      400:
        description: Invalid amount, cancelled or fully paid order
      403:
        description: Caller is not the buyer
      404:
        description: Order not found
    """
    order_id = _order_id_arg()
    caller = current_caller()

    payment = parse_payload(RecordPaymentRequest, request.get_json(silent=True), message="Invalid amount")
    transaction = PaymentService.record_payment(
        caller, order_id, payment, optimistic=current_app.config.get("OPTIMISTIC_PAYMENT_STATUS", False)
    )

    return jsonify({
        "success": True,
        "transaction": transaction.to_dict(),
        "payment_status": transaction.order.payment_status,
    }), 200


@orders_bp.route('/api/orders/confirm-payment', methods=['POST'])
@jwt_required()
def confirm_payment():
    """
    Mark a pending transaction paid or failed (farmer only)
    ---
    tags:
      - Payments
    security:
      - Bearer: []
    parameters:
      - {name: id, in: query, type: integer, required: true}
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - transaction_id
            - status
          properties:
            transaction_id:
              type: integer
            status:
              type: string
              enum: [paid, failed]
            notes:
              type: string
    responses:
      200:
        description: Transaction updated and payment status re-derived
      400:
        description: Invalid body or transaction not pending
      403:
        description: Caller is not the farmer
      404:
        description: Order or transaction not found
    """
    order_id = _order_id_arg()
    caller = current_caller()

    confirmation = parse_payload(ConfirmPaymentRequest, request.get_json(silent=True))
    transaction = PaymentService.confirm_payment(caller, order_id, confirmation)

    return jsonify({
        "success": True,
        "transaction": transaction.to_dict(),
        "payment_status": transaction.order.payment_status,
    }), 200


@orders_bp.route('/api/orders', methods=['GET'])
@jwt_required()
def list_orders():
    caller = current_caller()
    orders = OrderService.list_orders(
        caller,
        role=request.args.get("role") or None,
        status=request.args.get("status") or None,
    )

    orders_data = []
    for order in orders:
        data = order.to_dict()
        data["listing_title"] = order.listing.title if order.listing else None
        data["is_buyer"] = order.buyer_id == caller.id
        orders_data.append(data)

    return jsonify({"orders": orders_data, "count": len(orders_data)}), 200


@orders_bp.route('/api/orders/<int:order_id>', methods=['GET'])
@jwt_required()
def get_order_details(order_id):
    """
    Order detail with history, payments and balance
    ---
    tags:
      - Orders
    security:
      - Bearer: []
    parameters:
      - {name: order_id, in: path, type: integer, required: true}
    responses:
      200:
        description: Order details
      403:
        description: Caller is not a party to the order
      404:
        description: Order not found
    """
    caller = current_caller()
    order = OrderService.get_order_for_party(caller, order_id)

    is_buyer = order.buyer_id == caller.id
    total_paid = PaymentService.total_paid(order.id)
    remaining = PaymentService.remaining_balance(order)
    has_reviewed = ReviewService.has_reviewed(order.id, caller.id) if is_buyer else False

    data = order.to_dict()
    data.update({
        "listing": {
            "id": order.listing.id,
            "title": order.listing.title,
            "grain_type": order.listing.grain_type,
            "farming_method": order.listing.farming_method,
            "quantity_unit": order.listing.quantity_unit,
        } if order.listing else None,
        "buyer_name": order.buyer.display_name if order.buyer else None,
        "farmer_name": order.farmer.display_name if order.farmer else None,
        "is_buyer": is_buyer,
        "history": [entry.to_dict() for entry in order.history],
        "transactions": [t.to_dict() for t in order.transactions],
        "total_paid": float(total_paid),
        "remaining_balance": float(remaining),
        "has_reviewed": has_reviewed,
        "can_cancel": is_buyer and order.status == "pending",
        "can_pay": is_buyer and remaining > 0 and order.status != "cancelled",
        "can_review": is_buyer and order.status == "completed" and not has_reviewed,
        "allowed_next_statuses": [] if is_buyer else list(OrderService.allowed_next_statuses(order.status)),
    })

    return jsonify(data), 200
