from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field

from schemas.base import RequestSchema


class CreateOrderForm(RequestSchema):
    listing_id: int
    farmer_id: int
    unit_price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    quantity: int = Field(gt=0)
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_zip: str
    shipping_notes: Optional[str] = None
    notes: Optional[str] = None
    payment_method: Optional[str] = None


class UpdateStatusRequest(RequestSchema):
    status: str
    notes: Optional[str] = None


class RecordPaymentRequest(RequestSchema):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: Optional[str] = None
    transaction_reference: Optional[str] = None
    notes: Optional[str] = None


class ConfirmPaymentRequest(RequestSchema):
    transaction_id: int
    status: Literal["paid", "failed"]
    notes: Optional[str] = None
