from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field, model_validator

from schemas.base import RequestSchema


class ListingForm(RequestSchema):
    title: str = Field(max_length=200)
    grain_type: str
    farming_method: str
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(gt=0)
    quantity_unit: str
    minimum_order: Optional[int] = Field(default=None, gt=0)
    harvest_date: Optional[date] = None
    description: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: str = "United States"
    featured: bool = False

    @model_validator(mode="after")
    def _minimum_within_quantity(self):
        if self.minimum_order is not None and self.minimum_order > self.quantity:
            raise ValueError("minimum_order cannot exceed quantity")
        return self


class ListingUpdateForm(ListingForm):
    status: Optional[Literal["active", "pending", "sold", "inactive"]] = None
