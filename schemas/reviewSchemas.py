from pydantic import Field

from schemas.base import RequestSchema


class CreateReviewRequest(RequestSchema):
    order_id: int
    farmer_id: int
    listing_id: int
    rating: int = Field(ge=1, le=5)
    title: str = Field(max_length=200)
    content: str
