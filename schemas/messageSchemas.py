from schemas.base import RequestSchema


class NewConversationForm(RequestSchema):
    listing_id: int
    farmer_id: int
    subject: str
    message: str


class ReplyForm(RequestSchema):
    message: str
