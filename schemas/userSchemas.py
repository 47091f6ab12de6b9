from typing import Literal, Optional

from pydantic import Field, model_validator

from schemas.base import RequestSchema


class RegisterRequest(RequestSchema):
    email: str = Field(max_length=100, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8)
    user_type: Literal["buyer", "farmer"]
    full_name: Optional[str] = None
    company_name: Optional[str] = None


class LoginRequest(RequestSchema):
    email: str
    password: str


class ProfileForm(RequestSchema):
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_blank_fields(cls, data):
        # A submitted blank clears the stored value
        if isinstance(data, dict):
            return {
                key: None if isinstance(value, str) and not value.strip() else value
                for key, value in data.items()
            }
        return data
