from pydantic import BaseModel, ConfigDict, model_validator
from pydantic import ValidationError as SchemaError

from core.errors import ValidationError


class RequestSchema(BaseModel):
    """Base for every request body; blank fields are treated as absent."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalize_blank_fields(cls, data):
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()
                if not (isinstance(value, str) and not value.strip())
            }
        return data


def parse_payload(schema, data, message="Missing required fields"):
    """Validate ``data`` (JSON dict or form MultiDict) against ``schema``.

    Raises ValidationError carrying the offending fields as details.
    """
    if data is None:
        data = {}
    if hasattr(data, "to_dict"):
        data = data.to_dict()

    try:
        return schema.model_validate(data)
    except SchemaError as e:
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(message, details)
