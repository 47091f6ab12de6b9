from dataclasses import dataclass

from core.imports import get_jwt_identity
from core.extensions import db
from core.errors import Unauthorized, Forbidden
from models.userModel import Profile

BUYER = "buyer"
FARMER = "farmer"
USER_TYPES = (BUYER, FARMER)


@dataclass(frozen=True)
class Caller:
    """The authenticated user behind the current request."""

    id: int
    user_type: str

    @property
    def is_buyer(self):
        return self.user_type == BUYER

    @property
    def is_farmer(self):
        return self.user_type == FARMER


def current_caller():
    """Resolve the caller for a request already guarded by ``jwt_required``."""
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise Unauthorized()

    profile = db.session.get(Profile, user_id)
    if not profile:
        raise Unauthorized()

    return Caller(id=profile.id, user_type=profile.user_type)


def require_user_type(caller, user_type, message):
    if caller.user_type != user_type:
        raise Forbidden(message)
