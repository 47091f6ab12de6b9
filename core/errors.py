from core.imports import jsonify, SQLAlchemyError, logging
from core.extensions import db, jwt

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    """Base class for failures that map onto an HTTP error response."""

    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthorized(MarketplaceError):
    status_code = 401

    def __init__(self, message="Unauthorized", details=None):
        super().__init__(message, details)


class Forbidden(MarketplaceError):
    status_code = 403


class ValidationError(MarketplaceError):
    status_code = 400


class NotFound(MarketplaceError):
    status_code = 404


class Conflict(MarketplaceError):
    status_code = 409


class InternalError(MarketplaceError):
    status_code = 500


def register_error_handlers(app):
    @app.errorhandler(MarketplaceError)
    def handle_marketplace_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        db.session.rollback()
        logger.exception("Unhandled storage error: %s", error)
        return jsonify({"error": "An internal error occurred."}), 500


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return jsonify({"error": "Unauthorized"}), 401


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    return jsonify({"error": "Unauthorized", "details": reason}), 401


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({"error": "Unauthorized", "details": "Token has expired"}), 401
