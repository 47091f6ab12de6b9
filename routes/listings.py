from core.imports import Blueprint, request, jsonify, jwt_required, redirect, SQLAlchemyError, Decimal, logging
from core.extensions import db
from core.auth import current_caller, require_user_type, FARMER
from core.errors import ValidationError, NotFound, Forbidden, InternalError
from core import events
from models.listingModels import GrainListing
from models.userModel import Profile
from models.messageModels import Conversation
from schemas.base import parse_payload
from schemas.listingSchemas import ListingForm, ListingUpdateForm

logger = logging.getLogger(__name__)

listings_bp = Blueprint('listings', __name__)


def seed_demo_listings():
    farmer = Profile.query.filter_by(email="demo@farmer.com").first()
    if not farmer:
        logger.warning("No demo farmer found. Run seed_demo_farmer() first.")
        return

    sample_listings = [
        {
            "title": "Hard Red Winter Wheat",
            "grain_type": "wheat",
            "farming_method": "conventional",
            "price": Decimal("8.50"),
            "quantity": 500,
            "quantity_unit": "bushel",
            "minimum_order": 10,
            "city": "Salina",
            "state": "KS",
        },
        {
            "title": "Organic Yellow Corn",
            "grain_type": "corn",
            "farming_method": "organic",
            "price": Decimal("6.25"),
            "quantity": 1200,
            "quantity_unit": "bushel",
            "minimum_order": 50,
            "city": "Ames",
            "state": "IA",
        },
    ]

    for data in sample_listings:
        if GrainListing.query.filter_by(title=data["title"], farmer_id=farmer.id).first():
            logger.info("Listing already exists: %s", data["title"])
            continue
        db.session.add(GrainListing(farmer_id=farmer.id, status="active", **data))
        logger.info("Listing added: %s", data["title"])
    db.session.commit()


def _listing_id_arg():
    listing_id = request.args.get("id", type=int)
    if listing_id is None:
        raise ValidationError("Listing ID is required")
    return listing_id


def _get_owned_listing(caller, listing_id, action):
    listing = db.session.get(GrainListing, listing_id)
    if not listing:
        raise NotFound("Listing not found")
    if listing.farmer_id != caller.id:
        raise Forbidden(f"You can only {action} your own listings")
    return listing


def _commit(message):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(message)
        raise InternalError(message)


@listings_bp.route('/api/listings/create', methods=['POST'])
@jwt_required()
def create_listing():
    """
    Create a grain listing
    ---
    tags:
      - Listings
    security:
      - Bearer: []
    consumes:
      - application/x-www-form-urlencoded
    parameters:
      - {name: title, in: formData, type: string, required: true}
      - {name: grain_type, in: formData, type: string, required: true, example: wheat}
      - {name: farming_method, in: formData, type: string, required: true, example: organic}
      - {name: price, in: formData, type: number, required: true}
      - {name: quantity, in: formData, type: integer, required: true}
      - {name: quantity_unit, in: formData, type: string, required: true, example: bushel}
      - {name: minimum_order, in: formData, type: integer}
      - {name: harvest_date, in: formData, type: string, format: date}
    responses:
      303:
        description: Listing created, redirects to the farmer's listings
      400:
        description: Invalid listing data
      403:
        description: Caller is not a farmer
    """
    caller = current_caller()
    require_user_type(caller, FARMER, "Only farmers can create listings")

    form = parse_payload(ListingForm, request.form)

    listing = GrainListing(farmer_id=caller.id, status="active", **form.model_dump())
    db.session.add(listing)
    _commit("Failed to create listing")

    logger.info("Listing %s created by farmer %s", listing.id, caller.id)
    events.publish("grain_listings", events.INSERT, listing.to_dict())

    return redirect("/dashboard/listings", code=303)


@listings_bp.route('/api/listings/update', methods=['POST'])
@jwt_required()
def update_listing():
    caller = current_caller()
    listing = _get_owned_listing(caller, _listing_id_arg(), "edit")

    form = parse_payload(ListingUpdateForm, request.form)
    for field, value in form.model_dump(exclude_unset=True, exclude={"status"}).items():
        setattr(listing, field, value)
    if form.status:
        listing.status = form.status

    _commit("Failed to update listing")
    events.publish("grain_listings", events.UPDATE, listing.to_dict())

    return redirect("/dashboard/listings", code=303)


@listings_bp.route('/api/listings/delete', methods=['POST'])
@jwt_required()
def delete_listing():
    caller = current_caller()
    listing = _get_owned_listing(caller, _listing_id_arg(), "delete")

    # Orders and conversations keep pointing at their listing, so those listings are only retired.
    if listing.orders or Conversation.query.filter_by(listing_id=listing.id).first():
        listing.status = "inactive"
        _commit("Failed to delete listing")
        events.publish("grain_listings", events.UPDATE, listing.to_dict())
    else:
        db.session.delete(listing)
        _commit("Failed to delete listing")

    return redirect("/dashboard/listings", code=303)


@listings_bp.route('/api/listings/mine', methods=['GET'])
@jwt_required()
def my_listings():
    caller = current_caller()
    require_user_type(caller, FARMER, "Only farmers have listings")

    listings = (
        GrainListing.query.filter_by(farmer_id=caller.id)
        .order_by(GrainListing.created_at.desc(), GrainListing.id.desc())
        .all()
    )

    return jsonify({
        "listings": [listing.to_dict() for listing in listings],
        "count": len(listings)
    }), 200
