from core.imports import Blueprint, jsonify
from core.extensions import db
from core.errors import NotFound
from models.listingModels import GrainListing
from services.reviewService import ReviewService

marketplace_bp = Blueprint('marketplace', __name__)


def increment_view_count(listing_id):
    """Bump a listing's view counter in a single UPDATE statement."""
    GrainListing.query.filter_by(id=listing_id).update(
        {GrainListing.view_count: GrainListing.view_count + 1},
        synchronize_session=False,
    )
    db.session.commit()


@marketplace_bp.route('/api/marketplace', methods=['GET'])
def active_listings():
    """
    Get all active grain listings
    ---
    tags:
      - Marketplace
    responses:
      200:
        description: Active listings, featured first then newest
        schema:
          type: object
          properties:
            listings:
              type: array
              items:
                type: object
                properties:
                  id:
                    type: integer
                    example: 1
                  title:
                    type: string
                    example: "Hard Red Winter Wheat"
                  grain_type:
                    type: string
                    example: "wheat"
                  price:
                    type: number
                    example: 8.5
                  quantity:
                    type: integer
                    example: 500
                  quantity_unit:
                    type: string
                    example: "bushel"
            count:
              type: integer
              example: 10
    """
    listings = (
        GrainListing.query.filter_by(status="active")
        .order_by(GrainListing.featured.desc(), GrainListing.created_at.desc(), GrainListing.id.desc())
        .all()
    )

    listing_list = []
    for listing in listings:
        data = listing.to_dict()
        data["farmer"] = {
            "id": listing.farmer.id,
            "name": listing.farmer.display_name,
        } if listing.farmer else None
        listing_list.append(data)

    return jsonify({
        "listings": listing_list,
        "count": len(listing_list)
    }), 200


@marketplace_bp.route('/api/marketplace/<int:listing_id>', methods=['GET'])
def listing_details(listing_id):
    """
    Get details of a grain listing
    ---
    tags:
      - Marketplace
    parameters:
      - name: listing_id
        in: path
        type: integer
        required: true
    responses:
      200:
        description: Listing details with the farmer's rating
      404:
        description: Listing not found
    """
    listing = db.session.get(GrainListing, listing_id)
    if not listing:
        raise NotFound("Listing not found")

    increment_view_count(listing.id)
    db.session.refresh(listing)

    data = listing.to_dict()
    data["farmer"] = {
        "id": listing.farmer.id,
        "name": listing.farmer.display_name,
        "city": listing.farmer.city,
        "state": listing.farmer.state,
        **ReviewService.farmer_rating(listing.farmer_id),
    } if listing.farmer else None

    return jsonify(data), 200
