from core.imports import Blueprint, jwt_required, jsonify, request
from core.auth import current_caller
from schemas.base import parse_payload
from schemas.reviewSchemas import CreateReviewRequest
from services.reviewService import ReviewService

reviews_bp = Blueprint('reviews', __name__)


@reviews_bp.route('/api/reviews/create', methods=['POST'])
@jwt_required()
def create_review():
    """
    Review a completed order
    ---
    tags:
      - Reviews
    summary: Leave one review per completed order
    description: >
      Only the order's buyer may review it, only once, and only after the
      farmer has marked the order completed.
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [order_id, farmer_id, listing_id, rating, title, content]
          properties:
            order_id:
              type: integer
              example: 10
            farmer_id:
              type: integer
              example: 2
            listing_id:
              type: integer
              example: 5
            rating:
              type: integer
              example: 5
              description: Rating (1-5)
            title:
              type: string
              example: "Clean, dry wheat"
            content:
              type: string
              example: "Arrived on time and graded as promised."
    responses:
      200:
        description: Review created
      400:
        description: Missing fields or order not completed
      403:
        description: Caller did not buy this order
      404:
        description: Order not found
      409:
        description: Order already reviewed
    """
    caller = current_caller()

    form = parse_payload(CreateReviewRequest, request.get_json(silent=True))
    review = ReviewService.submit_review(caller, form)

    return jsonify({"success": True, "review": review.to_dict()}), 200


@reviews_bp.route('/api/reviews/farmer/<int:farmer_id>', methods=['GET'])
def farmer_reviews(farmer_id):
    reviews = ReviewService.farmer_reviews(farmer_id)
    rating = ReviewService.farmer_rating(farmer_id)

    return jsonify({
        "reviews": [review.to_dict() for review in reviews],
        **rating,
    }), 200
