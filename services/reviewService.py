from core.imports import SQLAlchemyError, IntegrityError, func, logging
from core.extensions import db
from core.errors import Forbidden, NotFound, ValidationError, Conflict, InternalError
from core import events
from models.orderModels import Order
from models.reviewModels import Review

logger = logging.getLogger(__name__)

ALREADY_REVIEWED = "You have already reviewed this order"


class ReviewService:

    @staticmethod
    def has_reviewed(order_id, buyer_id):
        return db.session.query(
            Review.query.filter_by(order_id=order_id, buyer_id=buyer_id).exists()
        ).scalar()

    @staticmethod
    def submit_review(caller, form):
        """Create the single review a buyer may leave on a completed order.

        Checks run in order and the first failure wins: order exists, caller
        bought it, it is completed, no review exists yet. The order row is
        locked for the check; the unique (order_id, buyer_id) constraint
        catches anything that still slips through.
        """
        order = Order.query.filter_by(id=form.order_id).with_for_update().first()
        if not order:
            raise NotFound("Order not found")

        if order.buyer_id != caller.id:
            raise Forbidden("You can only review orders you've purchased")

        if order.status != "completed":
            raise ValidationError("You can only review completed orders")

        if ReviewService.has_reviewed(order.id, caller.id):
            raise Conflict(ALREADY_REVIEWED)

        if form.farmer_id != order.farmer_id or form.listing_id != order.listing_id:
            raise ValidationError("Review does not match the order")

        review = Review(
            order_id=order.id,
            buyer_id=caller.id,
            farmer_id=order.farmer_id,
            listing_id=order.listing_id,
            rating=form.rating,
            title=form.title,
            content=form.content,
        )

        try:
            db.session.add(review)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.warning("Duplicate review rejected for order %s buyer %s", order.id, caller.id)
            raise Conflict(ALREADY_REVIEWED)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Error creating review for order %s", order.id)
            raise InternalError("Failed to create review")

        logger.info("Review %s created for order %s (rating %s)", review.id, order.id, review.rating)
        events.publish("reviews", events.INSERT, review.to_dict())
        return review

    @staticmethod
    def farmer_reviews(farmer_id):
        return (
            Review.query.filter_by(farmer_id=farmer_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .all()
        )

    @staticmethod
    def farmer_rating(farmer_id):
        average, count = (
            db.session.query(func.avg(Review.rating), func.count(Review.id))
            .filter(Review.farmer_id == farmer_id)
            .one()
        )
        return {
            "average_rating": round(float(average), 1) if average is not None else 0.0,
            "review_count": count,
        }
