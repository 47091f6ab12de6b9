from core.imports import Blueprint, request, jsonify, jwt_required, redirect, datetime, SQLAlchemyError, logging
from core.extensions import db
from core.auth import current_caller
from core.errors import ValidationError, NotFound, Forbidden, InternalError
from core import events
from models.listingModels import GrainListing
from models.messageModels import Conversation, Message
from schemas.base import parse_payload
from schemas.messageSchemas import NewConversationForm, ReplyForm

logger = logging.getLogger(__name__)

messages_bp = Blueprint('messages', __name__)


def count_unread_messages(user_id):
    """Messages sent to ``user_id`` in any of their conversations and not yet read."""
    return (
        Message.query.join(Conversation, Message.conversation_id == Conversation.id)
        .filter(
            db.or_(Conversation.buyer_id == user_id, Conversation.farmer_id == user_id),
            Message.sender_id != user_id,
            Message.is_read.is_(False),
        )
        .count()
    )


def _get_conversation_for_party(caller, conversation_id):
    conversation = db.session.get(Conversation, conversation_id)
    if not conversation:
        raise NotFound("Conversation not found")
    if not conversation.involves(caller.id):
        raise Forbidden("You are not part of this conversation")
    return conversation


def _commit(message):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(message)
        raise InternalError(message)


@messages_bp.route('/api/messages/create', methods=['POST'])
@jwt_required()
def create_conversation():
    """
    Start a conversation with a farmer about a listing
    ---
    tags:
      - Messages
    security:
      - Bearer: []
    consumes:
      - application/x-www-form-urlencoded
    parameters:
      - {name: listing_id, in: formData, type: integer, required: true}
      - {name: farmer_id, in: formData, type: integer, required: true}
      - {name: subject, in: formData, type: string, required: true}
      - {name: message, in: formData, type: string, required: true}
    responses:
      303:
        description: Conversation created, redirects to it
      400:
        description: Missing fields or messaging yourself
      404:
        description: Listing not found
    """
    caller = current_caller()
    form = parse_payload(NewConversationForm, request.form)

    if caller.id == form.farmer_id:
        raise ValidationError("You cannot message yourself")

    listing = db.session.get(GrainListing, form.listing_id)
    if not listing:
        raise NotFound("Listing not found")
    if listing.farmer_id != form.farmer_id:
        raise ValidationError("Farmer does not match the listing")

    conversation = Conversation(
        listing_id=listing.id,
        buyer_id=caller.id,
        farmer_id=form.farmer_id,
        subject=form.subject,
    )
    db.session.add(conversation)
    db.session.flush()

    message = Message(conversation_id=conversation.id, sender_id=caller.id, content=form.message)
    db.session.add(message)
    _commit("Failed to create conversation")

    events.publish("messages", events.INSERT, message.to_dict())

    return redirect(f"/dashboard/messages/{conversation.id}", code=303)


@messages_bp.route('/api/messages/reply', methods=['POST'])
@jwt_required()
def reply():
    conversation_id = request.args.get("conversation_id", type=int)
    if conversation_id is None:
        raise ValidationError("Conversation ID is required")

    caller = current_caller()
    conversation = _get_conversation_for_party(caller, conversation_id)

    form = parse_payload(ReplyForm, request.form, message="Message is required")

    message = Message(conversation_id=conversation.id, sender_id=caller.id, content=form.message)
    db.session.add(message)
    conversation.updated_at = datetime.utcnow()
    _commit("Failed to send message")

    events.publish("messages", events.INSERT, message.to_dict())

    return redirect(f"/dashboard/messages/{conversation.id}", code=303)


@messages_bp.route('/api/messages', methods=['GET'])
@jwt_required()
def list_conversations():
    caller = current_caller()

    conversations = (
        Conversation.query.filter(
            db.or_(Conversation.buyer_id == caller.id, Conversation.farmer_id == caller.id)
        )
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .all()
    )

    conversation_list = []
    for conversation in conversations:
        last_message = conversation.messages[-1] if conversation.messages else None
        conversation_list.append({
            "id": conversation.id,
            "listing_id": conversation.listing_id,
            "buyer_id": conversation.buyer_id,
            "farmer_id": conversation.farmer_id,
            "subject": conversation.subject,
            "last_message": last_message.to_dict() if last_message else None,
            "unread": sum(
                1 for m in conversation.messages if m.sender_id != caller.id and not m.is_read
            ),
            "updated_at": conversation.updated_at.isoformat() if conversation.updated_at else None,
        })

    return jsonify({"conversations": conversation_list}), 200


@messages_bp.route('/api/messages/<int:conversation_id>', methods=['GET'])
@jwt_required()
def get_conversation(conversation_id):
    caller = current_caller()
    conversation = _get_conversation_for_party(caller, conversation_id)

    Message.query.filter(
        Message.conversation_id == conversation.id,
        Message.sender_id != caller.id,
        Message.is_read.is_(False),
    ).update({Message.is_read: True}, synchronize_session=False)
    _commit("Failed to mark messages as read")

    return jsonify({
        "id": conversation.id,
        "listing_id": conversation.listing_id,
        "buyer_id": conversation.buyer_id,
        "farmer_id": conversation.farmer_id,
        "subject": conversation.subject,
        "messages": [m.to_dict() for m in conversation.messages],
    }), 200


@messages_bp.route('/api/messages/unread-count', methods=['GET'])
@jwt_required()
def unread_count():
    caller = current_caller()
    return jsonify({"count": count_unread_messages(caller.id)}), 200
