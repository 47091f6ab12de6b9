from core.imports import Blueprint, jsonify, request, redirect, create_access_token, jwt_required, IntegrityError, SQLAlchemyError, logging
from core.extensions import db, bcrypt
from core.auth import current_caller
from core.errors import Conflict, Unauthorized, InternalError
from models.userModel import Profile
from schemas.base import parse_payload
from schemas.userSchemas import RegisterRequest, LoginRequest, ProfileForm

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _issue_token(profile):
    return create_access_token(
        identity=str(profile.id),
        additional_claims={"user_type": profile.user_type}
    )


def _seed_profile(email, user_type, **fields):
    profile = Profile.query.filter_by(email=email).first()
    if not profile:
        raw_password = "password123"  # demo login password
        profile = Profile(
            email=email,
            password=bcrypt.generate_password_hash(raw_password).decode('utf-8'),
            user_type=user_type,
            country="United States",
            **fields
        )
        db.session.add(profile)
        db.session.commit()
        logger.info("Demo %s created (email=%s, password=%s)", user_type, email, raw_password)
    else:
        logger.info("Demo %s already exists.", user_type)
    return profile


def seed_demo_farmer():
    return _seed_profile(
        "demo@farmer.com", "farmer",
        full_name="John Doe", company_name="Doe Family Farms", city="Salina", state="KS",
    )


def seed_demo_buyer():
    return _seed_profile(
        "demo@buyer.com", "buyer",
        full_name="Jane Doe", company_name="Prairie Mills", city="Wichita", state="KS",
    )


@auth_bp.route('/api/auth/register', methods=['POST'])
def register():
    """
    Create a buyer or farmer account
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [email, password, user_type]
          properties:
            email:
              type: string
              example: "jane@prairiemills.com"
            password:
              type: string
              example: "password123"
            user_type:
              type: string
              enum: [buyer, farmer]
            full_name:
              type: string
            company_name:
              type: string
    responses:
      201:
        description: Account created, returns an access token
      400:
        description: Invalid input
      409:
        description: Email already registered
    """
    data = parse_payload(RegisterRequest, request.get_json(silent=True))
    email = data.email.lower()

    if Profile.query.filter_by(email=email).first():
        raise Conflict("Account with this email already exists")

    profile = Profile(
        email=email,
        password=bcrypt.generate_password_hash(data.password).decode('utf-8'),
        user_type=data.user_type,
        full_name=data.full_name,
        company_name=data.company_name,
    )
    db.session.add(profile)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Account with this email already exists")
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error registering %s", email)
        raise InternalError("An internal error occurred.")

    logger.info("Registered %s %s", profile.user_type, profile.id)

    return jsonify({
        "message": "Account created",
        "access_token": _issue_token(profile),
        "user": profile.to_dict()
    }), 201


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    data = parse_payload(LoginRequest, request.get_json(silent=True), message="Email and password are required")

    profile = Profile.query.filter_by(email=data.email.lower()).first()
    if not profile or not bcrypt.check_password_hash(profile.password, data.password):
        raise Unauthorized("Invalid credentials")

    return jsonify({
        "message": "Login successful",
        "access_token": _issue_token(profile),
        "user": {
            "email": profile.email,
            "user_type": profile.user_type
        }
    }), 200


@auth_bp.route('/api/profile', methods=['GET'])
@jwt_required()
def profile():
    caller = current_caller()
    user = db.session.get(Profile, caller.id)
    return jsonify(user.to_dict()), 200


@auth_bp.route('/api/profile', methods=['POST'])
@jwt_required()
def update_profile():
    caller = current_caller()
    user = db.session.get(Profile, caller.id)

    form = parse_payload(ProfileForm, request.form)
    for field, value in form.model_dump(exclude_unset=True).items():
        setattr(user, field, value)

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error updating profile %s", caller.id)
        raise InternalError("Failed to update profile")

    return redirect("/profile", code=303)
