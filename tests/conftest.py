from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from core.config import Config
from core.extensions import db, bcrypt
from main import create_app
from models.listingModels import GrainListing
from models.orderModels import Order
from models.userModel import Profile


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
    OPTIMISTIC_PAYMENT_STATUS = False
    LOG_LEVEL = "WARNING"
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_profile(app):
    counter = {"n": 0}

    def _make(user_type, **fields):
        counter["n"] += 1
        profile = Profile(
            email=fields.pop("email", f"{user_type}{counter['n']}@example.com"),
            password=bcrypt.generate_password_hash("password123").decode("utf-8"),
            user_type=user_type,
            full_name=fields.pop("full_name", f"{user_type.title()} {counter['n']}"),
            **fields
        )
        db.session.add(profile)
        db.session.commit()
        return profile

    return _make


@pytest.fixture
def farmer(make_profile):
    return make_profile("farmer", company_name="Doe Family Farms")


@pytest.fixture
def buyer(make_profile):
    return make_profile("buyer", company_name="Prairie Mills")


@pytest.fixture
def make_listing(app):
    def _make(farmer, **fields):
        data = {
            "title": "Hard Red Winter Wheat",
            "grain_type": "wheat",
            "farming_method": "conventional",
            "price": Decimal("8.50"),
            "quantity": 500,
            "quantity_unit": "bushel",
            "minimum_order": 10,
            "status": "active",
        }
        data.update(fields)
        listing = GrainListing(farmer_id=farmer.id, **data)
        db.session.add(listing)
        db.session.commit()
        return listing

    return _make


@pytest.fixture
def listing(farmer, make_listing):
    return make_listing(farmer)


@pytest.fixture
def make_order(app):
    def _make(listing, buyer, quantity=50, **fields):
        unit_price = Decimal(listing.price)
        order = Order(
            listing_id=listing.id,
            buyer_id=buyer.id,
            farmer_id=listing.farmer_id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=unit_price * quantity,
            status=fields.pop("status", "pending"),
            payment_status=fields.pop("payment_status", "pending"),
            shipping_address="12 Mill Road",
            shipping_city="Wichita",
            shipping_state="KS",
            shipping_zip="67202",
            **fields
        )
        db.session.add(order)
        db.session.commit()
        return order

    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(profile):
        token = create_access_token(identity=str(profile.id))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def order_form(listing):
    return {
        "listing_id": str(listing.id),
        "farmer_id": str(listing.farmer_id),
        "unit_price": "8.50",
        "quantity": "50",
        "shipping_address": "12 Mill Road",
        "shipping_city": "Wichita",
        "shipping_state": "KS",
        "shipping_zip": "67202",
        "payment_method": "bank_transfer",
    }
