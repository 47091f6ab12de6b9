from datetime import date
from decimal import Decimal

import pytest

from core.extensions import db
from models.listingModels import GrainListing
from models.messageModels import Conversation, Message


@pytest.fixture
def listing_form():
    return {
        "title": "Malting Barley",
        "grain_type": "barley",
        "farming_method": "conventional",
        "price": "5.75",
        "quantity": "800",
        "quantity_unit": "bushel",
        "minimum_order": "25",
        "harvest_date": "2026-07-15",
        "city": "Fargo",
        "state": "ND",
        "country": "",
    }


class TestListings:

    def test_farmer_creates_listing(self, client, farmer, listing_form, auth_headers):
        resp = client.post("/api/listings/create", data=listing_form, headers=auth_headers(farmer))

        assert resp.status_code == 303
        assert resp.headers["Location"].endswith("/dashboard/listings")
        listing = GrainListing.query.one()
        assert listing.farmer_id == farmer.id
        assert listing.price == Decimal("5.75")
        assert listing.harvest_date == date(2026, 7, 15)
        assert listing.country == "United States"
        assert listing.status == "active"

    def test_buyers_cannot_list(self, client, buyer, listing_form, auth_headers):
        resp = client.post("/api/listings/create", data=listing_form, headers=auth_headers(buyer))
        assert resp.status_code == 403
        assert GrainListing.query.count() == 0

    def test_minimum_cannot_exceed_quantity(self, client, farmer, listing_form, auth_headers):
        listing_form["minimum_order"] = "900"
        resp = client.post("/api/listings/create", data=listing_form, headers=auth_headers(farmer))
        assert resp.status_code == 400

    def test_update_own_listing(self, client, farmer, listing, listing_form, auth_headers):
        listing_form.update({"price": "9.10", "status": "sold"})

        resp = client.post(f"/api/listings/update?id={listing.id}", data=listing_form, headers=auth_headers(farmer))

        assert resp.status_code == 303
        listing = db.session.get(GrainListing, listing.id)
        assert listing.price == Decimal("9.10")
        assert listing.status == "sold"

    def test_update_keeps_fields_not_submitted(self, client, farmer, make_listing, auth_headers):
        listing = make_listing(farmer, featured=True, country="Canada", minimum_order=10,
                               description="Cleaned and bin-dried")
        form = {
            "title": "Hard Red Winter Wheat",
            "grain_type": "wheat",
            "farming_method": "conventional",
            "price": "8.75",
            "quantity": "450",
            "quantity_unit": "bushel",
        }

        resp = client.post(f"/api/listings/update?id={listing.id}", data=form, headers=auth_headers(farmer))

        assert resp.status_code == 303
        listing = db.session.get(GrainListing, listing.id)
        assert listing.price == Decimal("8.75")
        assert listing.quantity == 450
        assert listing.featured is True
        assert listing.country == "Canada"
        assert listing.minimum_order == 10
        assert listing.description == "Cleaned and bin-dried"

    def test_cannot_touch_another_farmers_listing(self, client, make_profile, listing, listing_form, auth_headers):
        other = make_profile("farmer")
        headers = auth_headers(other)

        assert client.post(f"/api/listings/update?id={listing.id}", data=listing_form,
                           headers=headers).status_code == 403
        assert client.post(f"/api/listings/delete?id={listing.id}", headers=headers).status_code == 403
        assert db.session.get(GrainListing, listing.id) is not None

    def test_delete_unused_listing(self, client, farmer, listing, auth_headers):
        resp = client.post(f"/api/listings/delete?id={listing.id}", headers=auth_headers(farmer))
        assert resp.status_code == 303
        assert GrainListing.query.count() == 0

    def test_delete_listing_with_orders_retires_it(self, client, farmer, buyer, listing, make_order, auth_headers):
        make_order(listing, buyer)

        client.post(f"/api/listings/delete?id={listing.id}", headers=auth_headers(farmer))

        assert db.session.get(GrainListing, listing.id).status == "inactive"

    def test_listing_id_required(self, client, farmer, auth_headers):
        resp = client.post("/api/listings/delete", headers=auth_headers(farmer))
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Listing ID is required"

    def test_my_listings(self, client, farmer, make_listing, auth_headers):
        make_listing(farmer)
        make_listing(farmer, title="Soybeans", grain_type="soybean", status="sold")

        body = client.get("/api/listings/mine", headers=auth_headers(farmer)).get_json()

        assert body["count"] == 2


class TestMarketplace:

    def test_only_active_listings_are_public(self, client, farmer, make_listing):
        make_listing(farmer, title="Old crop", status="sold")
        make_listing(farmer, title="Regular")
        make_listing(farmer, title="Featured", featured=True)

        body = client.get("/api/marketplace").get_json()

        assert [item["title"] for item in body["listings"]] == ["Featured", "Regular"]
        assert body["listings"][0]["farmer"]["name"] == "Doe Family Farms"

    def test_detail_counts_views(self, client, listing):
        client.get(f"/api/marketplace/{listing.id}")
        body = client.get(f"/api/marketplace/{listing.id}").get_json()

        assert body["view_count"] == 2
        assert body["farmer"]["review_count"] == 0

    def test_unknown_listing(self, client):
        assert client.get("/api/marketplace/999").status_code == 404


class TestMessages:

    def _start(self, client, buyer, listing, auth_headers, **overrides):
        form = {
            "listing_id": str(listing.id),
            "farmer_id": str(listing.farmer_id),
            "subject": "Protein content",
            "message": "What protein did this lot test at?",
        }
        form.update(overrides)
        return client.post("/api/messages/create", data=form, headers=auth_headers(buyer))

    def test_conversation_flow(self, client, buyer, farmer, listing, auth_headers):
        resp = self._start(client, buyer, listing, auth_headers)
        conversation = Conversation.query.one()
        assert resp.status_code == 303
        assert resp.headers["Location"].endswith(f"/dashboard/messages/{conversation.id}")

        assert client.get("/api/messages/unread-count", headers=auth_headers(farmer)).get_json() == {"count": 1}
        assert client.get("/api/messages/unread-count", headers=auth_headers(buyer)).get_json() == {"count": 0}

        body = client.get(f"/api/messages/{conversation.id}", headers=auth_headers(farmer)).get_json()
        assert [m["content"] for m in body["messages"]] == ["What protein did this lot test at?"]
        assert client.get("/api/messages/unread-count", headers=auth_headers(farmer)).get_json() == {"count": 0}

        resp = client.post(f"/api/messages/reply?conversation_id={conversation.id}",
                           data={"message": "12.4% on a dry basis"}, headers=auth_headers(farmer))
        assert resp.status_code == 303

        inbox = client.get("/api/messages", headers=auth_headers(buyer)).get_json()
        assert inbox["conversations"][0]["unread"] == 1
        assert inbox["conversations"][0]["last_message"]["content"] == "12.4% on a dry basis"

    def test_cannot_message_yourself(self, client, farmer, listing, auth_headers):
        resp = self._start(client, farmer, listing, auth_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "You cannot message yourself"
        assert Message.query.count() == 0

    def test_outsiders_cannot_read_or_reply(self, client, buyer, make_profile, listing, auth_headers):
        self._start(client, buyer, listing, auth_headers)
        conversation = Conversation.query.one()
        stranger = make_profile("buyer")

        assert client.get(f"/api/messages/{conversation.id}", headers=auth_headers(stranger)).status_code == 403
        resp = client.post(f"/api/messages/reply?conversation_id={conversation.id}",
                           data={"message": "hello"}, headers=auth_headers(stranger))
        assert resp.status_code == 403

    def test_reply_requires_message(self, client, buyer, listing, auth_headers):
        self._start(client, buyer, listing, auth_headers)
        conversation = Conversation.query.one()

        resp = client.post(f"/api/messages/reply?conversation_id={conversation.id}",
                           data={"message": "  "}, headers=auth_headers(buyer))

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Message is required"

    def test_delete_listing_with_conversation_retires_it(self, client, buyer, farmer, listing, auth_headers):
        self._start(client, buyer, listing, auth_headers)

        client.post(f"/api/listings/delete?id={listing.id}", headers=auth_headers(farmer))

        assert db.session.get(GrainListing, listing.id).status == "inactive"
