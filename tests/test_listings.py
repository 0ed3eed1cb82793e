from datetime import datetime, timedelta

import pytest

from portal.listings import check_expired_listings, listing_price, listings_expiring_within, publish_listing
from portal.models import Listing, utcnow
from portal.schemas import ListingDuration, ListingStatus, ListingType

CONTACT = {"name": "Pat Doe", "phone": "(321) 555-0100", "email": "pat@example.com"}

HOME = {
    "listing_type": "FSBO",
    "title": "3/2 on Barefoot Blvd",
    "price": 185000,
    "address": "123 Barefoot Blvd",
    "bedrooms": 3,
    "bathrooms": 2,
    "square_feet": 1400,
    "year_built": 1985,
    "contact_info": CONTACT,
}


def _listing(db, title, status, expiration, **fields):
    listing = Listing(
        listing_type=fields.pop("listing_type", ListingType.CLASSIFIED.value),
        title=title,
        contact_info=CONTACT,
        status=status.value,
        expiration_date=expiration,
        listing_duration=fields.pop("listing_duration", ListingDuration.SEVEN_DAY.value),
        **fields,
    )
    db.add(listing)
    db.commit()
    return listing


def test_price_table():
    assert listing_price(ListingType.FSBO, ListingDuration.THIRTY_DAY) == 5000
    assert listing_price("FSBO", "3_day") is None
    assert listing_price("GarageSale", "7_day") == 2500
    assert listing_price("Classified", "3_day") == 1000


def test_publish_sets_expiration_from_duration():
    listing = Listing(listing_duration="3_day", status=ListingStatus.DRAFT.value)
    now = datetime(2025, 5, 1, 12, 0)
    publish_listing(listing, now)
    assert listing.status == ListingStatus.ACTIVE.value
    assert listing.expiration_date == datetime(2025, 5, 4, 12, 0)


def test_expiration_sweep(db):
    reference = datetime(2025, 3, 1, 12, 0)
    stale = _listing(db, "Old couch", ListingStatus.ACTIVE, reference - timedelta(days=2))
    renewing = _listing(
        db, "Weekly golf cart ad", ListingStatus.ACTIVE, reference - timedelta(days=1), is_subscription=True
    )
    gone = _listing(db, "Ancient lamp", ListingStatus.EXPIRED, reference - timedelta(days=40))
    live = _listing(db, "Bike", ListingStatus.ACTIVE, reference + timedelta(days=3))
    draft = _listing(db, "Draft", ListingStatus.DRAFT, reference - timedelta(days=5))
    gone_id = gone.id

    result = check_expired_listings(db, reference)

    assert (result.checked, result.renewed, result.expired, result.deleted) == (3, 1, 1, 1)
    db.expire_all()
    assert stale.status == ListingStatus.EXPIRED.value
    assert renewing.status == ListingStatus.ACTIVE.value
    assert renewing.expiration_date == reference + timedelta(days=6)
    assert db.get(Listing, gone_id) is None
    assert live.status == ListingStatus.ACTIVE.value
    assert draft.status == ListingStatus.DRAFT.value


def test_expiring_within(db):
    reference = datetime(2025, 3, 1)
    _listing(db, "Soon", ListingStatus.ACTIVE, reference + timedelta(days=2))
    _listing(db, "Later", ListingStatus.ACTIVE, reference + timedelta(days=20))
    _listing(db, "Already expired", ListingStatus.EXPIRED, reference + timedelta(days=1))

    expiring = listings_expiring_within(db, 7, reference)
    assert [l.title for l in expiring] == ["Soon"]


def test_create_publish_and_browse(client, resident, headers_for):
    r = client.post("/api/listings", json={**HOME, "listing_duration": "7"}, headers=headers_for(resident))
    assert r.status_code == 201
    listing = r.json()
    assert listing["status"] == "DRAFT"
    assert listing["listing_duration"] == "7_day"
    assert listing["created_by"] == resident.id

    # Drafts are not public
    assert client.get("/api/listings").json() == []
    assert client.get(f"/api/listings/{listing['id']}").status_code == 404

    r = client.post(f"/api/listings/{listing['id']}/publish", headers=headers_for(resident))
    assert r.status_code == 200
    published = r.json()
    assert published["status"] == "ACTIVE"
    expires = datetime.fromisoformat(published["expiration_date"])
    assert abs(expires - (utcnow() + timedelta(days=7))) < timedelta(minutes=1)

    r = client.get("/api/listings", params={"type": ["FSBO", "Agent"], "min_bedrooms": 3})
    assert [l["id"] for l in r.json()] == [listing["id"]]
    assert client.get("/api/listings", params={"min_bedrooms": 4}).json() == []

    mine = client.get("/api/listings/mine", headers=headers_for(resident)).json()
    assert [l["id"] for l in mine] == [listing["id"]]


def test_property_listing_needs_details(client, resident, headers_for):
    body = {**HOME}
    del body["bedrooms"]
    r = client.post("/api/listings", json=body, headers=headers_for(resident))
    assert r.status_code == 422

    classified = {"listing_type": "Classified", "title": "Golf cart", "price": 2500, "contact_info": CONTACT}
    assert client.post("/api/listings", json=classified, headers=headers_for(resident)).status_code == 201


@pytest.mark.parametrize("phone", ["321-555-0100", "(321)555-0100", "3215550100"])
def test_contact_phone_format(client, resident, headers_for, phone):
    body = {**HOME, "contact_info": {**CONTACT, "phone": phone}}
    assert client.post("/api/listings", json=body, headers=headers_for(resident)).status_code == 422


def test_only_owner_or_admin_can_edit(client, make_user, resident, admin, headers_for):
    listing_id = client.post("/api/listings", json=HOME, headers=headers_for(resident)).json()["id"]
    neighbour = make_user("neighbour")

    r = client.patch(f"/api/listings/{listing_id}", json={"price": 1}, headers=headers_for(neighbour))
    assert r.status_code == 403

    r = client.patch(f"/api/listings/{listing_id}", json={"price": 179000}, headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json()["price"] == 179000

    r = client.patch(f"/api/listings/{listing_id}", json={"address": ""}, headers=headers_for(resident))
    assert r.status_code == 400

    assert client.delete(f"/api/listings/{listing_id}", headers=headers_for(neighbour)).status_code == 403
    assert client.delete(f"/api/listings/{listing_id}", headers=headers_for(resident)).status_code == 204


def test_drafts_filter_is_admin_only(client, resident, admin, headers_for):
    client.post("/api/listings", json=HOME, headers=headers_for(resident))
    assert client.get("/api/listings", params={"status": "DRAFT"}).status_code == 403
    drafts = client.get("/api/listings", params={"status": "DRAFT"}, headers=headers_for(admin)).json()
    assert len(drafts) == 1


def test_price_sorting(client, resident, headers_for):
    for title, price in [("Mid", 200000), ("Low", 150000), ("High", 250000)]:
        listing_id = client.post(
            "/api/listings", json={**HOME, "title": title, "price": price}, headers=headers_for(resident)
        ).json()["id"]
        client.post(f"/api/listings/{listing_id}/publish", headers=headers_for(resident))

    asc = client.get("/api/listings", params={"sort": "price_asc"}).json()
    assert [l["title"] for l in asc] == ["Low", "Mid", "High"]
    desc = client.get("/api/listings", params={"sort": "price_desc", "max_price": 220000}).json()
    assert [l["title"] for l in desc] == ["Mid", "Low"]


def test_prices_endpoint_and_admin_sweep(client, resident, admin, headers_for):
    prices = client.get("/api/listings/prices").json()
    assert prices["real_property"] == {"3_day": None, "7_day": None, "30_day": 5000}
    assert prices["open_house"]["7_day"] == 2500

    assert client.post("/api/listings/check-expirations", headers=headers_for(resident)).status_code == 403
    r = client.post("/api/listings/check-expirations", headers=headers_for(admin))
    assert r.status_code == 200
    assert r.json() == {"checked": 0, "renewed": 0, "expired": 0, "deleted": 0}


@pytest.mark.parametrize("field", ["title", "listing_type", "contact_info", "listing_duration", "cash_only"])
def test_update_rejects_null_for_required_fields(client, resident, headers_for, field):
    listing_id = client.post("/api/listings", json=HOME, headers=headers_for(resident)).json()["id"]
    r = client.patch(f"/api/listings/{listing_id}", json={field: None}, headers=headers_for(resident))
    assert r.status_code == 422
    assert client.get(f"/api/listings/{listing_id}", headers=headers_for(resident)).json()["title"] == HOME["title"]
