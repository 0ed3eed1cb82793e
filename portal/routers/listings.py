"""Classified and real-estate listings."""

import logging
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..database import get_db
from ..listings import check_expired_listings, listings_expiring_within, price_table, publish_listing
from ..models import Listing, User
from ..schemas import (
    ExpirationSweepResult,
    ExpiringListing,
    ListingCreate,
    ListingRead,
    ListingStatus,
    ListingType,
    ListingUpdate,
    check_property_details,
    to_naive_utc,
)
from ..security import get_current_user, is_admin, require_admin, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/listings", tags=["listings"])


def _get_listing(db: Session, listing_id: int) -> Listing:
    listing = db.get(Listing, listing_id)
    if not listing:
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing


def _require_owner(listing: Listing, user: User) -> None:
    if listing.created_by != user.id and not is_admin(user):
        raise HTTPException(status_code=403, detail="You can only change your own listings")


@router.get("", response_model=list[ListingRead])
def list_listings(
    type: list[ListingType] | None = Query(default=None),
    status: ListingStatus | None = None,
    category: str | None = None,
    search: str | None = None,
    min_price: int | None = None,
    max_price: int | None = None,
    min_bedrooms: int | None = None,
    min_bathrooms: int | None = None,
    min_sqft: int | None = None,
    max_sqft: int | None = None,
    min_year: int | None = None,
    max_year: int | None = None,
    sort: Literal["newest", "price_asc", "price_desc"] = "newest",
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Browse listings. Non-admins see ACTIVE listings unless they ask for EXPIRED."""
    query = db.query(Listing)

    if is_admin(user):
        if status:
            query = query.filter(Listing.status == status.value)
    else:
        if status == ListingStatus.DRAFT:
            raise HTTPException(status_code=403, detail="Draft listings are only visible to their owners")
        query = query.filter(Listing.status == (status or ListingStatus.ACTIVE).value)

    if type:
        query = query.filter(Listing.listing_type.in_([t.value for t in type]))
    if category:
        query = query.filter(Listing.category == category)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Listing.title.ilike(pattern),
            Listing.description.ilike(pattern),
            Listing.address.ilike(pattern),
        ))

    ranges = [
        (Listing.price, min_price, max_price),
        (Listing.bedrooms, min_bedrooms, None),
        (Listing.bathrooms, min_bathrooms, None),
        (Listing.square_feet, min_sqft, max_sqft),
        (Listing.year_built, min_year, max_year),
    ]
    for column, low, high in ranges:
        if low is not None:
            query = query.filter(column >= low)
        if high is not None:
            query = query.filter(column <= high)

    if sort == "price_asc":
        query = query.order_by(Listing.price.asc().nulls_last(), Listing.id)
    elif sort == "price_desc":
        query = query.order_by(Listing.price.desc().nulls_last(), Listing.id)
    else:
        query = query.order_by(Listing.created_at.desc(), Listing.id.desc())
    return query.all()


@router.get("/mine", response_model=list[ListingRead])
def my_listings(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return (
        db.query(Listing)
        .filter(Listing.created_by == user.id)
        .order_by(Listing.created_at.desc(), Listing.id.desc())
        .all()
    )


@router.get("/prices")
def listing_prices():
    """Prices in cents by listing group and duration; null means not offered."""
    return price_table()


@router.get("/expiring", response_model=list[ExpiringListing])
def expiring_listings(
    days: int = Query(default=7, ge=1, le=365),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return listings_expiring_within(db, days)


@router.post("/check-expirations", response_model=ExpirationSweepResult)
def run_expiration_sweep(
    reference_date: datetime | None = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    logger.info("Admin %s triggered the listing expiration sweep", admin.id)
    return check_expired_listings(db, to_naive_utc(reference_date))


@router.get("/{listing_id}", response_model=ListingRead)
def get_listing(
    listing_id: int,
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    listing = _get_listing(db, listing_id)
    if listing.status == ListingStatus.DRAFT.value and (
        user is None or (listing.created_by != user.id and not is_admin(user))
    ):
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing


@router.post("", response_model=ListingRead, status_code=201)
def create_listing(
    body: ListingCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Create a listing as a DRAFT. It goes live through /publish."""
    data = body.model_dump(mode="json", exclude={"open_house_date"})
    listing = Listing(
        **data,
        open_house_date=body.open_house_date,
        status=ListingStatus.DRAFT.value,
        created_by=user.id,
    )
    try:
        db.add(listing)
        db.commit()
        db.refresh(listing)
    except Exception:
        db.rollback()
        raise
    logger.info("User %s created %s listing %s", user.id, listing.listing_type, listing.id)
    return listing


@router.post("/{listing_id}/publish", response_model=ListingRead)
def publish(
    listing_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    listing = _get_listing(db, listing_id)
    _require_owner(listing, user)
    if listing.status == ListingStatus.ACTIVE.value:
        raise HTTPException(status_code=400, detail="Listing is already active")

    publish_listing(listing)
    db.commit()
    db.refresh(listing)
    logger.info("Listing %s published until %s", listing.id, listing.expiration_date)
    return listing


@router.patch("/{listing_id}", response_model=ListingRead)
def update_listing(
    listing_id: int,
    body: ListingUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    listing = _get_listing(db, listing_id)
    _require_owner(listing, user)

    changes = body.model_dump(mode="json", exclude_unset=True)
    if "open_house_date" in changes:
        changes["open_house_date"] = body.open_house_date

    merged = {column: getattr(listing, column) for column in (
        "address", "price", "bedrooms", "bathrooms", "square_feet", "year_built"
    )}
    merged.update(changes)
    try:
        check_property_details(ListingType(changes.get("listing_type", listing.listing_type)), merged)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    for field, value in changes.items():
        setattr(listing, field, value)
    try:
        db.commit()
        db.refresh(listing)
    except Exception:
        db.rollback()
        raise
    return listing


@router.delete("/{listing_id}", status_code=204)
def delete_listing(
    listing_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    listing = _get_listing(db, listing_id)
    _require_owner(listing, user)
    db.delete(listing)
    db.commit()
    logger.info("User %s deleted listing %s", user.id, listing_id)
