"""Listing pricing, publishing and the expiration sweep."""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Listing, utcnow
from .schemas import (
    ExpirationSweepResult,
    ExpiringListing,
    ListingDuration,
    ListingStatus,
    ListingType,
)

logger = logging.getLogger(__name__)

# Expired listings are kept this long before being deleted
DELETE_AFTER_EXPIRED = timedelta(days=30)

# Prices in cents; None means the duration is not offered for that group
LISTING_PRICES: dict[str, dict[ListingDuration, int | None]] = {
    "real_property": {
        ListingDuration.THREE_DAY: None,
        ListingDuration.SEVEN_DAY: None,
        ListingDuration.THIRTY_DAY: 5000,
    },
    "open_house": {
        ListingDuration.THREE_DAY: 1000,
        ListingDuration.SEVEN_DAY: 2500,
        ListingDuration.THIRTY_DAY: 5000,
    },
    "classified": {
        ListingDuration.THREE_DAY: 1000,
        ListingDuration.SEVEN_DAY: 2500,
        ListingDuration.THIRTY_DAY: 5000,
    },
    "default": {
        ListingDuration.THREE_DAY: 1000,
        ListingDuration.SEVEN_DAY: 2500,
        ListingDuration.THIRTY_DAY: 5000,
    },
}

PRICE_GROUPS: dict[ListingType, str] = {
    ListingType.FSBO: "real_property",
    ListingType.AGENT: "real_property",
    ListingType.RENT: "real_property",
    ListingType.WANTED: "real_property",
    ListingType.OPEN_HOUSE: "open_house",
    ListingType.GARAGE_SALE: "open_house",
    ListingType.CLASSIFIED: "classified",
}


def listing_price(listing_type: ListingType | str, duration: ListingDuration | str) -> int | None:
    """Price in cents for a listing type and duration, None if not offered."""
    group = PRICE_GROUPS.get(ListingType(listing_type), "default")
    return LISTING_PRICES[group][ListingDuration(duration)]


def price_table() -> dict[str, dict[str, int | None]]:
    return {
        group: {duration.value: cents for duration, cents in prices.items()}
        for group, prices in LISTING_PRICES.items()
    }


def duration_of(listing: Listing) -> timedelta:
    duration = ListingDuration(listing.listing_duration or ListingDuration.THIRTY_DAY.value)
    return timedelta(days=duration.days)


def publish_listing(listing: Listing, now: datetime | None = None) -> Listing:
    """Activate a listing and start its expiration clock."""
    now = now or utcnow()
    listing.status = ListingStatus.ACTIVE.value
    listing.expiration_date = now + duration_of(listing)
    return listing


def check_expired_listings(db: Session, reference: datetime | None = None) -> ExpirationSweepResult:
    """Expire, renew or delete listings whose expiration date has passed.

    - Subscription listings are renewed for another duration.
    - Other listings become EXPIRED.
    - Listings that expired more than 30 days before `reference` are deleted.
    """
    now = reference or utcnow()
    due = db.scalars(
        select(Listing).where(
            Listing.expiration_date.is_not(None),
            Listing.expiration_date <= now,
            Listing.status != ListingStatus.DRAFT.value,
        )
    ).all()

    result = ExpirationSweepResult(checked=len(due))
    delete_before = now - DELETE_AFTER_EXPIRED

    for listing in due:
        if listing.is_subscription and listing.status == ListingStatus.ACTIVE.value:
            # Step forward until the listing is live again
            while listing.expiration_date <= now:
                listing.expiration_date += duration_of(listing)
            result.renewed += 1
            logger.info("Renewed subscription listing %s until %s", listing.id, listing.expiration_date)
        elif listing.expiration_date < delete_before:
            logger.info("Deleting listing %s (%s), expired over 30 days ago", listing.id, listing.title)
            db.delete(listing)
            result.deleted += 1
        elif listing.status == ListingStatus.ACTIVE.value:
            listing.status = ListingStatus.EXPIRED.value
            result.expired += 1
            logger.info("Marked listing %s (%s) as expired", listing.id, listing.title)

    db.commit()
    logger.info(
        "Expiration sweep: checked=%d renewed=%d expired=%d deleted=%d",
        result.checked, result.renewed, result.expired, result.deleted,
    )
    return result


def listings_expiring_within(
    db: Session, days: int, reference: datetime | None = None
) -> list[ExpiringListing]:
    """Active listings whose expiration falls in the next `days` days."""
    now = reference or utcnow()
    rows = db.scalars(
        select(Listing)
        .where(
            Listing.status == ListingStatus.ACTIVE.value,
            Listing.expiration_date > now,
            Listing.expiration_date <= now + timedelta(days=days),
        )
        .order_by(Listing.expiration_date)
    ).all()
    return [
        ExpiringListing(id=l.id, title=l.title, expiration_date=l.expiration_date)
        for l in rows
    ]
