"""Pydantic AI assistant that answers questions about the community portal."""

import os
from dataclasses import dataclass
from datetime import timedelta

import logfire
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_ai import Agent, RunContext
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .models import Event, ForumPost, Listing, utcnow
from .schemas import ListingStatus
from .slugs import vendor_slug_to_url
from .vendors import known_categories, resolve_category, vendor_pages

load_dotenv()

# Configure Logfire for observability (optional - only if token is set)
if os.getenv("LOGFIRE_TOKEN"):
    logfire.configure()
    logfire.instrument_pydantic_ai()

AGENT_MODEL = os.getenv("AGENT_MODEL", "anthropic:claude-sonnet-4-5")


# Pydantic models for tool outputs
class EventSummary(BaseModel):
    """An upcoming calendar event."""
    id: int
    title: str
    start_date: str
    end_date: str
    location: str | None
    category: str
    badge_required: bool


class ListingSummary(BaseModel):
    """An active classified or real-estate listing."""
    id: int
    listing_type: str
    title: str
    price: int | None
    address: str | None
    bedrooms: int | None
    bathrooms: int | None


class VendorSummary(BaseModel):
    title: str
    url: str


class ForumPostSummary(BaseModel):
    id: int
    title: str
    content_preview: str
    created_at: str
    views: int


@dataclass
class CommunityContext:
    """Context for the community agent - database session."""
    db: Session


community_agent = Agent(
    AGENT_MODEL,
    system_prompt="""You are the community assistant for the Barefoot Bay portal, a
resident community website. You help residents and visitors find events on the
community calendar, homes and classifieds for sale, local vendors, and recent
forum discussions.

When answering questions:
- Use the tools to look things up rather than guessing
- Give dates, prices and locations exactly as the tools return them
- Mention when an event requires a membership badge
- Prices of listings are in whole dollars
- If nothing matches, say so and suggest where on the portal to look
- Be concise and friendly
""",
    deps_type=CommunityContext,
    defer_model_check=True,
)


@community_agent.tool
def upcoming_events(
    ctx: RunContext[CommunityContext],
    days: int = 14,
    category: str | None = None,
    limit: int = 10,
) -> list[EventSummary]:
    """List calendar events starting in the next few days.

    Args:
        days: How many days ahead to look (default 14)
        category: Optional category: entertainment, government or social
        limit: Maximum number of events to return (default 10)
    """
    now = utcnow()
    query = ctx.deps.db.query(Event).filter(
        Event.end_date >= now,
        Event.start_date <= now + timedelta(days=max(days, 1)),
    )
    if category:
        query = query.filter(Event.category == category.lower())
    events = query.order_by(Event.start_date).limit(max(limit, 1)).all()
    return [
        EventSummary(
            id=e.id,
            title=e.title,
            start_date=e.start_date.isoformat(),
            end_date=e.end_date.isoformat(),
            location=e.location,
            category=e.category,
            badge_required=e.badge_required,
        )
        for e in events
    ]


@community_agent.tool
def search_listings(
    ctx: RunContext[CommunityContext],
    text: str | None = None,
    listing_type: str | None = None,
    max_price: int | None = None,
    min_bedrooms: int | None = None,
    limit: int = 10,
) -> list[ListingSummary]:
    """Search active listings.

    Args:
        text: Words to look for in the title, description or address
        listing_type: FSBO, Agent, Rent, OpenHouse, Wanted, Classified or GarageSale
        max_price: Maximum price in dollars
        min_bedrooms: Minimum number of bedrooms
        limit: Maximum number of results to return (default 10)
    """
    query = ctx.deps.db.query(Listing).filter(Listing.status == ListingStatus.ACTIVE.value)
    if text:
        pattern = f"%{text}%"
        query = query.filter(or_(
            Listing.title.ilike(pattern),
            Listing.description.ilike(pattern),
            Listing.address.ilike(pattern),
        ))
    if listing_type:
        query = query.filter(func.lower(Listing.listing_type) == listing_type.lower())
    if max_price is not None:
        query = query.filter(Listing.price <= max_price)
    if min_bedrooms is not None:
        query = query.filter(Listing.bedrooms >= min_bedrooms)

    listings = query.order_by(Listing.created_at.desc()).limit(max(limit, 1)).all()
    return [
        ListingSummary(
            id=l.id,
            listing_type=l.listing_type,
            title=l.title,
            price=l.price,
            address=l.address,
            bedrooms=l.bedrooms,
            bathrooms=l.bathrooms,
        )
        for l in listings
    ]


@community_agent.tool
def vendors_in_category(ctx: RunContext[CommunityContext], category: str) -> list[VendorSummary]:
    """List vendors in a directory category, e.g. 'home services' or 'landscaping'."""
    db = ctx.deps.db
    categories = known_categories(db)
    return [
        VendorSummary(title=p.title, url=vendor_slug_to_url(p.slug, categories))
        for p in vendor_pages(db, resolve_category(db, category))
        if not p.is_hidden
    ]


@community_agent.tool
def recent_forum_posts(ctx: RunContext[CommunityContext], limit: int = 5) -> list[ForumPostSummary]:
    """Most recent forum posts.

    Args:
        limit: Maximum number of posts to return (default 5)
    """
    posts = (
        ctx.deps.db.query(ForumPost)
        .order_by(ForumPost.created_at.desc())
        .limit(max(limit, 1))
        .all()
    )
    return [
        ForumPostSummary(
            id=p.id,
            title=p.title,
            content_preview=p.content[:200],
            created_at=p.created_at.isoformat() if p.created_at else "",
            views=p.views,
        )
        for p in posts
    ]


async def ask_assistant(db: Session, question: str) -> str:
    result = await community_agent.run(question, deps=CommunityContext(db=db))
    return result.output
