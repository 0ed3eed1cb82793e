"""FastAPI application for the Barefoot Bay community portal."""

import logging
import os
from contextlib import asynccontextmanager

import logfire
from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import func
from sqlalchemy.orm import Session

from .database import get_db, init_db
from .media import MEDIA_ROOT
from .models import Event, ForumPost, Listing, PageContent, Product, User, utcnow
from .routers import (
    analytics,
    assistant,
    auth,
    categories,
    events,
    features,
    forum,
    listings,
    media,
    pages,
    store,
    users,
    vendors,
    weather,
)
from .schemas import ListingStatus, PortalStats, ProductStatus
from .security import require_admin
from .slugs import VENDOR_PREFIX

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield


app = FastAPI(
    title="Barefoot Bay Portal API",
    description="Community calendar, listings, forum, store and vendor directory for Barefoot Bay",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure Logfire for observability
if os.getenv("LOGFIRE_TOKEN"):
    logfire.configure()
    logfire.instrument_fastapi(app)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (
    auth, users, events, listings, store, pages, vendors, categories,
    forum, features, analytics, media, weather, assistant,
):
    app.include_router(module.router)

app.mount("/media", StaticFiles(directory=MEDIA_ROOT, check_dir=False), name="media")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Barefoot Bay Portal API"}


@app.get("/api/stats", response_model=PortalStats)
def get_dashboard_stats(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Return key counts for the admin dashboard."""
    users_by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    blocked = db.query(func.count(User.id)).filter(User.is_blocked == True).scalar() or 0

    upcoming = db.query(func.count(Event.id)).filter(Event.start_date >= utcnow()).scalar() or 0

    listings_by_type = dict(
        db.query(Listing.listing_type, func.count(Listing.id))
        .filter(Listing.status == ListingStatus.ACTIVE.value)
        .group_by(Listing.listing_type)
        .all()
    )

    active_products = db.query(func.count(Product.id)).filter(
        Product.status == ProductStatus.ACTIVE.value
    ).scalar() or 0
    forum_posts = db.query(func.count(ForumPost.id)).scalar() or 0
    vendor_pages = db.query(func.count(PageContent.id)).filter(
        PageContent.slug.startswith(VENDOR_PREFIX)
    ).scalar() or 0

    return PortalStats(
        users_by_role=users_by_role,
        blocked_users=blocked,
        upcoming_events=upcoming,
        active_listings_by_type=listings_by_type,
        active_products=active_products,
        forum_posts=forum_posts,
        vendor_pages=vendor_pages,
    )
