"""SQLAlchemy models for the Barefoot Bay community portal.

Data Architecture Overview:
- User is the CENTRAL ENTITY: it authors events, listings, forum posts,
  comments and CMS page edits, and carries the role that gates every write
- Calendar events may form a recurring series: a parent row plus one child
  row per occurrence (children point back through parent_event_id)
- CMS pages are slug keyed; every edit snapshots the prior state into
  content_versions. Vendor directory entries are CMS pages whose slug
  starts with "vendors-"

Column types are kept portable (JSON for arrays/objects) so the same models
run on PostgreSQL and SQLite.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base
from .schemas import ListingStatus, OrderStatus, ProductStatus, UserRole


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how every DateTime column is stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# USERS
# =============================================================================


class User(Base):
    """A portal account. Role and block status gate every write."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.REGISTERED.value)
    is_resident: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resident_tags: Mapped[list | None] = mapped_column(JSON)

    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    block_reason: Mapped[str | None] = mapped_column(Text)

    reset_token: Mapped[str | None] = mapped_column(String(100), index=True)
    reset_token_expires: Mapped[datetime | None] = mapped_column(DateTime)

    # Resident survey
    is_local_resident: Mapped[bool] = mapped_column(Boolean, default=False)
    owns_home_in_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    rents_home_in_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    is_full_time_resident: Mapped[bool] = mapped_column(Boolean, default=False)
    is_snowbird: Mapped[bool] = mapped_column(Boolean, default=False)
    has_membership_badge: Mapped[bool] = mapped_column(Boolean, default=False)
    membership_badge_number: Mapped[str | None] = mapped_column(String(50))
    buys_day_passes: Mapped[bool] = mapped_column(Boolean, default=False)
    has_lived_in_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    has_visited_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    never_visited_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    has_friends_in_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    considering_moving_to_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    want_to_discover_bb: Mapped[bool] = mapped_column(Boolean, default=False)
    never_heard_of_bb: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def role_enum(self) -> UserRole:
        return UserRole(self.role)

    def __repr__(self) -> str:
        return f"<User {self.username} ({self.role})>"


# =============================================================================
# CALENDAR
# =============================================================================


class Event(Base):
    """A calendar event, possibly one occurrence of a recurring series."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(Text)
    map_link: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    business_name: Mapped[str | None] = mapped_column(String(200))
    contact_info: Mapped[dict | None] = mapped_column(JSON)
    hours_of_operation: Mapped[dict | None] = mapped_column(
        JSON,
        doc="Weekday -> {is_open, open_time, close_time}",
    )
    media_urls: Mapped[list | None] = mapped_column(JSON)
    badge_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recurrence_frequency: Mapped[str | None] = mapped_column(String(20))
    recurrence_end_date: Mapped[datetime | None] = mapped_column(DateTime)
    parent_event_id: Mapped[int | None] = mapped_column(
        ForeignKey("events.id", ondelete="CASCADE"), index=True
    )

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    children: Mapped[list["Event"]] = relationship(
        "Event", cascade="all, delete-orphan"
    )
    interactions: Mapped[list["EventInteraction"]] = relationship(
        "EventInteraction", cascade="all, delete-orphan"
    )
    comments: Mapped[list["EventComment"]] = relationship(
        "EventComment", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Event {self.id}: {self.title} @ {self.start_date:%Y-%m-%d}>"


class EventInteraction(Base):
    __tablename__ = "event_interactions"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", "interaction_type", name="uq_event_interaction"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    interaction_type: Mapped[str] = mapped_column(String(20), nullable=False)  # like, going, interested
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class EventComment(Base):
    __tablename__ = "event_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


# =============================================================================
# LISTINGS
# =============================================================================


class Listing(Base):
    """A classified ad or real-estate listing."""

    __tablename__ = "real_estate_listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    listing_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    category: Mapped[str | None] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[int | None] = mapped_column(Integer)
    address: Mapped[str | None] = mapped_column(Text)
    bedrooms: Mapped[int | None] = mapped_column(Integer)
    bathrooms: Mapped[int | None] = mapped_column(Integer)
    square_feet: Mapped[int | None] = mapped_column(Integer)
    year_built: Mapped[int | None] = mapped_column(Integer)
    description: Mapped[str | None] = mapped_column(Text)
    photos: Mapped[list | None] = mapped_column(JSON)
    cash_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    open_house_date: Mapped[datetime | None] = mapped_column(DateTime)
    open_house_start_time: Mapped[str | None] = mapped_column(String(10))
    open_house_end_time: Mapped[str | None] = mapped_column(String(10))
    contact_info: Mapped[dict] = mapped_column(JSON, nullable=False)

    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=ListingStatus.DRAFT.value, index=True
    )
    expiration_date: Mapped[datetime | None] = mapped_column(DateTime, index=True)
    listing_duration: Mapped[str | None] = mapped_column(String(10))
    is_subscription: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    subscription_id: Mapped[str | None] = mapped_column(String(100))

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Listing {self.id}: {self.listing_type} {self.title} [{self.status}]>"


# =============================================================================
# STORE
# =============================================================================


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    image_urls: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default=ProductStatus.DRAFT.value)
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    variant_data: Mapped[dict | None] = mapped_column(JSON)

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    shipping_address: Mapped[dict] = mapped_column(JSON, nullable=False)
    discount_code: Mapped[str | None] = mapped_column(String(50))
    tracking_number: Mapped[str | None] = mapped_column(String(100))
    tracking_url: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, doc="Unit price at order time")
    variant_info: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    order: Mapped["Order"] = relationship("Order", back_populates="items")


# =============================================================================
# CMS PAGES
# =============================================================================


class PageContent(Base):
    """Slug-keyed CMS page. Vendor pages use the "vendors-" slug prefix."""

    __tablename__ = "page_contents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(300), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    media_urls: Mapped[list | None] = mapped_column(JSON)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    versions: Mapped[list["ContentVersion"]] = relationship(
        "ContentVersion",
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="ContentVersion.version_number.desc()",
    )

    def __repr__(self) -> str:
        return f"<PageContent {self.slug}>"


class ContentVersion(Base):
    """Snapshot of a page taken before each edit."""

    __tablename__ = "content_versions"
    __table_args__ = (
        UniqueConstraint("content_id", "version_number", name="uq_content_version"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content_id: Mapped[int] = mapped_column(
        ForeignKey("page_contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    slug: Mapped[str] = mapped_column(String(300), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    media_urls: Mapped[list | None] = mapped_column(JSON)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    notes: Mapped[str | None] = mapped_column(Text, default="")

    page: Mapped["PageContent"] = relationship("PageContent", back_populates="versions")


class VendorCategory(Base):
    __tablename__ = "vendor_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)  # e.g. home-services
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)  # e.g. Home Services
    icon: Mapped[str | None] = mapped_column(String(50))
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class CommunityCategory(Base):
    __tablename__ = "community_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(50))
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class VendorComment(Base):
    __tablename__ = "vendor_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    page_slug: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class VendorInteraction(Base):
    __tablename__ = "vendor_interactions"
    __table_args__ = (
        UniqueConstraint("page_slug", "user_id", "interaction_type", name="uq_vendor_interaction"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    page_slug: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    interaction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# =============================================================================
# FORUM
# =============================================================================


class ForumDescription(Base):
    __tablename__ = "forum_description"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


class ForumCategory(Base):
    __tablename__ = "forum_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(50))
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    posts: Mapped[list["ForumPost"]] = relationship(
        "ForumPost", back_populates="category", cascade="all, delete-orphan"
    )


class ForumPost(Base):
    __tablename__ = "forum_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("forum_categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    media_urls: Mapped[list | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    category: Mapped["ForumCategory"] = relationship("ForumCategory", back_populates="posts")
    comments: Mapped[list["ForumComment"]] = relationship(
        "ForumComment", back_populates="post", cascade="all, delete-orphan"
    )
    reactions: Mapped[list["ForumReaction"]] = relationship(
        "ForumReaction", cascade="all, delete-orphan"
    )


class ForumComment(Base):
    __tablename__ = "forum_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    post_id: Mapped[int] = mapped_column(
        ForeignKey("forum_posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_comment_id: Mapped[int | None] = mapped_column(
        ForeignKey("forum_comments.id", ondelete="CASCADE")
    )
    media_urls: Mapped[list | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    post: Mapped["ForumPost"] = relationship("ForumPost", back_populates="comments")
    replies: Mapped[list["ForumComment"]] = relationship(
        "ForumComment", cascade="all, delete-orphan"
    )
    reactions: Mapped[list["ForumReaction"]] = relationship(
        "ForumReaction", cascade="all, delete-orphan"
    )


class ForumReaction(Base):
    """A reaction on exactly one post or one comment."""

    __tablename__ = "forum_reactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    post_id: Mapped[int | None] = mapped_column(ForeignKey("forum_posts.id", ondelete="CASCADE"))
    comment_id: Mapped[int | None] = mapped_column(ForeignKey("forum_comments.id", ondelete="CASCADE"))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reaction_type: Mapped[str] = mapped_column(String(30), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# =============================================================================
# FEATURE FLAGS
# =============================================================================


class FeatureFlag(Base):
    """Controls which roles can see a portal section."""

    __tablename__ = "feature_flags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    enabled_for_roles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)


# =============================================================================
# ANALYTICS
# =============================================================================


class AnalyticsSession(Base):
    __tablename__ = "analytics_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    device_type: Mapped[str | None] = mapped_column(String(20))
    browser: Mapped[str | None] = mapped_column(String(100))
    user_agent: Mapped[str | None] = mapped_column(Text)
    entry_page: Mapped[str | None] = mapped_column(Text)
    current_path: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    last_activity: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime)
    page_view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class AnalyticsPageView(Base):
    __tablename__ = "analytics_page_views"
    __table_args__ = (Index("ix_page_views_path_time", "path", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    path: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str | None] = mapped_column(Text)
    referrer: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    path: Mapped[str | None] = mapped_column(String(500))
    element: Mapped[str | None] = mapped_column(Text)
    data: Mapped[dict | None] = mapped_column(JSON)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
