"""Pydantic validation schemas for the Barefoot Bay community portal.

Schema Engineering Philosophy:
- Field descriptions document the contract the portal pages are bound to
- Validators enforce the form rules every page relies on (phone format,
  end-after-start, recurring events need a frequency, property listings need
  property details)
- These schemas are the boundary between raw request bodies and the database

Request models are named `*Create` / `*Update`, response models `*Read`.
"""

import re
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS: Canonical value sets with descriptions
# =============================================================================


class UserRole(str, Enum):
    """Portal roles, ordered from least to most privileged."""

    GUEST = "guest"
    """Anonymous visitor. Never stored on a user record."""

    REGISTERED = "registered"
    """Signed-up account with no verified residency."""

    BADGE_HOLDER = "badge_holder"
    """Resident holding a Barefoot Bay membership badge."""

    PAID = "paid"
    """Paying member (sponsored or subscription membership)."""

    MODERATOR = "moderator"
    """Can manage calendar events, forum content and media."""

    ADMIN = "admin"
    """Full control over users, pages, store and settings."""

    @property
    def rank(self) -> int:
        return ROLE_ORDER.index(self)

    def at_least(self, other: "UserRole") -> bool:
        return self.rank >= other.rank


ROLE_ORDER = [
    UserRole.GUEST,
    UserRole.REGISTERED,
    UserRole.BADGE_HOLDER,
    UserRole.PAID,
    UserRole.MODERATOR,
    UserRole.ADMIN,
]


class ListingType(str, Enum):
    """Kinds of classified and real-estate listings."""

    FSBO = "FSBO"
    """For sale by owner."""

    AGENT = "Agent"
    """For sale through a real-estate agent."""

    RENT = "Rent"
    """Home for rent."""

    OPEN_HOUSE = "OpenHouse"
    """Open house announcement with date and time window."""

    WANTED = "Wanted"
    """Someone looking to buy or rent."""

    CLASSIFIED = "Classified"
    """General classified ad (furniture, golf carts, etc.)."""

    GARAGE_SALE = "GarageSale"
    """Garage or yard sale."""


# Types that describe a physical home and must carry complete property details
PROPERTY_LISTING_TYPES = {
    ListingType.FSBO,
    ListingType.AGENT,
    ListingType.RENT,
    ListingType.OPEN_HOUSE,
}


class ListingStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"


class ListingDuration(str, Enum):
    """How long a paid listing stays active."""

    THREE_DAY = "3_day"
    SEVEN_DAY = "7_day"
    THIRTY_DAY = "30_day"

    @property
    def days(self) -> int:
        return int(self.value.split("_")[0])


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class EventCategory(str, Enum):
    ENTERTAINMENT = "entertainment"
    GOVERNMENT = "government"
    SOCIAL = "social"


class ProductCategory(str, Enum):
    APPAREL = "apparel"
    HOME = "home"
    ACCESSORIES = "accessories"
    SPONSORSHIP = "sponsorship"
    MEMBERSHIPS = "memberships"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURN_REQUESTED = "return_requested"
    RETURNED = "returned"
    REFUNDED = "refunded"


# Allowed admin-driven order status transitions
ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURN_REQUESTED},
    OrderStatus.DELIVERED: {OrderStatus.RETURN_REQUESTED},
    OrderStatus.RETURN_REQUESTED: {OrderStatus.RETURNED, OrderStatus.DELIVERED},
    OrderStatus.RETURNED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}


class MediaSection(str, Enum):
    """Upload areas; each maps to a directory under MEDIA_ROOT."""

    CALENDAR = "calendar"
    FORUM = "forum"
    VENDORS = "vendors"
    LISTINGS = "listings"
    STORE = "store"
    COMMUNITY = "community"
    AVATARS = "avatars"


EventInteractionType = Literal["like", "going", "interested"]
VendorInteractionType = Literal["like", "recommend"]


# =============================================================================
# SHARED VALIDATION HELPERS
# =============================================================================

PHONE_PATTERN = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Store every timestamp as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_event_schedule(
    start_date: datetime,
    end_date: datetime,
    is_recurring: bool,
    recurrence_frequency: RecurrenceFrequency | None,
    recurrence_end_date: datetime | None,
) -> None:
    """Raise ValueError when an event's dates are inconsistent."""
    if end_date <= start_date:
        raise ValueError("End date must be after start date")
    if is_recurring:
        if not recurrence_frequency or not recurrence_end_date:
            raise ValueError("Recurring events must have a frequency and end date")
        if recurrence_end_date <= start_date:
            raise ValueError("Recurrence end date must be after the event start date")


def normalize_listing_duration(value: Any) -> Any:
    """Accept '3', '3day' and '3_day' style durations."""
    if value is None or isinstance(value, ListingDuration):
        return value
    text = str(value).strip().lower().replace("-", "_")
    aliases = {
        "3": "3_day", "3day": "3_day",
        "7": "7_day", "7day": "7_day",
        "30": "30_day", "30day": "30_day",
    }
    return aliases.get(text, text)


class PartialUpdate(BaseModel):
    """Base for PATCH bodies.

    Omitted fields keep their stored value. Fields listed in `required_fields`
    must always hold a value, so an explicit null for one of them is rejected.
    """

    required_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_cleared_required(self):
        cleared = sorted(
            name for name in self.model_fields_set & self.required_fields
            if getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be null")
        return self


# =============================================================================
# USERS & AUTH
# =============================================================================


class ResidentSurvey(BaseModel):
    """Resident-survey answers collected at registration and on the profile page."""

    is_local_resident: bool = False
    owns_home_in_bb: bool = False
    rents_home_in_bb: bool = False
    is_full_time_resident: bool = False
    is_snowbird: bool = False
    has_membership_badge: bool = False
    membership_badge_number: str | None = Field(default=None, max_length=50)
    buys_day_passes: bool = False

    # Non-resident section
    has_lived_in_bb: bool = False
    has_visited_bb: bool = False
    never_visited_bb: bool = False
    has_friends_in_bb: bool = False
    considering_moving_to_bb: bool = False
    want_to_discover_bb: bool = False
    never_heard_of_bb: bool = False


class RegisterRequest(ResidentSurvey):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=8, max_length=128)
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=200)
    avatar_url: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=128)


class UserRead(ResidentSurvey):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    avatar_url: str | None = None
    role: UserRole
    is_resident: bool = False
    is_blocked: bool = False
    block_reason: str | None = None
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    token: str
    user: UserRead


class UserProfileUpdate(PartialUpdate):
    """Fields a user may change on their own profile."""

    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({
        "email", "full_name", "is_local_resident", "owns_home_in_bb", "rents_home_in_bb",
        "is_full_time_resident", "is_snowbird", "has_membership_badge", "buys_day_passes",
        "has_lived_in_bb", "has_visited_bb", "never_visited_bb", "has_friends_in_bb",
        "considering_moving_to_bb", "want_to_discover_bb", "never_heard_of_bb",
    })

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    avatar_url: str | None = None
    is_local_resident: bool | None = None
    owns_home_in_bb: bool | None = None
    rents_home_in_bb: bool | None = None
    is_full_time_resident: bool | None = None
    is_snowbird: bool | None = None
    has_membership_badge: bool | None = None
    membership_badge_number: str | None = Field(default=None, max_length=50)
    buys_day_passes: bool | None = None
    has_lived_in_bb: bool | None = None
    has_visited_bb: bool | None = None
    never_visited_bb: bool | None = None
    has_friends_in_bb: bool | None = None
    considering_moving_to_bb: bool | None = None
    want_to_discover_bb: bool | None = None
    never_heard_of_bb: bool | None = None


class RoleUpdate(BaseModel):
    role: UserRole

    @field_validator("role")
    @classmethod
    def reject_guest(cls, v: UserRole) -> UserRole:
        if v == UserRole.GUEST:
            raise ValueError("guest is not an assignable role")
        return v


class BlockRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


# =============================================================================
# EVENTS
# =============================================================================


class EventContactInfo(BaseModel):
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class DaySchedule(BaseModel):
    """Opening hours for one weekday."""

    is_open: bool
    open_time: str = Field(default="09:00", description="24h HH:MM")
    close_time: str = Field(default="17:00", description="24h HH:MM")

    @field_validator("open_time", "close_time")
    @classmethod
    def check_time_format(cls, v: str) -> str:
        if not TIME_PATTERN.match(v):
            raise ValueError("Times must be HH:MM in 24-hour format")
        return v

    @model_validator(mode="after")
    def close_after_open(self) -> "DaySchedule":
        if self.is_open and self.close_time <= self.open_time:
            raise ValueError("Closing time must be after opening time")
        return self


class EventBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200, description="Event title is required")
    description: str | None = None
    start_date: datetime
    end_date: datetime
    location: str = Field(min_length=1, description="Location is required")
    map_link: str | None = None
    category: EventCategory
    business_name: str | None = None
    contact_info: EventContactInfo = Field(default_factory=EventContactInfo)
    hours_of_operation: dict[str, DaySchedule] | None = Field(
        default=None,
        description="Weekday name -> schedule, for multi-day events with opening hours",
    )
    media_urls: list[str] = Field(default_factory=list)
    badge_required: bool = Field(
        default=False,
        description="Whether a membership badge is required to attend",
    )

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_utc(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class EventCreate(EventBase):
    is_recurring: bool = False
    recurrence_frequency: RecurrenceFrequency | None = None
    recurrence_end_date: datetime | None = None

    @field_validator("recurrence_end_date")
    @classmethod
    def naive_utc_recurrence(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_schedule(self) -> "EventCreate":
        validate_event_schedule(
            self.start_date,
            self.end_date,
            self.is_recurring,
            self.recurrence_frequency,
            self.recurrence_end_date,
        )
        if not self.is_recurring:
            self.recurrence_frequency = None
            self.recurrence_end_date = None
        return self


class EventUpdate(PartialUpdate):
    """Partial update. Cross-field checks run after merging with the stored event."""

    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({
        "title", "start_date", "end_date", "location", "category", "badge_required", "is_recurring",
    })

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    location: str | None = Field(default=None, min_length=1)
    map_link: str | None = None
    category: EventCategory | None = None
    business_name: str | None = None
    contact_info: EventContactInfo | None = None
    hours_of_operation: dict[str, DaySchedule] | None = None
    media_urls: list[str] | None = None
    badge_required: bool | None = None
    is_recurring: bool | None = None
    recurrence_frequency: RecurrenceFrequency | None = None
    recurrence_end_date: datetime | None = None

    @field_validator("start_date", "end_date", "recurrence_end_date")
    @classmethod
    def naive_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None
    start_date: datetime
    end_date: datetime
    location: str | None
    map_link: str | None
    category: str
    business_name: str | None = None
    contact_info: dict | None
    hours_of_operation: dict | None
    media_urls: list[str] | None
    badge_required: bool
    is_recurring: bool
    recurrence_frequency: str | None
    recurrence_end_date: datetime | None
    parent_event_id: int | None
    created_by: int | None
    created_at: datetime | None


class EventDetail(EventRead):
    interactions: dict[str, int] = Field(default_factory=dict)
    comment_count: int = 0
    series_size: int = Field(default=1, description="Number of events in the recurring series")


class InteractionRequest(BaseModel):
    interaction_type: EventInteractionType


class InteractionResponse(BaseModel):
    active: bool = Field(description="True if the caller now has this interaction")
    counts: dict[str, int]


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(min_length=1)


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    content: str
    created_at: datetime | None


# =============================================================================
# LISTINGS
# =============================================================================


class ListingContactInfo(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Name is required")
    phone: str = Field(description="Phone number formatted (555) 555-5555")
    email: EmailStr

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not PHONE_PATTERN.match(v):
            raise ValueError("Phone number must be in format (555) 555-5555")
        return v


class ListingFields(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    category: str | None = Field(default=None, description="For classifieds: 'Furniture', 'Golf Carts', ...")
    price: int | None = Field(default=None, ge=0, description="Whole dollars")
    address: str | None = None
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    square_feet: int | None = Field(default=None, ge=0)
    year_built: int | None = Field(default=None, ge=1800, le=2100)
    description: str | None = None
    photos: list[str] | None = None
    cash_only: bool | None = None
    open_house_date: datetime | None = None
    open_house_start_time: str | None = None
    open_house_end_time: str | None = None
    listing_duration: ListingDuration | None = None
    is_subscription: bool | None = None

    @field_validator("listing_duration", mode="before")
    @classmethod
    def normalize_duration(cls, v: Any) -> Any:
        return normalize_listing_duration(v)

    @field_validator("open_house_date")
    @classmethod
    def naive_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


def check_property_details(listing_type: ListingType, fields: dict[str, Any]) -> None:
    """Property listings need the full set of home details."""
    if listing_type not in PROPERTY_LISTING_TYPES:
        return
    required = ("address", "price", "bedrooms", "bathrooms", "square_feet", "year_built")
    missing = [name for name in required if fields.get(name) in (None, "")]
    if missing:
        raise ValueError(
            f"Property listings require complete property details (missing: {', '.join(missing)})"
        )


class ListingCreate(ListingFields):
    listing_type: ListingType
    title: str = Field(min_length=1, max_length=200)
    contact_info: ListingContactInfo
    listing_duration: ListingDuration = ListingDuration.THIRTY_DAY
    photos: list[str] = Field(default_factory=list)
    cash_only: bool = False
    is_subscription: bool = False

    @model_validator(mode="after")
    def require_property_details(self) -> "ListingCreate":
        check_property_details(self.listing_type, self.model_dump())
        return self


class ListingUpdate(PartialUpdate, ListingFields):
    required_fields = frozenset({
        "listing_type", "title", "contact_info", "cash_only", "is_subscription", "listing_duration",
    })

    listing_type: ListingType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    contact_info: ListingContactInfo | None = None


class ListingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    listing_type: str
    category: str | None
    title: str
    price: int | None
    address: str | None
    bedrooms: int | None
    bathrooms: int | None
    square_feet: int | None
    year_built: int | None
    description: str | None
    photos: list[str] | None
    cash_only: bool
    open_house_date: datetime | None
    open_house_start_time: str | None
    open_house_end_time: str | None
    contact_info: dict
    status: ListingStatus
    expiration_date: datetime | None
    listing_duration: str | None
    is_subscription: bool
    created_by: int | None
    created_at: datetime | None


class ExpirationSweepResult(BaseModel):
    checked: int = 0
    renewed: int = 0
    expired: int = 0
    deleted: int = 0


class ExpiringListing(BaseModel):
    id: int
    title: str
    expiration_date: datetime | None


# =============================================================================
# STORE
# =============================================================================


class ProductCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200, description="Product name is required")
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2, description="Price cannot be negative")
    category: ProductCategory
    image_urls: list[str] = Field(default_factory=list)
    status: ProductStatus = ProductStatus.DRAFT
    featured: bool = False
    variant_data: dict[str, Any] | None = Field(
        default=None,
        description="Option name -> allowed values, e.g. {'size': ['S', 'M']}",
    )


class ProductUpdate(PartialUpdate):
    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({"name", "price", "category", "status", "featured"})

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    category: ProductCategory | None = None
    image_urls: list[str] | None = None
    status: ProductStatus | None = None
    featured: bool | None = None
    variant_data: dict[str, Any] | None = None


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    price: Decimal
    category: str
    image_urls: list[str] | None
    status: ProductStatus
    featured: bool
    variant_data: dict | None
    created_at: datetime | None


class ShippingAddress(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=1)
    street_address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=2)
    zip_code: str = Field(pattern=r"^\d{5}(-\d{4})?$")
    phone: str | None = None

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str) -> str:
        return v.upper()


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(ge=1, le=100)
    variant_info: dict[str, str] | None = None


class OrderCreate(BaseModel):
    items: list[OrderItemCreate] = Field(min_length=1)
    shipping_address: ShippingAddress
    discount_code: str | None = None


class OrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    price: Decimal
    variant_info: dict | None


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    status: OrderStatus
    total: Decimal
    shipping_address: dict
    discount_code: str | None
    tracking_number: str | None
    items: list[OrderItemRead]
    created_at: datetime | None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: str | None = None
    tracking_url: str | None = None


# =============================================================================
# PAGES (CMS) & VENDORS
# =============================================================================

MAX_PAGE_CONTENT_LENGTH = 500_000


class PageCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    slug: str = Field(min_length=1, max_length=300, description="e.g. 'amenities#golf'")
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(max_length=MAX_PAGE_CONTENT_LENGTH)
    media_urls: list[str] = Field(default_factory=list)
    is_hidden: bool = False
    order: int = 0


class PageUpdate(PartialUpdate):
    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({"slug", "title", "content", "is_hidden", "order"})

    slug: str | None = Field(default=None, min_length=1, max_length=300)
    title: str | None = Field(default=None, min_length=1, max_length=300)
    content: str | None = Field(default=None, max_length=MAX_PAGE_CONTENT_LENGTH)
    media_urls: list[str] | None = None
    is_hidden: bool | None = None
    order: int | None = None
    version_note: str | None = Field(default=None, max_length=500)


class PageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    title: str
    content: str
    media_urls: list[str] | None
    is_hidden: bool
    order: int
    updated_by: int | None
    updated_at: datetime | None


class ContentVersionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_id: int
    slug: str
    title: str
    content: str
    media_urls: list[str] | None
    version_number: int
    created_by: int | None
    created_at: datetime | None
    notes: str | None


class VendorCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    category: str = Field(min_length=1, max_length=100, description="Category name or slug")
    content: str = Field(default="", max_length=MAX_PAGE_CONTENT_LENGTH)
    media_urls: list[str] = Field(default_factory=list)
    is_hidden: bool = False
    order: int = 0


class VendorUpdate(PartialUpdate):
    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({"title", "category", "content", "is_hidden", "order"})

    title: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    content: str | None = Field(default=None, max_length=MAX_PAGE_CONTENT_LENGTH)
    media_urls: list[str] | None = None
    is_hidden: bool | None = None
    order: int | None = None


class VendorRead(PageRead):
    category: str | None = None
    public_url: str


class CategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    slug: str = Field(min_length=1, max_length=100, description="Slug is required")
    name: str = Field(min_length=1, max_length=200, description="Name is required")
    icon: str | None = None
    order: int = 0


class CategoryUpdate(PartialUpdate):
    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({"slug", "name", "order"})

    slug: str | None = Field(default=None, min_length=1, max_length=100)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    icon: str | None = None
    order: int | None = None


class VendorCategoryCreate(CategoryCreate):
    is_hidden: bool = False


class VendorCategoryUpdate(CategoryUpdate):
    required_fields = CategoryUpdate.required_fields | {"is_hidden"}

    is_hidden: bool | None = None


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    icon: str | None
    order: int


class VendorCategoryRead(CategoryRead):
    is_hidden: bool


class VendorInteractionRequest(BaseModel):
    interaction_type: VendorInteractionType


class VendorCommentRead(CommentRead):
    page_slug: str


class SlugRepair(BaseModel):
    page_id: int
    old_slug: str
    new_slug: str
    applied: bool
    reason: str | None = None


class SlugRepairReport(BaseModel):
    checked: int
    repairs: list[SlugRepair]
    dry_run: bool


# =============================================================================
# FORUM
# =============================================================================


class ForumCategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=100, description="Category name must be at least 2 characters")
    description: str | None = None
    slug: str = Field(min_length=2, max_length=100)
    icon: str | None = None
    order: int = 0


class ForumCategoryUpdate(PartialUpdate):
    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({"name", "slug", "order"})

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = None
    slug: str | None = Field(default=None, min_length=2, max_length=100)
    icon: str | None = None
    order: int | None = None


class ForumCategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    slug: str
    icon: str | None
    order: int
    post_count: int = 0


class ForumPostCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=3, max_length=200, description="Post title must be at least 3 characters")
    content: str = Field(min_length=10, description="Post content must be at least 10 characters")
    is_pinned: bool = False
    is_locked: bool = False
    media_urls: list[str] = Field(default_factory=list)


class ForumPostUpdate(PartialUpdate):
    model_config = ConfigDict(str_strip_whitespace=True)
    required_fields = frozenset({"title", "content", "category_id", "is_pinned", "is_locked"})

    title: str | None = Field(default=None, min_length=3, max_length=200)
    content: str | None = Field(default=None, min_length=10)
    category_id: int | None = None
    is_pinned: bool | None = None
    is_locked: bool | None = None
    media_urls: list[str] | None = None


class ForumPostRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    category_id: int
    user_id: int
    is_pinned: bool
    is_locked: bool
    views: int
    media_urls: list[str] | None
    created_at: datetime | None
    updated_at: datetime | None
    comment_count: int = 0
    reactions: dict[str, int] = Field(default_factory=dict)


class ForumCommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10000, description="Comment content is required")
    parent_comment_id: int | None = None
    media_urls: list[str] = Field(default_factory=list)


class ForumCommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)


class ForumCommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    post_id: int
    author_id: int
    parent_comment_id: int | None
    media_urls: list[str] | None
    created_at: datetime | None


class ForumReactionCreate(BaseModel):
    post_id: int | None = None
    comment_id: int | None = None
    reaction_type: str = Field(min_length=1, max_length=30)

    @model_validator(mode="after")
    def exactly_one_target(self) -> "ForumReactionCreate":
        if (self.post_id is None) == (self.comment_id is None):
            raise ValueError("Either post_id or comment_id must be provided, but not both")
        return self


class ForumDescriptionUpdate(BaseModel):
    content: str


class ForumDescriptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    content: str
    updated_at: datetime | None = None


# =============================================================================
# FEATURE FLAGS
# =============================================================================


class FeatureFlagRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    display_name: str
    enabled_for_roles: list[str]
    description: str | None
    is_active: bool
    enabled: bool = Field(default=False, description="Whether the caller's role can use this feature")


class FeatureFlagUpdate(PartialUpdate):
    required_fields = frozenset({"display_name", "enabled_for_roles", "is_active"})

    display_name: str | None = Field(default=None, min_length=1)
    enabled_for_roles: list[UserRole] | None = None
    description: str | None = None
    is_active: bool | None = None


# =============================================================================
# ANALYTICS
# =============================================================================


class PageViewTrack(BaseModel):
    path: str = Field(min_length=1, max_length=500)
    title: str | None = None
    referrer: str | None = None
    session_id: str | None = None
    device_type: Literal["desktop", "mobile", "tablet", "unknown"] = "unknown"
    browser: str | None = None


class EventTrack(BaseModel):
    event_type: str = Field(min_length=1, max_length=50, description="click, form_submit, ...")
    path: str | None = None
    element: str | None = None
    data: dict[str, Any] | None = None
    session_id: str | None = None


class EndSessionTrack(BaseModel):
    session_id: str | None = None


class TrackResponse(BaseModel):
    session_id: str


class TopPage(BaseModel):
    path: str
    views: int


class DailyTraffic(BaseModel):
    day: date
    sessions: int
    page_views: int


class AnalyticsDashboard(BaseModel):
    days: int
    total_sessions: int
    total_page_views: int
    unique_users: int
    avg_session_seconds: float
    top_pages: list[TopPage]
    daily: list[DailyTraffic]
    devices: dict[str, int]


class ActiveUser(BaseModel):
    session_id: str
    user_id: int | None
    username: str | None
    current_path: str | None
    last_activity: datetime


# =============================================================================
# MEDIA, WEATHER, STATS, ASSISTANT
# =============================================================================


class UploadResponse(BaseModel):
    url: str
    filename: str
    size: int
    content_type: str


class MediaPreviewResponse(BaseModel):
    file_count: int
    files_to_delete: list[str]
    total_bytes: int


class MediaCleanupRequest(BaseModel):
    confirm_files: list[str]


class MediaCleanupResponse(BaseModel):
    deleted_count: int
    deleted: list[str]


class WeatherResponse(BaseModel):
    temperature: float
    feels_like: float | None = None
    humidity: int | None = None
    wind_speed: float | None = None
    condition: str
    description: str
    icon: str | None = None
    location: str | None = None
    units: Literal["imperial", "metric", "standard"]
    fetched_at: datetime
    cached: bool = False


class PortalStats(BaseModel):
    users_by_role: dict[str, int]
    blocked_users: int
    upcoming_events: int
    active_listings_by_type: dict[str, int]
    active_products: int
    forum_posts: int
    vendor_pages: int


class AssistantRequest(BaseModel):
    question: str = Field(min_length=3, max_length=2000)


class AssistantResponse(BaseModel):
    answer: str
