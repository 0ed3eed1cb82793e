"""Community calendar: events, recurring series, interactions and comments."""

import logging
from datetime import datetime
from typing import Literal, get_args

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Event, EventComment, EventInteraction, User
from ..recurrence import child_occurrences
from ..schemas import (
    BulkDeleteRequest,
    CommentCreate,
    CommentRead,
    EventCategory,
    EventCreate,
    EventDetail,
    EventInteractionType,
    EventRead,
    EventUpdate,
    InteractionRequest,
    InteractionResponse,
    to_naive_utc,
    validate_event_schedule,
)
from ..security import is_moderator, require_admin, require_moderator, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])

# Fields copied from a parent onto every generated occurrence
SERIES_FIELDS = (
    "title", "description", "location", "map_link", "category", "business_name",
    "contact_info", "hours_of_operation", "media_urls", "badge_required",
    "is_recurring", "recurrence_frequency", "recurrence_end_date", "created_by",
)
SCHEDULE_FIELDS = {"start_date", "end_date", "is_recurring", "recurrence_frequency", "recurrence_end_date"}


def _get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _build_children(parent: Event) -> list[Event]:
    """Materialise one child row per later occurrence of a recurring parent."""
    if not parent.is_recurring or not parent.recurrence_frequency or not parent.recurrence_end_date:
        return []
    children = []
    for start, end in child_occurrences(
        parent.start_date, parent.end_date, parent.recurrence_frequency, parent.recurrence_end_date
    ):
        child = Event(start_date=start, end_date=end, parent_event_id=parent.id)
        for field in SERIES_FIELDS:
            setattr(child, field, getattr(parent, field))
        children.append(child)
    return children


def _interaction_counts(db: Session, event_id: int) -> dict[str, int]:
    counts = {kind: 0 for kind in get_args(EventInteractionType)}
    rows = (
        db.query(EventInteraction.interaction_type, func.count(EventInteraction.id))
        .filter(EventInteraction.event_id == event_id)
        .group_by(EventInteraction.interaction_type)
        .all()
    )
    counts.update({kind: count for kind, count in rows})
    return counts


def _series_size(db: Session, event: Event) -> int:
    root_id = event.parent_event_id or event.id
    children = db.query(func.count(Event.id)).filter(Event.parent_event_id == root_id).scalar() or 0
    return children + 1


@router.get("", response_model=list[EventRead])
def list_events(
    start: datetime | None = None,
    end: datetime | None = None,
    category: EventCategory | None = None,
    search: str | None = None,
    badge_required: bool | None = None,
    db: Session = Depends(get_db),
):
    """Events overlapping the optional [start, end] window, soonest first."""
    query = db.query(Event)
    if start:
        query = query.filter(Event.end_date >= to_naive_utc(start))
    if end:
        query = query.filter(Event.start_date <= to_naive_utc(end))
    if category:
        query = query.filter(Event.category == category.value)
    if badge_required is not None:
        query = query.filter(Event.badge_required == badge_required)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Event.title.ilike(pattern),
            Event.description.ilike(pattern),
            Event.location.ilike(pattern),
        ))
    return query.order_by(Event.start_date, Event.id).all()


@router.get("/{event_id}", response_model=EventDetail)
def get_event(event_id: int, db: Session = Depends(get_db)):
    event = _get_event(db, event_id)
    comment_count = (
        db.query(func.count(EventComment.id)).filter(EventComment.event_id == event.id).scalar() or 0
    )
    return EventDetail(
        **EventRead.model_validate(event).model_dump(),
        interactions=_interaction_counts(db, event.id),
        comment_count=comment_count,
        series_size=_series_size(db, event),
    )


@router.post("", response_model=EventRead, status_code=201)
def create_event(
    body: EventCreate,
    user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    data = body.model_dump(mode="json", exclude={"start_date", "end_date", "recurrence_end_date"})
    event = Event(
        **data,
        start_date=body.start_date,
        end_date=body.end_date,
        recurrence_end_date=body.recurrence_end_date,
        created_by=user.id,
    )
    try:
        db.add(event)
        db.flush()
        children = _build_children(event)
        db.add_all(children)
        db.commit()
        db.refresh(event)
    except Exception:
        db.rollback()
        raise

    logger.info("User %s created event %s with %d occurrences", user.id, event.id, len(children))
    return event


@router.patch("/{event_id}", response_model=EventRead)
def update_event(
    event_id: int,
    body: EventUpdate,
    scope: Literal["single", "series"] = "single",
    user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    """Update one event, or with scope=series the whole recurring series.

    A series update is applied to the parent and the child occurrences are
    regenerated from the parent's schedule.
    """
    event = _get_event(db, event_id)
    if scope == "series" and event.parent_event_id:
        event = _get_event(db, event.parent_event_id)

    changes = body.model_dump(mode="json", exclude_unset=True)
    for field in ("start_date", "end_date", "recurrence_end_date"):
        if field in changes:
            changes[field] = getattr(body, field)

    merged = {field: changes.get(field, getattr(event, field)) for field in SCHEDULE_FIELDS}
    try:
        validate_event_schedule(
            merged["start_date"],
            merged["end_date"],
            merged["is_recurring"],
            merged["recurrence_frequency"],
            merged["recurrence_end_date"],
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    for field, value in changes.items():
        setattr(event, field, value)
    if not event.is_recurring:
        event.recurrence_frequency = None
        event.recurrence_end_date = None

    try:
        if scope == "series" and event.parent_event_id is None:
            for child in list(event.children):
                event.children.remove(child)
            db.flush()
            event.children.extend(_build_children(event))
            logger.info("Regenerated series %s with %d occurrences", event.id, len(event.children))
        db.commit()
        db.refresh(event)
    except Exception:
        db.rollback()
        raise
    return event


@router.delete("/{event_id}", status_code=204)
def delete_event(
    event_id: int,
    user: User = Depends(require_moderator),
    db: Session = Depends(get_db),
):
    """Delete an event. Deleting a series parent deletes every occurrence."""
    event = _get_event(db, event_id)
    try:
        db.delete(event)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("User %s deleted event %s", user.id, event_id)


@router.post("/bulk-delete")
def bulk_delete_events(
    body: BulkDeleteRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    events = db.query(Event).filter(Event.id.in_(body.ids)).all()
    deleted_ids = {e.id for e in events}
    # Children of deleted parents go with them; skip them to avoid double deletes
    roots = [e for e in events if e.parent_event_id not in deleted_ids]
    try:
        for event in roots:
            db.delete(event)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Admin %s bulk-deleted %d events", admin.id, len(deleted_ids))
    return {"deleted": len(deleted_ids), "not_found": sorted(set(body.ids) - deleted_ids)}


@router.post("/{event_id}/interactions", response_model=InteractionResponse)
def toggle_interaction(
    event_id: int,
    body: InteractionRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Toggle like / going / interested for the caller."""
    _get_event(db, event_id)
    existing = db.query(EventInteraction).filter(
        EventInteraction.event_id == event_id,
        EventInteraction.user_id == user.id,
        EventInteraction.interaction_type == body.interaction_type,
    ).first()

    if existing:
        db.delete(existing)
        active = False
    else:
        db.add(EventInteraction(event_id=event_id, user_id=user.id, interaction_type=body.interaction_type))
        active = True
    db.commit()
    return InteractionResponse(active=active, counts=_interaction_counts(db, event_id))


@router.get("/{event_id}/comments", response_model=list[CommentRead])
def list_comments(event_id: int, db: Session = Depends(get_db)):
    _get_event(db, event_id)
    return (
        db.query(EventComment)
        .filter(EventComment.event_id == event_id)
        .order_by(EventComment.created_at, EventComment.id)
        .all()
    )


@router.post("/{event_id}/comments", response_model=CommentRead, status_code=201)
def add_comment(
    event_id: int,
    body: CommentCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _get_event(db, event_id)
    comment = EventComment(event_id=event_id, user_id=user.id, content=body.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.delete("/comments/{comment_id}", status_code=204)
def delete_comment(
    comment_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    comment = db.get(EventComment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    if comment.user_id != user.id and not is_moderator(user):
        raise HTTPException(status_code=403, detail="You can only delete your own comments")
    db.delete(comment)
    db.commit()
