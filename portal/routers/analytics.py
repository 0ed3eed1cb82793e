"""Site analytics: session, page-view and event tracking plus admin dashboards."""

import logging
import uuid
from collections import Counter
from datetime import timedelta

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import AnalyticsEvent, AnalyticsPageView, AnalyticsSession, User, utcnow
from ..schemas import (
    ActiveUser,
    AnalyticsDashboard,
    DailyTraffic,
    EndSessionTrack,
    EventTrack,
    PageViewTrack,
    TopPage,
    TrackResponse,
)
from ..security import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])

ACTIVE_WINDOW = timedelta(minutes=5)
TOP_PAGES_LIMIT = 10
SESSION_ID_LENGTH = 64


def _session_id(header_value: str | None, body_value: str | None) -> str:
    return (header_value or body_value or uuid.uuid4().hex)[:SESSION_ID_LENGTH]


def _get_or_create_session(
    db: Session,
    session_id: str,
    request: Request,
    user: User | None,
    path: str | None = None,
    device_type: str | None = None,
    browser: str | None = None,
) -> AnalyticsSession:
    session = db.query(AnalyticsSession).filter(AnalyticsSession.session_id == session_id).first()
    now = utcnow()
    if not session:
        session = AnalyticsSession(
            session_id=session_id,
            user_id=user.id if user else None,
            device_type=device_type,
            browser=browser,
            user_agent=request.headers.get("user-agent"),
            entry_page=path,
            current_path=path,
            started_at=now,
            last_activity=now,
            page_view_count=0,
        )
        db.add(session)
    else:
        session.last_activity = now
        if user and not session.user_id:
            session.user_id = user.id
    return session


@router.post("/track/pageview", response_model=TrackResponse)
def track_pageview(
    body: PageViewTrack,
    request: Request,
    x_analytics_session: str | None = Header(default=None),
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session_id = _session_id(x_analytics_session, body.session_id)
    session = _get_or_create_session(
        db, session_id, request, user, body.path, body.device_type, body.browser
    )
    session.current_path = body.path
    session.page_view_count = (session.page_view_count or 0) + 1
    db.add(AnalyticsPageView(
        session_id=session_id,
        user_id=user.id if user else None,
        path=body.path,
        title=body.title,
        referrer=body.referrer,
    ))
    db.commit()
    return TrackResponse(session_id=session_id)


@router.post("/track/event", response_model=TrackResponse)
def track_event(
    body: EventTrack,
    request: Request,
    x_analytics_session: str | None = Header(default=None),
    user: User | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session_id = _session_id(x_analytics_session, body.session_id)
    _get_or_create_session(db, session_id, request, user, body.path)
    db.add(AnalyticsEvent(
        session_id=session_id,
        user_id=user.id if user else None,
        event_type=body.event_type,
        path=body.path,
        element=body.element,
        data=body.data,
    ))
    db.commit()
    return TrackResponse(session_id=session_id)


@router.post("/track/endsession", response_model=TrackResponse)
def end_session(
    body: EndSessionTrack,
    x_analytics_session: str | None = Header(default=None),
    db: Session = Depends(get_db),
):
    session_id = (x_analytics_session or body.session_id or "")[:SESSION_ID_LENGTH]
    if not session_id:
        raise HTTPException(status_code=400, detail="Session id is required")
    session = db.query(AnalyticsSession).filter(AnalyticsSession.session_id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    session.ended_at = utcnow()
    session.last_activity = session.ended_at
    db.commit()
    return TrackResponse(session_id=session_id)


@router.get("/dashboard", response_model=AnalyticsDashboard)
def dashboard(
    days: int = Query(default=30, ge=1, le=365),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Traffic totals and breakdowns for the last `days` days."""
    since = utcnow() - timedelta(days=days)

    sessions = db.query(AnalyticsSession).filter(AnalyticsSession.started_at >= since).all()
    view_times = [
        ts for (ts,) in db.query(AnalyticsPageView.timestamp).filter(AnalyticsPageView.timestamp >= since)
    ]

    durations = [
        ((s.ended_at or s.last_activity) - s.started_at).total_seconds()
        for s in sessions
        if s.started_at and (s.ended_at or s.last_activity)
    ]
    avg_seconds = round(sum(durations) / len(durations), 1) if durations else 0.0

    top_pages = (
        db.query(AnalyticsPageView.path, func.count(AnalyticsPageView.id).label("views"))
        .filter(AnalyticsPageView.timestamp >= since)
        .group_by(AnalyticsPageView.path)
        .order_by(func.count(AnalyticsPageView.id).desc(), AnalyticsPageView.path)
        .limit(TOP_PAGES_LIMIT)
        .all()
    )

    sessions_by_day = Counter(s.started_at.date() for s in sessions)
    views_by_day = Counter(ts.date() for ts in view_times)
    daily = [
        DailyTraffic(day=day, sessions=sessions_by_day.get(day, 0), page_views=views_by_day.get(day, 0))
        for day in sorted(set(sessions_by_day) | set(views_by_day))
    ]

    return AnalyticsDashboard(
        days=days,
        total_sessions=len(sessions),
        total_page_views=len(view_times),
        unique_users=len({s.user_id for s in sessions if s.user_id}),
        avg_session_seconds=avg_seconds,
        top_pages=[TopPage(path=path, views=views) for path, views in top_pages],
        daily=daily,
        devices=dict(Counter(s.device_type or "unknown" for s in sessions)),
    )


@router.get("/activeusers", response_model=list[ActiveUser])
def active_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    """Sessions with activity in the last five minutes."""
    cutoff = utcnow() - ACTIVE_WINDOW
    rows = (
        db.query(AnalyticsSession, User.username)
        .outerjoin(User, User.id == AnalyticsSession.user_id)
        .filter(AnalyticsSession.last_activity >= cutoff, AnalyticsSession.ended_at.is_(None))
        .order_by(AnalyticsSession.last_activity.desc())
        .all()
    )
    return [
        ActiveUser(
            session_id=s.session_id,
            user_id=s.user_id,
            username=username,
            current_path=s.current_path,
            last_activity=s.last_activity,
        )
        for s, username in rows
    ]
