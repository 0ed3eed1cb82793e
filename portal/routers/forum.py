"""Community forum: categories, posts, threaded comments and reactions."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import ForumCategory, ForumComment, ForumDescription, ForumPost, ForumReaction, User
from ..schemas import (
    ForumCategoryCreate,
    ForumCategoryRead,
    ForumCategoryUpdate,
    ForumCommentCreate,
    ForumCommentRead,
    ForumCommentUpdate,
    ForumDescriptionRead,
    ForumDescriptionUpdate,
    ForumPostCreate,
    ForumPostRead,
    ForumPostUpdate,
    ForumReactionCreate,
    InteractionResponse,
)
from ..security import is_moderator, require_admin, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/forum", tags=["forum"])

_POST_FIELDS = [name for name in ForumPostRead.model_fields if name not in ("comment_count", "reactions")]


def _get(db: Session, model, item_id: int, label: str):
    item = db.get(model, item_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return item


def _require_author(author_id: int, user: User, what: str) -> None:
    if author_id != user.id and not is_moderator(user):
        raise HTTPException(status_code=403, detail=f"You can only change your own {what}")


def _reaction_counts(db: Session, post_id: int | None = None, comment_id: int | None = None) -> dict[str, int]:
    query = db.query(ForumReaction.reaction_type, func.count(ForumReaction.id))
    if post_id is not None:
        query = query.filter(ForumReaction.post_id == post_id)
    else:
        query = query.filter(ForumReaction.comment_id == comment_id)
    return {kind: count for kind, count in query.group_by(ForumReaction.reaction_type).all()}


def _post_read(db: Session, post: ForumPost) -> ForumPostRead:
    comment_count = (
        db.query(func.count(ForumComment.id)).filter(ForumComment.post_id == post.id).scalar() or 0
    )
    return ForumPostRead(
        **{name: getattr(post, name) for name in _POST_FIELDS},
        comment_count=comment_count,
        reactions=_reaction_counts(db, post_id=post.id),
    )


def _category_read(category: ForumCategory, post_count: int) -> ForumCategoryRead:
    return ForumCategoryRead.model_validate(category).model_copy(update={"post_count": post_count})


# =============================================================================
# CATEGORIES
# =============================================================================


@router.get("/categories", response_model=list[ForumCategoryRead])
def list_categories(db: Session = Depends(get_db)):
    counts = dict(
        db.query(ForumPost.category_id, func.count(ForumPost.id)).group_by(ForumPost.category_id).all()
    )
    categories = db.query(ForumCategory).order_by(ForumCategory.order, ForumCategory.name).all()
    return [_category_read(c, counts.get(c.id, 0)) for c in categories]


@router.get("/categories/{category_id}", response_model=ForumCategoryRead)
def get_category(category_id: int, db: Session = Depends(get_db)):
    category = _get(db, ForumCategory, category_id, "Category")
    count = db.query(func.count(ForumPost.id)).filter(ForumPost.category_id == category.id).scalar() or 0
    return _category_read(category, count)


@router.post("/categories", response_model=ForumCategoryRead, status_code=201)
def create_category(
    body: ForumCategoryCreate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if db.query(ForumCategory.id).filter(ForumCategory.slug == body.slug).first():
        raise HTTPException(status_code=409, detail="A category with that slug already exists")
    category = ForumCategory(**body.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return _category_read(category, 0)


@router.patch("/categories/{category_id}", response_model=ForumCategoryRead)
def update_category(
    category_id: int,
    body: ForumCategoryUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    category = _get(db, ForumCategory, category_id, "Category")
    changes = body.model_dump(exclude_unset=True)
    if "slug" in changes and db.query(ForumCategory.id).filter(
        ForumCategory.slug == changes["slug"], ForumCategory.id != category.id
    ).first():
        raise HTTPException(status_code=409, detail="A category with that slug already exists")
    for field, value in changes.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return get_category(category.id, db)


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(
    category_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Delete a category together with its posts."""
    category = _get(db, ForumCategory, category_id, "Category")
    db.delete(category)
    db.commit()
    logger.info("Admin %s deleted forum category %s", admin.id, category_id)


# =============================================================================
# POSTS
# =============================================================================


@router.get("/categories/{category_id}/posts", response_model=list[ForumPostRead])
def list_posts(category_id: int, db: Session = Depends(get_db)):
    """Posts in a category: pinned first, then newest."""
    _get(db, ForumCategory, category_id, "Category")
    posts = (
        db.query(ForumPost)
        .filter(ForumPost.category_id == category_id)
        .order_by(ForumPost.is_pinned.desc(), ForumPost.created_at.desc(), ForumPost.id.desc())
        .all()
    )
    return [_post_read(db, p) for p in posts]


@router.post("/categories/{category_id}/posts", response_model=ForumPostRead, status_code=201)
def create_post(
    category_id: int,
    body: ForumPostCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _get(db, ForumCategory, category_id, "Category")
    if (body.is_pinned or body.is_locked) and not is_moderator(user):
        raise HTTPException(status_code=403, detail="Only moderators can pin or lock posts")
    post = ForumPost(**body.model_dump(), category_id=category_id, user_id=user.id)
    db.add(post)
    db.commit()
    db.refresh(post)
    logger.info("User %s posted %s in forum category %s", user.id, post.id, category_id)
    return _post_read(db, post)


@router.get("/posts/{post_id}", response_model=ForumPostRead)
def get_post(post_id: int, db: Session = Depends(get_db)):
    """Fetch a post and count the view."""
    post = _get(db, ForumPost, post_id, "Post")
    post.views = (post.views or 0) + 1
    db.commit()
    db.refresh(post)
    return _post_read(db, post)


@router.patch("/posts/{post_id}", response_model=ForumPostRead)
def update_post(
    post_id: int,
    body: ForumPostUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    post = _get(db, ForumPost, post_id, "Post")
    _require_author(post.user_id, user, "posts")
    changes = body.model_dump(exclude_unset=True)

    if {"is_pinned", "is_locked", "category_id"} & changes.keys() and not is_moderator(user):
        raise HTTPException(status_code=403, detail="Only moderators can pin, lock or move posts")
    if "category_id" in changes:
        _get(db, ForumCategory, changes["category_id"], "Category")

    for field, value in changes.items():
        setattr(post, field, value)
    db.commit()
    db.refresh(post)
    return _post_read(db, post)


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(
    post_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    post = _get(db, ForumPost, post_id, "Post")
    _require_author(post.user_id, user, "posts")
    db.delete(post)
    db.commit()
    logger.info("User %s deleted forum post %s", user.id, post_id)


# =============================================================================
# COMMENTS
# =============================================================================


@router.get("/posts/{post_id}/comments", response_model=list[ForumCommentRead])
def list_comments(post_id: int, db: Session = Depends(get_db)):
    _get(db, ForumPost, post_id, "Post")
    return (
        db.query(ForumComment)
        .filter(ForumComment.post_id == post_id)
        .order_by(ForumComment.created_at, ForumComment.id)
        .all()
    )


@router.post("/posts/{post_id}/comments", response_model=ForumCommentRead, status_code=201)
def create_comment(
    post_id: int,
    body: ForumCommentCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    post = _get(db, ForumPost, post_id, "Post")
    if post.is_locked and not is_moderator(user):
        raise HTTPException(status_code=403, detail="This post is locked")
    if body.parent_comment_id is not None:
        parent = db.get(ForumComment, body.parent_comment_id)
        if not parent or parent.post_id != post.id:
            raise HTTPException(status_code=400, detail="Parent comment does not belong to this post")

    comment = ForumComment(**body.model_dump(), post_id=post.id, author_id=user.id)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.patch("/comments/{comment_id}", response_model=ForumCommentRead)
def update_comment(
    comment_id: int,
    body: ForumCommentUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    comment = _get(db, ForumComment, comment_id, "Comment")
    _require_author(comment.author_id, user, "comments")
    comment.content = body.content
    db.commit()
    db.refresh(comment)
    return comment


@router.delete("/comments/{comment_id}", status_code=204)
def delete_comment(
    comment_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Delete a comment and its replies."""
    comment = _get(db, ForumComment, comment_id, "Comment")
    _require_author(comment.author_id, user, "comments")
    db.delete(comment)
    db.commit()


# =============================================================================
# REACTIONS & DESCRIPTION
# =============================================================================


@router.post("/reactions", response_model=InteractionResponse)
def toggle_reaction(
    body: ForumReactionCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Toggle a reaction on a post or a comment."""
    if body.post_id is not None:
        _get(db, ForumPost, body.post_id, "Post")
        target = ForumReaction.post_id == body.post_id
    else:
        _get(db, ForumComment, body.comment_id, "Comment")
        target = ForumReaction.comment_id == body.comment_id

    existing = db.query(ForumReaction).filter(
        target,
        ForumReaction.user_id == user.id,
        ForumReaction.reaction_type == body.reaction_type,
    ).first()

    if existing:
        db.delete(existing)
        active = False
    else:
        db.add(ForumReaction(
            post_id=body.post_id,
            comment_id=body.comment_id,
            user_id=user.id,
            reaction_type=body.reaction_type,
        ))
        active = True
    db.commit()
    return InteractionResponse(
        active=active,
        counts=_reaction_counts(db, post_id=body.post_id, comment_id=body.comment_id),
    )


@router.get("/description", response_model=ForumDescriptionRead)
def get_description(db: Session = Depends(get_db)):
    description = db.query(ForumDescription).order_by(ForumDescription.id).first()
    if not description:
        return ForumDescriptionRead(content="")
    return description


@router.post("/description", response_model=ForumDescriptionRead)
def set_description(
    body: ForumDescriptionUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    description = db.query(ForumDescription).order_by(ForumDescription.id).first()
    if not description:
        description = ForumDescription(content=body.content, updated_by=admin.id)
        db.add(description)
    else:
        description.content = body.content
        description.updated_by = admin.id
    db.commit()
    db.refresh(description)
    return description
