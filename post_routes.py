"""Post CRUD, likes and comments."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

import crud
import models
from database import get_db
from logger import get_logger
from schemas import (
    CommentCreate,
    CommentOut,
    CommentsResponse,
    LikeResponse,
    MessageResponse,
    PostCreate,
    PostListResponse,
    PostOut,
    PostResponse,
    PostUpdate,
)
from security import CurrentUser, OptionalUser, check_ownership_or_admin

logger = get_logger("posts")

router = APIRouter(prefix="/posts", tags=["posts"])


def _visible_post_or_404(db: Session, post_id: int, user: Optional[models.User]) -> models.Post:
    post = crud.get_post_by_id(db, post_id)
    if not post or not crud.can_view_post(user, post):
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _parse_status(value: Optional[str]) -> Optional[models.StatusEnum]:
    if not value:
        return None
    try:
        return models.StatusEnum(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="status must be 'draft' or 'published'")


def _parse_author(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="author must be a user id")


def _comments_response(post: models.Post) -> CommentsResponse:
    return CommentsResponse(comments=[CommentOut.model_validate(c) for c in post.comments])


@router.get("", response_model=PostListResponse)
def get_posts(viewer: OptionalUser,
              db: Session = Depends(get_db),
              page: int = Query(1, ge=1),
              limit: int = Query(10, ge=1, le=100),
              tag: Optional[str] = None,
              search: Optional[str] = None,
              status_filter: Optional[str] = Query(None, alias="status"),
              author: Optional[str] = None):
    """List posts newest first, hiding drafts the viewer may not see"""
    posts, total = crud.list_posts(db, viewer, page, limit,
                                   tag=tag or None,
                                   search=(search or "").strip() or None,
                                   status=_parse_status(status_filter),
                                   author_id=_parse_author(author))
    return PostListResponse(posts=[PostOut.model_validate(p) for p in posts],
                            total_pages=crud.total_pages(total, limit),
                            current_page=page,
                            total=total)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(payload: PostCreate, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Create a new post authored by the current user"""
    post = crud.create_post(db, current_user, payload.model_dump())
    logger.info("User %s created post %s (%s)", current_user.id, post.id, post.status.value)
    return PostResponse(post=PostOut.model_validate(post))


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, viewer: OptionalUser, db: Session = Depends(get_db)):
    """Retrieve a single post; drafts are reported missing to anyone but the author or an admin"""
    post = _visible_post_or_404(db, post_id, viewer)
    return PostResponse(post=PostOut.model_validate(post))


@router.put("/{post_id}", response_model=PostResponse)
def update_post(post_id: int, payload: PostUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Update a post. Only its author or an admin may do so"""
    post = crud.get_post_by_id(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    check_ownership_or_admin(current_user, post.author_id, "update this post")

    post = crud.update_post(db, post, payload.model_dump(exclude_unset=True))
    return PostResponse(post=PostOut.model_validate(post))


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(post_id: int, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Delete a post. Only its author or an admin may do so"""
    post = crud.get_post_by_id(db, post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")

    check_ownership_or_admin(current_user, post.author_id, "delete this post")

    crud.delete_post(db, post)
    logger.info("User %s deleted post %s", current_user.id, post_id)
    return MessageResponse(message="Post deleted")


@router.put("/{post_id}/like", response_model=LikeResponse)
def like_post(post_id: int, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Toggle the current user's like on a post"""
    post = _visible_post_or_404(db, post_id, current_user)
    post = crud.toggle_like(db, post, current_user)
    return LikeResponse(likes=post.likes, liked_by=post.liked_by)


@router.post("/{post_id}/comments", response_model=CommentsResponse, status_code=status.HTTP_201_CREATED)
def add_comment(post_id: int, payload: CommentCreate, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Add a comment to a post"""
    post = _visible_post_or_404(db, post_id, current_user)
    crud.add_comment(db, post, current_user, payload.text)
    return _comments_response(post)


@router.delete("/{post_id}/comments/{comment_id}", response_model=CommentsResponse)
def delete_comment(post_id: int, comment_id: int, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Delete a comment as its author, the post's author, or an admin"""
    post = _visible_post_or_404(db, post_id, current_user)

    comment = crud.get_comment(db, post, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")

    if not crud.can_delete_comment(current_user, post, comment):
        raise HTTPException(status_code=403, detail="Not authorized to delete this comment")

    post = crud.remove_comment(db, post, comment)
    return _comments_response(post)
