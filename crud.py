"""Database operations used by the route handlers."""
import math
from typing import Optional
from urllib.parse import quote_plus

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

import models
from security import hash_password, is_admin


def avatar_url(name: str) -> str:
    """Generated avatar for users who have not set a profile picture"""
    return f"https://ui-avatars.com/api/?name={quote_plus(name or 'User')}&background=random"


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def paginate(query: Query, page: int, limit: int):
    """Return (items, total) for one page of an already ordered query"""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


# ---------- users ----------

def get_user_by_email(db: Session, email: str):
    """Retrieve a user from the database by their email address"""
    return db.query(models.User).filter(models.User.email == email.lower()).first()


def get_user_by_id(db: Session, user_id: int):
    """Retrieve a user from the database by their ID"""
    return db.get(models.User, user_id)


def email_taken(db: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.User.id).filter(models.User.email == email.lower())
    if exclude_id is not None:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def create_new_user(db: Session,
                    name: str,
                    email: str,
                    password: str,
                    role: models.RoleEnum = models.RoleEnum.user,
                    bio: str = "",
                    profile_picture: str = ""):
    """Create and store a new user in the database"""
    user = models.User(name=name,
                       email=email.lower(),
                       password_hash=hash_password(password),
                       role=role,
                       bio=bio,
                       profile_picture=profile_picture or avatar_url(name))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def list_users(db: Session, page: int, limit: int, search: Optional[str] = None):
    query = db.query(models.User)
    if search:
        query = query.filter(or_(models.User.name.icontains(search, autoescape=True),
                                 models.User.email.icontains(search, autoescape=True)))
    query = query.order_by(models.User.created_at.desc(), models.User.id.desc())
    return paginate(query, page, limit)


def get_user_posts(db: Session, user_id: int):
    return (db.query(models.Post)
            .filter(models.Post.author_id == user_id)
            .order_by(models.Post.created_at.desc(), models.Post.id.desc())
            .all())


def update_user_fields(db: Session, user: models.User, **fields):
    """Apply non-empty values to a user; empty or missing values keep the current one"""
    password = fields.pop("password", None)
    for key, value in fields.items():
        if value:
            setattr(user, key, value)
    if password:
        user.password_hash = hash_password(password)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user: models.User):
    """Delete a user together with every post they authored.

    The user's comments and likes on other people's posts go with them, and the
    like counts of those posts are recomputed.
    """
    liked_post_ids = {row.post_id for row in user.like_rows}
    authored_ids = {post.id for post in user.posts}
    db.delete(user)
    db.flush()
    for post_id in liked_post_ids - authored_ids:
        post = db.get(models.Post, post_id)
        if post is not None:
            sync_like_count(db, post)
    db.commit()


# ---------- posts ----------

def get_post_by_id(db: Session, post_id: int):
    """Retrieve a post from the database by its ID"""
    return db.get(models.Post, post_id)


def can_view_post(user: Optional[models.User], post: models.Post) -> bool:
    """Drafts are visible only to their author or an admin"""
    if post.status == models.StatusEnum.published:
        return True
    return user is not None and (user.id == post.author_id or is_admin(user))


def _set_tags(post: models.Post, tags: list[str]):
    post.tag_rows = [models.PostTag(name=tag) for tag in tags]


def create_post(db: Session, author: models.User, data: dict):
    tags = data.pop("tags", [])
    post = models.Post(author_id=author.id, **data)
    _set_tags(post, tags)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def update_post(db: Session, post: models.Post, data: dict):
    """Apply a partial update; keys left out of ``data`` are untouched"""
    tags = data.pop("tags", None)
    if tags is not None:
        post.tag_rows.clear()
        db.flush()
        _set_tags(post, tags)
    for key, value in data.items():
        if value is not None:
            setattr(post, key, value)
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, post: models.Post):
    db.delete(post)
    db.commit()


def list_posts(db: Session,
               viewer: Optional[models.User],
               page: int,
               limit: int,
               tag: Optional[str] = None,
               search: Optional[str] = None,
               status: Optional[models.StatusEnum] = None,
               author_id: Optional[int] = None):
    """Page through posts newest first.

    Without a status filter only published posts are listed. Non-admin viewers
    never see drafts other than their own.
    """
    Post = models.Post
    query = db.query(Post).filter(Post.status == (status or models.StatusEnum.published))

    if not is_admin(viewer):
        if viewer is None:
            query = query.filter(Post.status == models.StatusEnum.published)
        else:
            query = query.filter(or_(Post.status == models.StatusEnum.published, Post.author_id == viewer.id))

    if tag:
        query = query.filter(Post.tag_rows.any(models.PostTag.name == tag))

    if search:
        query = query.filter(or_(Post.title.icontains(search, autoescape=True),
                                 Post.summary.icontains(search, autoescape=True),
                                 Post.content.icontains(search, autoescape=True),
                                 Post.tag_rows.any(models.PostTag.name.icontains(search, autoescape=True))))

    if author_id is not None:
        query = query.filter(Post.author_id == author_id)

    query = query.order_by(Post.created_at.desc(), Post.id.desc())
    return paginate(query, page, limit)


# ---------- likes ----------

def sync_like_count(db: Session, post: models.Post):
    post.likes = (db.query(func.count(models.PostLike.id))
                  .filter(models.PostLike.post_id == post.id)
                  .scalar())


def lock_post(db: Session, post_id: int) -> models.Post:
    """Reload a post holding a row lock until the transaction ends"""
    return (db.query(models.Post)
            .filter(models.Post.id == post_id)
            .with_for_update()
            .populate_existing()
            .one())


def toggle_like(db: Session, post: models.Post, user: models.User):
    """Flip the user's membership in the post's liker set and resync the count.

    Likes on one post are serialized by the post row lock. The (post, user)
    unique constraint keeps the set free of duplicates; if another writer
    inserted the same like first, the like stays present.
    """
    post_id, user_id = post.id, user.id
    post = lock_post(db, post_id)
    removed = (db.query(models.PostLike)
               .filter(models.PostLike.post_id == post_id, models.PostLike.user_id == user_id)
               .delete(synchronize_session=False))
    if not removed:
        db.add(models.PostLike(post_id=post_id, user_id=user_id))
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            post = lock_post(db, post_id)
    sync_like_count(db, post)
    db.commit()
    db.refresh(post)
    return post


# ---------- comments ----------

def add_comment(db: Session, post: models.Post, user: models.User, text: str):
    """Add a comment; the post's comment list is ordered newest first"""
    comment = models.Comment(post_id=post.id, user_id=user.id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(post)
    return comment


def get_comment(db: Session, post: models.Post, comment_id: int):
    return (db.query(models.Comment)
            .filter(models.Comment.id == comment_id, models.Comment.post_id == post.id)
            .first())


def can_delete_comment(user: models.User, post: models.Post, comment: models.Comment) -> bool:
    return is_admin(user) or user.id in (comment.user_id, post.author_id)


def remove_comment(db: Session, post: models.Post, comment: models.Comment):
    """Remove one comment by identity; the others keep their order"""
    db.delete(comment)
    db.commit()
    db.refresh(post)
    return post
