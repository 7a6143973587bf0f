"""SQLAlchemy models defining User, Post and the post's tags, likes and comments."""
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base


def utcnow():
    return datetime.now(timezone.utc)


class RoleEnum(str, enum.Enum):
    """Enumeration for user roles in the system."""
    admin = "admin"
    user = "user"


class StatusEnum(str, enum.Enum):
    """Publication state of a post."""
    draft = "draft"
    published = "published"


class User(Base):
    """User model representing application users."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    password_hash = Column(String(100), nullable=False)
    role = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.user)
    bio = Column(String(500), nullable=False, default="")
    profile_picture = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="user", cascade="all, delete-orphan")
    like_rows = relationship("PostLike", back_populates="user", cascade="all, delete-orphan")


class Post(Base):
    """Post model representing blog posts created by users."""
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    summary = Column(String(200), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    cover_image = Column(String(255), nullable=False, default="")
    status = Column(Enum(StatusEnum), nullable=False, default=StatusEnum.published, index=True)
    likes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    author = relationship("User", back_populates="posts")
    tag_rows = relationship("PostTag", cascade="all, delete-orphan", order_by="PostTag.id")
    like_rows = relationship("PostLike", back_populates="post", cascade="all, delete-orphan",
                             order_by="PostLike.id")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan",
                            order_by=lambda: [Comment.date.desc(), Comment.id.desc()])

    @property
    def tags(self):
        return [row.name for row in self.tag_rows]

    @property
    def liked_by(self):
        return [row.user_id for row in self.like_rows]


class PostTag(Base):
    """A single tag attached to a post."""
    __tablename__ = "post_tags"
    __table_args__ = (UniqueConstraint("post_id", "name", name="uq_post_tag"),)

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False, index=True)


class PostLike(Base):
    """Membership of a user in a post's liker set."""
    __tablename__ = "post_likes"
    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_like"),)

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    post = relationship("Post", back_populates="like_rows")
    user = relationship("User", back_populates="like_rows")


class Comment(Base):
    """A comment left on a post."""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)

    post = relationship("Post", back_populates="comments")
    user = relationship("User", back_populates="comments")
