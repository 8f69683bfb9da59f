"""Database models for BerryAdmin tests (shared)."""

import enum
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, ForeignKey, Boolean, JSON, func, select
from sqlalchemy.orm import DeclarativeBase, relationship, column_property
from sqlalchemy.types import TypeDecorator
from berryadmin import enum_column


class Money(TypeDecorator):
    """Amount stored as integer cents, exposed as Decimal."""

    cache_ok = True
    impl = Integer
    admin_kind = 'money'

    def process_bind_param(self, value, dialect):  # pragma: no cover - trivial
        if value is None:
            return None
        return int(Decimal(value) * 100)

    def process_result_value(self, value, dialect):  # pragma: no cover - trivial
        if value is None:
            return None
        return Decimal(value) / 100


class Base(DeclarativeBase):
    pass


class PostStatus(enum.Enum):
    DRAFT = 'draft'
    PUBLISHED = 'published'
    ARCHIVED = 'archived'


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)

    posts = relationship("Post", back_populates="author")


class Post(Base):
    __tablename__ = 'posts'

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    body = Column(Text)
    status = enum_column(PostStatus, nullable=False, default=PostStatus.DRAFT, constraint_name="ck_post_status")
    category = Column(String(20), info={'constraints': {'one_of': ['news', 'blog', 'release']}})
    view_count = Column(Integer, nullable=False, default=0)
    rating = Column(Float)
    price = Column(Money)
    published = Column(Boolean, nullable=False, default=False)
    published_on = Column(Date)
    published_at = Column(DateTime)
    metadata_json = Column(JSON)
    author_id = Column(Integer, ForeignKey('users.id'), nullable=False)

    author = relationship("User", back_populates="posts")
    comments = relationship("PostComment", back_populates="post", order_by="PostComment.id")


class PostComment(Base):
    __tablename__ = 'post_comments'

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey('posts.id'), nullable=False)
    body = Column(Text, nullable=False)

    post = relationship("Post", back_populates="comments")


Post.comment_count = column_property(
    select(func.count(PostComment.id))
    .where(PostComment.post_id == Post.id)
    .correlate_except(PostComment)
    .scalar_subquery()
)
