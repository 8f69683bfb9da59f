"""Database fixtures for BerryAdmin tests (shared)."""

import pytest
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession

from .models import User, Post, PostComment, PostStatus


async def create_sample_users(session: AsyncSession):
    users = [
        User(name="Alice Johnson", email="alice@example.com", is_admin=True),
        User(name="Bob Smith", email="bob@example.com", is_admin=False),
    ]
    session.add_all(users)
    await session.flush()
    await session.commit()
    return users


@pytest.fixture(scope="function")
async def sample_users(db_session: AsyncSession):
    return await create_sample_users(db_session)


async def create_sample_posts(session: AsyncSession, users):
    """Four posts with deterministic values used by the list/count tests.

    ============================  =========  =====  ======  =========  ================
    title                         status     views  rating  published  published_at
    ============================  =========  =====  ======  =========  ================
    Hello World                   draft      10     4.5     no         2024-01-10 09:00
    GraphQL Tips                  published  150    3.0     yes        2024-02-01 12:00
    SQLAlchemy Deep Dive          published  75     5.0     yes        2024-03-15 08:30
    Release Notes                 archived   0      -       no         -
    ============================  =========  =====  ======  =========  ================
    """
    alice, bob = users
    posts = [
        Post(
            title="Hello World",
            body="First steps with the admin",
            status=PostStatus.DRAFT,
            category='news',
            view_count=10,
            rating=4.5,
            price=Decimal('9.99'),
            published=False,
            published_on=date(2024, 1, 10),
            published_at=datetime(2024, 1, 10, 9, 0),
            author_id=alice.id,
        ),
        Post(
            title="GraphQL Tips",
            body="Fragments, aliases and more",
            status=PostStatus.PUBLISHED,
            category='blog',
            view_count=150,
            rating=3.0,
            published=True,
            published_on=date(2024, 2, 1),
            published_at=datetime(2024, 2, 1, 12, 0),
            author_id=alice.id,
        ),
        Post(
            title="SQLAlchemy Deep Dive",
            body="Hello from the ORM internals",
            status=PostStatus.PUBLISHED,
            category='blog',
            view_count=75,
            rating=5.0,
            published=True,
            published_on=date(2024, 3, 15),
            published_at=datetime(2024, 3, 15, 8, 30),
            author_id=bob.id,
        ),
        Post(
            title="Release Notes",
            body="Version 1.0",
            status=PostStatus.ARCHIVED,
            category='release',
            view_count=0,
            published=False,
            author_id=bob.id,
        ),
    ]
    session.add_all(posts)
    await session.flush()
    await session.commit()
    return posts


@pytest.fixture(scope="function")
async def sample_posts(db_session: AsyncSession, sample_users):
    return await create_sample_posts(db_session, sample_users)


async def create_sample_comments(session: AsyncSession, posts):
    hello, tips, deep_dive, _ = posts
    comments = [
        PostComment(post_id=hello.id, body="Nice intro"),
        PostComment(post_id=hello.id, body="Thanks!"),
        PostComment(post_id=tips.id, body="Very useful"),
        PostComment(post_id=deep_dive.id, body="Great read"),
        PostComment(post_id=deep_dive.id, body="More please"),
        PostComment(post_id=deep_dive.id, body="Bookmarked"),
    ]
    session.add_all(comments)
    await session.flush()
    await session.commit()
    return comments


@pytest.fixture(scope="function")
async def sample_comments(db_session: AsyncSession, sample_posts):
    return await create_sample_comments(db_session, sample_posts)


@pytest.fixture(scope="function")
async def populated_db(sample_users, sample_posts, sample_comments):
    """Complete sample dataset: 2 users, 4 posts, 6 comments."""
    return {
        'users': sample_users,
        'posts': sample_posts,
        'comments': sample_comments,
    }
