#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Post service - blog post CRUD.  Updates are owner-only; deletion is allowed
to the owner or an admin.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from postgate.core.authz import OwnerOf, owner_or_admin, require
from postgate.core.errors import NotFound
from postgate.core.identity import SessionIdentity
from postgate.models import Post
from postgate.schemas import PostCreate, PostUpdate

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def _with_author():
    return select(Post).options(selectinload(Post.author))


# -----------------------------------------------------------------------------

async def list_posts(db: AsyncSession, skip: int = 0, limit: int = 100) -> list[Post]:
    result = await db.execute(
        _with_author().order_by(Post.created_at.desc(), Post.id).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def list_posts_by_author(db: AsyncSession, author_id: str) -> list[Post]:
    result = await db.execute(
        _with_author().where(Post.author_id == author_id).order_by(Post.created_at.desc(), Post.id)
    )
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def get_post(db: AsyncSession, post_id: str, reload: bool = False) -> Post:
    stmt = _with_author().where(Post.id == post_id)
    if reload:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    post = result.scalar_one_or_none()
    if not post:
        raise NotFound("Post not found")
    return post


# -----------------------------------------------------------------------------

async def create_post(db: AsyncSession, identity: SessionIdentity, data: PostCreate) -> Post:
    post = Post(title=data.title.strip(), content=data.content, author_id=identity.account_id)
    db.add(post)
    await db.flush()
    log.info("Post %s created by %s", post.id, identity.account_id)
    return await get_post(db, post.id, reload=True)


# -----------------------------------------------------------------------------

async def update_post(
    db: AsyncSession, identity: SessionIdentity, post_id: str, data: PostUpdate,
) -> Post:
    post = await get_post(db, post_id)
    require(identity, OwnerOf(post.author_id), "You may only edit your own posts")
    if data.title is not None:
        post.title = data.title.strip()
    if data.content is not None:
        post.content = data.content
    await db.flush()
    return await get_post(db, post.id, reload=True)


# -----------------------------------------------------------------------------

async def delete_post(db: AsyncSession, identity: SessionIdentity, post_id: str) -> None:
    post = await get_post(db, post_id)
    require(identity, owner_or_admin(post.author_id), "You may only delete your own posts")
    await db.delete(post)
    await db.flush()
    log.info("Post %s deleted by %s", post_id, identity.account_id)


# -----------------------------------------------------------------------------
