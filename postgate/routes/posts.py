#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Posts router
============
GET    /api/v1/posts            - list posts, newest first
GET    /api/v1/posts/mine       - the caller's posts          [auth]
GET    /api/v1/posts/{post_id}  - read one post
POST   /api/v1/posts            - create a post               [auth]
PUT    /api/v1/posts/{post_id}  - edit a post                 [owner]
DELETE /api/v1/posts/{post_id}  - delete a post               [owner or admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.core.auth import get_identity
from postgate.core.database import get_db
from postgate.core.identity import SessionIdentity
from postgate.schemas import OKResponse, PostCreate, PostResponse, PostUpdate
from postgate.services import posts as post_svc


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/posts", tags=["posts"])


# ── Reading ───────────────────────────────────────────────────────────────────

@router.get("", response_model=list[PostResponse])
async def list_posts(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.list_posts(db, skip=skip, limit=limit)


# -----------------------------------------------------------------------------

# Declared before /{post_id} so "mine" is not taken for an id.
@router.get("/mine", response_model=list[PostResponse])
async def my_posts(
    identity: SessionIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.list_posts_by_author(db, identity.account_id)


# -----------------------------------------------------------------------------

@router.get("/{post_id}", response_model=PostResponse)
async def read_post(post_id: str, db: AsyncSession = Depends(get_db)):
    return await post_svc.get_post(db, post_id)


# ── Writing ───────────────────────────────────────────────────────────────────

@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    data: PostCreate,
    identity: SessionIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.create_post(db, identity, data)


# -----------------------------------------------------------------------------

@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    data: PostUpdate,
    identity: SessionIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await post_svc.update_post(db, identity, post_id, data)


# -----------------------------------------------------------------------------

@router.delete("/{post_id}", response_model=OKResponse)
async def delete_post(
    post_id: str,
    identity: SessionIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await post_svc.delete_post(db, identity, post_id)
    return OKResponse(message="Post deleted")


# -----------------------------------------------------------------------------
