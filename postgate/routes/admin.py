#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Admin router
============
GET    /api/v1/admin/users                    - list all accounts  [admin]
PATCH  /api/v1/admin/users/{account_id}/role  - change a role      [admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.core.auth import get_identity
from postgate.core.database import get_db
from postgate.core.identity import SessionIdentity
from postgate.schemas import AccountResponse, RoleUpdate
from postgate.services.accounts import list_accounts, set_role


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/admin", tags=["admin"])


# ── Accounts ──────────────────────────────────────────────────────────────────

@router.get("/users", response_model=list[AccountResponse])
async def admin_list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    identity: SessionIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await list_accounts(db, identity, skip=skip, limit=limit)


# -----------------------------------------------------------------------------

@router.patch("/users/{account_id}/role", response_model=AccountResponse)
async def admin_set_role(
    account_id: str,
    data: RoleUpdate,
    identity: SessionIdentity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await set_role(db, identity, account_id, data.role)


# -----------------------------------------------------------------------------
