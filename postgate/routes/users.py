#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Users router
============
DELETE /api/v1/users/{account_id}  - delete an account  [self or admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from postgate.core.auth import get_identity_allow_unverified
from postgate.core.database import get_db
from postgate.core.identity import SessionIdentity
from postgate.schemas import OKResponse
from postgate.services.accounts import delete_account


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/users", tags=["users"])


# -----------------------------------------------------------------------------

@router.delete("/{account_id}", response_model=OKResponse)
async def remove_account(
    account_id: str,
    identity: SessionIdentity = Depends(get_identity_allow_unverified),
    db: AsyncSession = Depends(get_db),
):
    await delete_account(db, identity, account_id)
    return OKResponse(message="Account deleted")


# -----------------------------------------------------------------------------
