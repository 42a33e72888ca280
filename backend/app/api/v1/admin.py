"""Admin API — account overview for administrators."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_admin
from app.models.user import User
from app.schemas.admin import AccountListResponse, AccountSummaryResponse
from app.services.admin_service import list_accounts

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.get("/accounts", response_model=AccountListResponse)
async def get_accounts(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> AccountListResponse:
    """List every account with its subscription state and library size."""
    accounts = await list_accounts(db)
    return AccountListResponse(
        accounts=[AccountSummaryResponse.model_validate(a) for a in accounts],
        total=len(accounts),
    )
