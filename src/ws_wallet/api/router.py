"""ws_wallet REST endpoints.

GET /wallet/{address}/activity-summary: cached activity summary for a Stellar account
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ws_common.database import get_db_session
from src.ws_common.response import ApiResponse, request_id_of, success_response
from src.ws_wallet.application.schemas import WalletSummaryResponse, validate_wallet_address
from src.ws_wallet.application.service import WalletSummaryService

router = APIRouter(prefix="/wallet", tags=["wallet"])


def get_summary_service(request: Request) -> WalletSummaryService:
    """The service built in the app lifespan."""
    return request.app.state.summary_service


def valid_wallet_address(address: str) -> str:
    return validate_wallet_address(address)


@router.get(
    "/{address}/activity-summary",
    responses={
        400: {"description": "Malformed wallet address"},
        404: {"description": "Wallet not found in the system"},
        408: {"description": "Warehouse query timed out"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Warehouse error"},
    },
)
async def get_account_activity_summary(
    request: Request,
    address: Annotated[str, Depends(valid_wallet_address)],
    service: Annotated[WalletSummaryService, Depends(get_summary_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    summary = await service.get_account_activity_summary(db, address)
    result = WalletSummaryResponse.from_domain(summary)
    return success_response(result.model_dump(), request_id=request_id_of(request))
