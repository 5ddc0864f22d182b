"""Stream calculator API endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from royally_tuned.api.deps import get_db
from royally_tuned.identity.admin import IdentityError, UserNotFoundError, get_user_by_id
from royally_tuned.schemas.calculation import SaveCalculationRequest, SaveCalculationResponse
from royally_tuned.services.calculation_service import save_calculation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calculations", tags=["calculations"])


@router.post("/save", response_model=SaveCalculationResponse)
async def save(
    body: SaveCalculationRequest,
    db: AsyncSession = Depends(get_db),
) -> SaveCalculationResponse:
    """Persist a calculator run as per-platform stream calculation rows."""
    try:
        await get_user_by_id(body.user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User not found") from e
    except IdentityError as e:
        logger.error("save calculation error: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error") from e

    try:
        await save_calculation(db, body.user_id, body.payload)
    except SQLAlchemyError as e:
        logger.error("save calculation error: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error") from e

    return SaveCalculationResponse()
