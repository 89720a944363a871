"""Check-in router - FastAPI endpoints consumed by the client portal"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...config import CHECKIN_RATE_LIMIT_PER_MINUTE
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import CheckInCreate, CheckInResponse
from .service import CheckInService, to_check_in_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Check-ins"])

rate_limit_check_ins = create_rate_limiter(
    limit=CHECKIN_RATE_LIMIT_PER_MINUTE,
    window_seconds=60,
    key_prefix="check_in",
    use_ip=True,
)


def get_check_in_service(db: Session = Depends(get_db)) -> CheckInService:
    """Dependency injection for CheckInService"""
    return CheckInService(db)


@router.post("/check-ins", response_model=CheckInResponse)
async def create_check_in(
    data: CheckInCreate,
    service: CheckInService = Depends(get_check_in_service),
    _: None = Depends(rate_limit_check_ins),
):
    """Record a compliance check-in (GPS required, biometric required the first time)"""
    return to_check_in_response(service.create_check_in(data))


@router.get("/clients/{client_id}/check-ins", response_model=list[CheckInResponse])
async def get_client_check_ins(
    client_id: int, service: CheckInService = Depends(get_check_in_service)
):
    """Get a client's check-in history, newest first"""
    return [to_check_in_response(c) for c in service.get_client_check_ins(client_id)]


@router.get("/clients/{client_id}/check-ins/last", response_model=CheckInResponse)
async def get_last_check_in(
    client_id: int, service: CheckInService = Depends(get_check_in_service)
):
    return to_check_in_response(service.get_last_check_in(client_id))
