"""Check-in service - Business logic for compliance check-ins"""

import logging
from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import CheckIn
from ...services.geolocation_service import is_within_jurisdiction, parse_location
from ...shared.sanitization import sanitize_notes
from ..clients.repository import ClientRepository
from .repository import CheckInRepository
from .schemas import CheckInCreate, CheckInResponse

logger = logging.getLogger(__name__)


def to_check_in_response(check_in: CheckIn) -> CheckInResponse:
    return CheckInResponse(
        id=check_in.id,
        clientId=check_in.client_id,
        checkInTime=check_in.check_in_time,
        location=check_in.location,
        latitude=check_in.latitude,
        longitude=check_in.longitude,
        gpsAccuracy=check_in.gps_accuracy,
        withinJurisdiction=check_in.within_jurisdiction,
        notes=check_in.notes,
        biometricType=check_in.biometric_type,
        isFirstCheckIn=check_in.is_first_check_in,
        createdAt=check_in.created_at,
    )


class CheckInService:
    """Service layer for check-in business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CheckInRepository()
        self.clients = ClientRepository()

    def _require_client(self, client_id: int):
        client = self.clients.get_client_by_id(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def get_client_check_ins(self, client_id: int) -> list[CheckIn]:
        """Get a client's check-in history, newest first"""
        self._require_client(client_id)
        return self.repo.get_client_check_ins(self.db, client_id)

    def get_last_check_in(self, client_id: int) -> CheckIn:
        self._require_client(client_id)
        check_in = self.repo.get_last_check_in(self.db, client_id)
        if not check_in:
            raise HTTPException(status_code=404, detail="No check-ins recorded for this client")
        return check_in

    def create_check_in(self, data: CheckInCreate) -> CheckIn:
        """
        Record a compliance check-in.

        The first check-in status is derived from stored history rather than
        trusted from the portal; a first check-in must carry biometric proof.
        """
        client = self._require_client(data.clientId)

        if not client.is_active:
            raise HTTPException(status_code=400, detail="Client account is inactive")

        is_first = self.repo.count_client_check_ins(self.db, client.id) == 0
        if is_first != data.isFirstCheckIn:
            logger.warning(
                f"⚠️ Portal reported isFirstCheckIn={data.isFirstCheckIn} for client "
                f"{client.id}, server history says {is_first}"
            )

        if is_first and not data.biometricData:
            raise HTTPException(
                status_code=400,
                detail="Biometric verification is required for the first check-in",
            )

        latitude, longitude = parse_location(data.location)
        within_jurisdiction = is_within_jurisdiction(latitude, longitude)
        if not within_jurisdiction:
            logger.warning(
                f"⚠️ Client {client.id} checked in outside jurisdiction at {data.location}"
            )

        try:
            notes = sanitize_notes(data.notes)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        now = datetime.now(timezone.utc).replace(tzinfo=None)
        check_in = self.repo.add_check_in(
            self.db,
            client_id=client.id,
            check_in_time=data.checkInTime or now,
            location=data.location,
            latitude=latitude,
            longitude=longitude,
            gps_accuracy=data.gpsAccuracy,
            within_jurisdiction=within_jurisdiction,
            notes=notes,
            biometric_type=data.biometricType.value if data.biometricType else None,
            biometric_data=data.biometricData,
            is_first_check_in=is_first,
        )

        client.last_check_in = now
        client.missed_check_ins = 0

        self.db.commit()
        self.db.refresh(check_in)

        logger.info(
            f"✅ Check-in {check_in.id} recorded for client {client.id}"
            f"{' (first, ' + check_in.biometric_type + ')' if is_first else ''}"
        )
        return check_in
