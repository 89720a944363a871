"""Client service - Business logic for client operations"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Client
from .repository import ClientRepository
from .schemas import ClientCreate, ClientResponse

logger = logging.getLogger(__name__)


def to_client_response(client: Client) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        publicId=client.public_id,
        clientCode=client.client_code,
        fullName=client.full_name,
        phoneNumber=client.phone_number,
        address=client.address,
        isActive=client.is_active,
        lastCheckIn=client.last_check_in,
        missedCheckIns=client.missed_check_ins or 0,
        createdAt=client.created_at,
    )


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self) -> list[Client]:
        """Get all active clients"""
        return self.repo.get_clients(self.db)

    def get_client(self, client_id: int) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def create_client(self, data: ClientCreate) -> Client:
        """Register a new client"""
        client = self.repo.create_client(
            self.db,
            full_name=data.fullName,
            phone_number=data.phoneNumber,
            address=data.address,
        )
        logger.info(f"✅ Client registered: id={client.id} code={client.client_code}")
        return client
