"""Client router - FastAPI endpoints for the client registry"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ClientCreate, ClientResponse
from .service import ClientService, to_client_response

router = APIRouter(prefix="/api/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


@router.get("", response_model=list[ClientResponse])
async def get_clients(service: ClientService = Depends(get_client_service)):
    """List active clients"""
    return [to_client_response(c) for c in service.get_clients()]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(client_id: int, service: ClientService = Depends(get_client_service)):
    return to_client_response(service.get_client(client_id))


@router.post("", response_model=ClientResponse, status_code=201)
async def create_client(data: ClientCreate, service: ClientService = Depends(get_client_service)):
    """Register a new client"""
    return to_client_response(service.create_client(data))
