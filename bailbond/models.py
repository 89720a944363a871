import secrets
import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def generate_client_code():
    """Generate the agency-facing client number (e.g. BB-4F9A2C)"""
    return f"BB-{secrets.token_hex(3).upper()}"


class Client(Base):
    """Bail bond client who must perform compliance check-ins"""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    client_code = Column(
        String(20), unique=True, nullable=False, index=True, default=generate_client_code
    )
    full_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True)  # E.164
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Compliance tracking, updated on every accepted check-in
    last_check_in = Column(DateTime, nullable=True)
    missed_check_ins = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    check_ins = relationship(
        "CheckIn", back_populates="client", cascade="all, delete-orphan", lazy="dynamic"
    )


class CheckIn(Base):
    """A single compliance check-in with GPS fix and optional biometric proof"""

    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    check_in_time = Column(DateTime, nullable=False, server_default=func.now())

    # Location as submitted ("lat, lon") plus the parsed coordinates
    location = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    gps_accuracy = Column(Float, nullable=True)  # metres, when the device reports it
    within_jurisdiction = Column(Boolean, nullable=True)

    notes = Column(Text, nullable=True)

    # Identity verification - required on the first check-in only
    biometric_type = Column(String(20), nullable=True)  # facial, fingerprint
    biometric_data = Column(Text, nullable=True)  # image data URL or base64 credential id
    is_first_check_in = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client", back_populates="check_ins")
