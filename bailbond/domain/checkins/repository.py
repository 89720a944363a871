"""Check-in repository - Database operations for check-ins"""

from typing import Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from ...models import CheckIn


class CheckInRepository:
    """Repository for check-in database operations"""

    @staticmethod
    def get_client_check_ins(db: Session, client_id: int) -> list[CheckIn]:
        """Get a client's check-ins, newest first"""
        return (
            db.query(CheckIn)
            .filter(CheckIn.client_id == client_id)
            .order_by(desc(CheckIn.check_in_time), desc(CheckIn.id))
            .all()
        )

    @staticmethod
    def get_last_check_in(db: Session, client_id: int) -> Optional[CheckIn]:
        return (
            db.query(CheckIn)
            .filter(CheckIn.client_id == client_id)
            .order_by(desc(CheckIn.check_in_time), desc(CheckIn.id))
            .first()
        )

    @staticmethod
    def count_client_check_ins(db: Session, client_id: int) -> int:
        return (
            db.query(func.count(CheckIn.id)).filter(CheckIn.client_id == client_id).scalar() or 0
        )

    @staticmethod
    def add_check_in(db: Session, **check_in_data) -> CheckIn:
        """Stage a new check-in; the caller commits"""
        check_in = CheckIn(**check_in_data)
        db.add(check_in)
        return check_in
