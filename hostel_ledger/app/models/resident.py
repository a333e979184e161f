"""
Resident database model.

A resident owns due periods and complaints and supplies the payer
identity printed on receipts.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
from hostel_ledger.app.db.session import Base
from hostel_ledger.app.models.enums import ResidentStatus


class Resident(Base):
    """
    Resident model.

    Directory searches match on name and roll number (substring) and on
    hall, department and status (exact).
    """
    __tablename__ = "residents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identity
    name = Column(String(150), nullable=False, index=True)
    roll_number = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    department = Column(String(100), nullable=False, index=True)

    # Accommodation
    hall = Column(String(50), nullable=False, index=True)
    room_number = Column(String(20), nullable=False)

    status = Column(Enum(ResidentStatus), default=ResidentStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Resident(id={self.id}, roll='{self.roll_number}', hall='{self.hall}', room='{self.room_number}')>"
