from enum import Enum

from sqlalchemy import Column, Date, String

from app.core.database import Base
from app.models.domain_record import PayableRecordMixin


class BillStatus(str, Enum):
    UNPAID = "unpaid"
    OVERDUE = "overdue"
    PAID = "paid"
    VOIDED = "voided"


class Bill(PayableRecordMixin, Base):
    __tablename__ = "bills"

    bill_number = Column(String(100), nullable=True, index=True)
    due_date = Column(Date, nullable=True)
