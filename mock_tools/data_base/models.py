# mock_tools/data_base/models.py
# This module contains the SQLAlchemy model for mock payments written to the data warehouse.


###### IMPORT TOOLS ######
# global imports
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String,
    DateTime,
    Integer,
    Numeric,
)
from sqlalchemy.orm import Mapped, mapped_column

# local imports
from mock_tools.data_base.db import Base


###### PAYMENT MODEL ######
class Payments(Base):
    """Payments made by synthetic users, joined to experiments by distinct_id."""
    __tablename__ = "payments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    distinct_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
