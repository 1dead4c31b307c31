# mock_tools/data_base/crud.py
# This module contains the data warehouse operations: connection check, payments table creation, payment insert and lookup.


###### IMPORT TOOLS ######
# global imports
import logging
from typing import List
from sqlalchemy import select, text, bindparam, String, Numeric
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

# local imports
from mock_tools.data_base.db import Base
from mock_tools.data_base.models import Payments
from mock_tools.experiments.schemas import PaymentRecord


###### LOGGER ######
logger = logging.getLogger("mock_tools.data_base.crud")


###### ERRORS ######
class StoreUnavailableError(RuntimeError):
    """The data warehouse could not be reached or prepared."""


###### CHECK CONNECTION ######
async def check_connection(engine: AsyncEngine) -> None:
    '''Run a trivial query so connection problems surface before any generation.'''
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.exception("Error connecting to the data warehouse.")
        raise StoreUnavailableError(f"Error connecting to the data warehouse: {e}") from e


###### CREATE PAYMENTS TABLE ######
async def ensure_payments_table(engine: AsyncEngine) -> None:
    '''Create the payments table if it does not exist yet.'''
    try:
        async with engine.begin() as connection:
            await connection.run_sync(
                Base.metadata.create_all, tables=[Payments.__table__], checkfirst=True
            )
    except (SQLAlchemyError, OSError) as e:
        logger.exception("Error creating payments table.")
        raise StoreUnavailableError(f"Error creating payments table: {e}") from e
    logger.info("Payments table is ready.")


###### INSERT PAYMENT ######
INSERT_PAYMENT_SQL = text(
    "INSERT INTO payments (timestamp, distinct_id, amount) "
    "VALUES (:timestamp, :distinct_id, :amount)"
).bindparams(
    bindparam("timestamp", type_=String(19)),
    bindparam("distinct_id", type_=String(255)),
    bindparam("amount", type_=Numeric(10, 2)),
)

async def insert_payment(engine: AsyncEngine, payment: PaymentRecord) -> PaymentRecord:
    '''Insert one payment row and return it with the id assigned by the database.'''
    async with engine.begin() as connection:
        result = await connection.execute(
            INSERT_PAYMENT_SQL,
            {
                "timestamp": payment.timestamp,
                "distinct_id": payment.distinct_id,
                "amount": payment.amount,
            },
        )
        payment.id = result.lastrowid
    return payment


###### GET PAYMENTS BY DISTINCT ID ######
async def get_payments_for_user(engine: AsyncEngine, distinct_id: str) -> List[PaymentRecord]:
    '''Fetch every payment recorded for a synthetic user.'''
    statement = (
        select(Payments.id, Payments.timestamp, Payments.distinct_id, Payments.amount)
        .where(Payments.distinct_id == distinct_id)
        .order_by(Payments.id)
    )
    async with engine.connect() as connection:
        rows = (await connection.execute(statement)).fetchall()
    return [
        PaymentRecord(
            id=row.id,
            timestamp=str(row.timestamp),
            distinct_id=row.distinct_id,
            amount=row.amount,
        )
        for row in rows
    ]
